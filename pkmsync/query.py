"""Building and checking mail search queries."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Mapping

from pkmsync.models import GmailSourceConfig

logger = logging.getLogger(__name__)

_DATE_FORMAT = "%Y/%m/%d"

_UNITS = {
    **dict.fromkeys(("m", "min", "minute", "minutes"), timedelta(minutes=1)),
    **dict.fromkeys(("h", "hr", "hour", "hours"), timedelta(hours=1)),
    **dict.fromkeys(("d", "day", "days"), timedelta(days=1)),
    **dict.fromkeys(("w", "week", "weeks"), timedelta(days=7)),
    **dict.fromkeys(("mo", "month", "months"), timedelta(days=30)),
    **dict.fromkeys(("y", "year", "years"), timedelta(days=365)),
}


class QueryError(ValueError):
    """A query or duration string is malformed."""


def _date(moment: datetime) -> str:
    return moment.strftime(_DATE_FORMAT)


def _now_like(reference: datetime) -> datetime:
    return datetime.now(reference.tzinfo) if reference.tzinfo else datetime.now()


def _domain_group(prefix: str, domains: list[str]) -> list[str]:
    terms = [f"{prefix}:{domain}" for domain in domains if domain]
    return [f"({' OR '.join(terms)})"] if terms else []


def _filter_parts(config: GmailSourceConfig) -> list[str]:
    parts = [f"label:{label}" for label in config.labels if label]
    if config.query:
        parts.append(f"({config.query})")
    parts += _domain_group("from", config.from_domains)
    parts += _domain_group("to", config.to_domains)
    parts += [f"-from:{domain}" for domain in config.exclude_from_domains if domain]
    if config.include_unread and not config.include_read:
        parts.append("is:unread")
    elif config.include_read and not config.include_unread:
        parts.append("is:read")
    if config.require_attachments:
        parts.append("has:attachment")
    return parts


def _age(text: str) -> timedelta | None:
    if not text:
        return None
    try:
        return parse_duration(text)
    except QueryError:
        return None


def build_query(
    config: GmailSourceConfig, since: datetime, now: datetime | None = None
) -> str:
    """Build a search query for messages newer than ``since``."""
    if now is None:
        now = _now_like(since)
    parts = [f"after:{_date(since)}"]

    max_age = _age(config.max_email_age)
    if max_age is not None:
        max_age_start = now - max_age
        if max_age_start > since:
            parts.append(f"after:{_date(max_age_start)}")

    min_age = _age(config.min_email_age)
    if min_age is not None:
        min_age_end = now - min_age
        logger.debug(
            "min email age %s gives end %s (since %s)",
            config.min_email_age,
            min_age_end,
            since,
        )
        if min_age_end > since:
            parts.append(f"before:{_date(min_age_end)}")

    parts += _filter_parts(config)
    query = " ".join(parts)
    logger.debug("built mail query %r", query)
    return query


def build_query_with_range(
    config: GmailSourceConfig, start: datetime, end: datetime
) -> str:
    """Build a search query for messages between ``start`` and ``end``."""
    parts = [f"after:{_date(start)}", f"before:{_date(end)}"]
    parts += _filter_parts(config)
    return " ".join(parts)


def parse_duration(text: str) -> timedelta:
    """Parse strings such as ``30d``, ``1y``, ``2w`` or ``12h``."""
    if not text:
        raise QueryError("empty duration string")
    digits = len(text) - len(text.lstrip("0123456789"))
    if digits == 0:
        raise QueryError(f"invalid duration format: {text}")
    number = int(text[:digits])
    unit = text[digits:]
    try:
        return number * _UNITS[unit.lower()]
    except KeyError:
        raise QueryError(f"unsupported duration unit: {unit}") from None


def validate_query(query: str) -> None:
    """Raise :class:`QueryError` if the parentheses of ``query`` do not balance."""
    depth = 0
    for char in query:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                raise QueryError("unmatched closing parenthesis in query")
    if depth:
        raise QueryError("unmatched opening parenthesis in query")


_TEXT_CRITERIA = {
    "from": "from:{}",
    "to": "to:{}",
    "subject": "subject:{}",
    "newer_than": "newer_than:{}",
    "older_than": "older_than:{}",
}

_FLAG_CRITERIA = {
    "has_attachment": "has:attachment",
    "is_important": "is:important",
    "is_starred": "is:starred",
}


def build_complex_query(
    config: GmailSourceConfig, criteria: Mapping[str, Any]
) -> str:
    """Combine the configured query with extra search criteria."""
    parts = [f"({config.query})"] if config.query else []
    for key, value in criteria.items():
        if key in _TEXT_CRITERIA:
            if isinstance(value, str) and value:
                parts.append(_TEXT_CRITERIA[key].format(value))
        elif key in _FLAG_CRITERIA:
            if isinstance(value, bool) and value:
                parts.append(_FLAG_CRITERIA[key])
    return " ".join(parts)