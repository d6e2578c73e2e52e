"""Conversion of mail messages into universal items."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parseaddr, parsedate_to_datetime
from typing import Any

from pkmsync.models import GmailMessage, GmailSourceConfig, Item, MessagePart
from pkmsync.processor import ContentProcessor

_LABEL_TAGS = {
    "IMPORTANT": "important",
    "STARRED": "starred",
    "UNREAD": "unread",
    "INBOX": "inbox",
    "SENT": "sent",
    "DRAFT": "draft",
}


class ConversionError(ValueError):
    """A message could not be turned into an item."""


@dataclass
class EmailRecipient:
    """A mail address with an optional display name."""

    name: str = ""
    email: str = ""


def get_header(message: GmailMessage, name: str) -> str:
    """Return a header value by name, ignoring case; empty if absent."""
    return message.header(name)


def _parse_date_header(message: GmailMessage) -> datetime | None:
    if message.payload is None:
        return None
    for header in message.payload.headers:
        if header.name.lower() != "date":
            continue
        try:
            parsed = parsedate_to_datetime(header.value)
        except (TypeError, ValueError, IndexError):
            continue
        if parsed is None:
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return None


def _message_date(message: GmailMessage) -> datetime:
    parsed = _parse_date_header(message)
    if parsed is not None:
        return parsed
    if message.internal_date > 0:
        return datetime.fromtimestamp(message.internal_date / 1000, tz=timezone.utc)
    raise ConversionError(
        "failed to parse email date: could not parse date from message"
    )


def parse_email_address(address: str) -> EmailRecipient:
    """Parse one address such as ``Name <user@example.com>``.

    Malformed input is kept whole as the e-mail part.
    """
    if not address:
        return EmailRecipient()
    stripped = address.strip()
    name, email = parseaddr(stripped)
    if not email or "@" not in email:
        return EmailRecipient(name="", email=stripped)
    return EmailRecipient(name=name, email=email)


def split_email_addresses(addresses: str) -> list[str]:
    """Split a comma-separated address list, respecting quotes and angle brackets."""
    result: list[str] = []
    current: list[str] = []
    in_quotes = False
    in_brackets = False

    def flush() -> None:
        text = "".join(current).strip()
        if text:
            result.append(text)
        current.clear()

    for char in addresses:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "<":
            in_brackets = True
        elif char == ">":
            in_brackets = False
        elif char == "," and not in_quotes and not in_brackets:
            flush()
            continue
        current.append(char)
    flush()
    return result


def parse_email_address_list(addresses: str) -> list[EmailRecipient]:
    """Parse a comma-separated list of addresses, dropping empty entries."""
    if not addresses:
        return []
    recipients = (parse_email_address(part) for part in split_email_addresses(addresses))
    return [recipient for recipient in recipients if recipient.email]


def _has_attachments_in_part(part: MessagePart | None) -> bool:
    if part is None:
        return False
    if part.filename and part.body is not None and part.body.attachment_id:
        return True
    return any(_has_attachments_in_part(sub_part) for sub_part in part.parts)


def has_attachments(message: GmailMessage) -> bool:
    """Whether any part of the message is an attachment."""
    return _has_attachments_in_part(message.payload)


def matches_condition(message: GmailMessage, condition: str) -> bool:
    """Check a tagging-rule condition such as ``from:x``, ``subject:y`` or ``label:z``."""
    condition = condition.lower()
    if condition.startswith("from:"):
        return condition[len("from:"):] in get_header(message, "from").lower()
    if condition.startswith("subject:"):
        return condition[len("subject:"):] in get_header(message, "subject").lower()
    if condition == "has:attachment":
        return has_attachments(message)
    if condition.startswith("label:"):
        target = condition[len("label:"):]
        return any(label.lower() == target for label in message.label_ids)
    return False


def build_tags(message: GmailMessage, config: GmailSourceConfig) -> list[str]:
    """Tags from the source, the message's labels and the configured rules."""
    tags = ["gmail"]
    tags += [_LABEL_TAGS.get(label, label) for label in message.label_ids]
    for rule in config.tagging_rules:
        if matches_condition(message, rule.condition):
            tags += rule.tags
    if config.name:
        tags.append("source:" + config.name.replace(" ", "-").lower())
    return tags


def _basic_metadata(message: GmailMessage) -> dict[str, Any]:
    metadata: dict[str, Any] = {
        "message_id": get_header(message, "message-id"),
        "thread_id": message.thread_id,
        "labels": list(message.label_ids),
        "snippet": message.snippet,
        "size": message.size_estimate,
    }
    reply_to = get_header(message, "reply-to")
    if reply_to:
        metadata["reply_to"] = reply_to
    return metadata


def _recipient_metadata(message: GmailMessage) -> dict[str, Any]:
    return {
        "from": parse_email_address(get_header(message, "from")),
        "to": parse_email_address_list(get_header(message, "to")),
        "cc": parse_email_address_list(get_header(message, "cc")),
        "bcc": parse_email_address_list(get_header(message, "bcc")),
    }


def from_gmail_message(
    message: GmailMessage | None,
    config: GmailSourceConfig,
    service: Any = None,
) -> Item:
    """Convert a mail message into an :class:`Item`.

    ``service`` is used to download attachment data when attachments are enabled.
    """
    if message is None:
        raise ConversionError("message is nil")

    content = ContentProcessor(config).process_email_body(message)
    created_at = _message_date(message)

    item = Item(
        id=message.id,
        title=get_header(message, "subject"),
        content=content,
        source_type="gmail",
        item_type="email",
        created_at=created_at,
        updated_at=created_at,
        metadata=_basic_metadata(message),
        tags=build_tags(message, config),
    )

    if config.extract_recipients:
        item.metadata.update(_recipient_metadata(message))

    if config.include_full_headers and message.payload is not None:
        item.metadata["headers"] = {
            header.name.lower(): header.value for header in message.payload.headers
        }

    if config.download_attachments:
        processor = ContentProcessor(config, service)
        item.attachments = processor.process_email_attachments(message)

    return item