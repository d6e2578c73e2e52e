"""Grouping mail items into threads and consolidating or summarising them."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pkmsync.filenames import sanitize_thread_subject
from pkmsync.models import ZERO_TIME, GmailSourceConfig, Item

DEFAULT_THREAD_SUMMARY_LENGTH = 5

_SUBJECT_PREFIXES = ("Re:", "RE:", "Fwd:", "FWD:", "Fw:", "FW:")
_MAX_PREFIX_PASSES = 10
_LONG_CONTENT = 500


@dataclass
class ThreadGroup:
    """Messages that share one thread id."""

    thread_id: str
    subject: str
    messages: list[Item] = field(default_factory=list)
    participants: list[str] = field(default_factory=list)
    start_time: datetime = ZERO_TIME
    end_time: datetime = ZERO_TIME

    @property
    def message_count(self) -> int:
        return len(self.messages)


def _email_from_recipient(recipient: Any) -> str:
    if isinstance(recipient, str):
        if "<" in recipient and ">" in recipient:
            start = recipient.rfind("<")
            end = recipient.rfind(">")
            if end > start:
                return recipient[start + 1:end]
        return recipient
    if isinstance(recipient, Mapping):
        email = recipient.get("email")
        if isinstance(email, str) and email:
            return email
        name = recipient.get("name")
        if isinstance(name, str) and name:
            return name
    return ""


def _sender(item: Item) -> str:
    if "from" in item.metadata:
        return _email_from_recipient(item.metadata["from"])
    return ""


def _thread_id(item: Item) -> str:
    value = item.metadata.get("thread_id")
    return value if isinstance(value, str) else ""


def _clean_subject(title: str) -> str:
    subject = title.strip()
    for _ in range(_MAX_PREFIX_PASSES):
        original = subject
        for prefix in _SUBJECT_PREFIXES:
            if subject.startswith(prefix):
                subject = subject[len(prefix):].strip()
        if subject == original:
            break
    return subject


def _timestamp(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d %H:%M")


class ThreadProcessor:
    """Applies the configured thread mode to a list of mail items."""

    def __init__(self, config: GmailSourceConfig) -> None:
        self.config = config

    def process_threads(self, items: list[Item] | None) -> list[Item]:
        """Group items by thread and return them in the configured form.

        Raises ``ValueError`` for an unknown thread mode.
        """
        if items is None:
            return []
        if not self.config.include_threads:
            return items
        mode = self.config.thread_mode.lower()
        if mode in ("individual", ""):
            return items
        if mode == "consolidated":
            return self._consolidate(self._group(items))
        if mode == "summary":
            return self._summarize(self._group(items))
        raise ValueError(
            f"unknown thread mode: {self.config.thread_mode} "
            "(supported: individual, consolidated, summary)"
        )

    def _group(self, items: list[Item]) -> list[ThreadGroup]:
        groups: dict[str, ThreadGroup] = {}
        for item in items:
            if item is None:
                continue
            thread_id = _thread_id(item) or item.id
            group = groups.get(thread_id)
            if group is None:
                sender = _sender(item)
                groups[thread_id] = ThreadGroup(
                    thread_id=thread_id,
                    subject=_clean_subject(item.title),
                    messages=[item],
                    participants=[sender] if sender else [],
                    start_time=item.created_at,
                    end_time=item.created_at,
                )
                continue
            group.messages.append(item)
            group.start_time = min(group.start_time, item.created_at)
            group.end_time = max(group.end_time, item.created_at)
            sender = _sender(item)
            if sender and sender not in group.participants:
                group.participants.append(sender)

        for group in groups.values():
            group.messages.sort(key=lambda message: message.created_at)
        return list(groups.values())

    def _consolidate(self, groups: list[ThreadGroup]) -> list[Item]:
        result = []
        for group in groups:
            if group.message_count == 1:
                result.append(group.messages[0])
                continue
            subject = sanitize_thread_subject(group.subject, group.thread_id)
            result.append(
                Item(
                    id=f"thread_{group.thread_id}",
                    title=f"Thread_{subject}_{group.message_count}-messages",
                    content=self._consolidated_content(group),
                    source_type="gmail",
                    item_type="email_thread",
                    created_at=group.start_time,
                    updated_at=group.end_time,
                    metadata=self._metadata(group),
                    tags=self._tags(group),
                )
            )
        return result

    def _summarize(self, groups: list[ThreadGroup]) -> list[Item]:
        max_messages = self.config.thread_summary_length
        if max_messages <= 0:
            max_messages = DEFAULT_THREAD_SUMMARY_LENGTH
        result = []
        for group in groups:
            if group.message_count == 1:
                result.append(group.messages[0])
                continue
            subject = sanitize_thread_subject(group.subject, group.thread_id)
            result.append(
                Item(
                    id=f"thread_summary_{group.thread_id}",
                    title=f"Thread-Summary_{subject}_{group.message_count}-messages",
                    content=self._summary_content(group, max_messages),
                    source_type="gmail",
                    item_type="email_thread_summary",
                    created_at=group.start_time,
                    updated_at=group.end_time,
                    metadata=self._metadata(group),
                    tags=self._tags(group),
                )
            )
        return result

    @staticmethod
    def _message_block(heading: str, message: Item) -> str:
        lines = [
            f"## {heading}: {message.title}\n\n",
            f"**Date:** {message.created_at.strftime('%Y-%m-%d %H:%M:%S')}  \n",
        ]
        sender = _sender(message)
        if sender:
            lines.append(f"**From:** {sender}  \n")
        lines += ["\n", message.content, "\n\n---\n\n"]
        return "".join(lines)

    def _consolidated_content(self, group: ThreadGroup) -> str:
        parts = [
            f"# Thread: {group.subject}\n\n",
            f"**Thread ID:** {group.thread_id}  \n",
            f"**Messages:** {group.message_count}  \n",
            f"**Participants:** {', '.join(group.participants)}  \n",
            f"**Duration:** {_timestamp(group.start_time)} to "
            f"{_timestamp(group.end_time)}  \n\n",
            "---\n\n",
        ]
        parts += [
            self._message_block(f"Message {number}", message)
            for number, message in enumerate(group.messages, start=1)
        ]
        return "".join(parts)

    def _summary_content(self, group: ThreadGroup, max_messages: int) -> str:
        parts = [
            f"# Thread Summary: {group.subject}\n\n",
            f"**Thread ID:** {group.thread_id}  \n",
            f"**Total Messages:** {group.message_count}  \n",
            f"**Showing:** {min(max_messages, group.message_count)} key messages  \n",
            f"**Participants:** {', '.join(group.participants)}  \n",
            f"**Duration:** {_timestamp(group.start_time)} to "
            f"{_timestamp(group.end_time)}  \n\n",
            "---\n\n",
        ]
        parts += [
            self._message_block(f"Key Message {number}", message)
            for number, message in enumerate(
                self._key_messages(group.messages, max_messages), start=1
            )
        ]
        if group.message_count > max_messages:
            remaining = group.message_count - max_messages
            parts.append(f"* {remaining} additional messages not shown in summary*\n")
        return "".join(parts)

    def _key_messages(self, messages: list[Item], max_messages: int) -> list[Item]:
        if len(messages) <= max_messages:
            return messages
        key = [messages[0]]
        max_messages -= 1
        if max_messages > 0 and len(messages) > 1:
            key.append(messages[-1])
            max_messages -= 1
        if max_messages > 0 and len(messages) > 2:
            key += self._additional_messages(messages, max_messages)
            key.sort(key=lambda message: message.created_at)
        return key

    @staticmethod
    def _additional_messages(messages: list[Item], max_messages: int) -> list[Item]:
        seen_senders = {s for s in (_sender(messages[0]), _sender(messages[-1])) if s}

        def score(message: Item) -> int:
            value = 0
            sender = _sender(message)
            if sender and sender not in seen_senders:
                value += 3
            if len(message.content) > _LONG_CONTENT:
                value += 2
            if message.attachments:
                value += 1
            return value

        ranked = sorted(messages[1:-1], key=score, reverse=True)
        return ranked[:max_messages]

    @staticmethod
    def _metadata(group: ThreadGroup) -> dict[str, Any]:
        if group.start_time != ZERO_TIME and group.end_time != ZERO_TIME:
            hours = (group.end_time - group.start_time).total_seconds() / 3600
        else:
            hours = 0.0
        return {
            "thread_id": group.thread_id,
            "message_count": group.message_count,
            "participants": list(group.participants),
            "start_time": group.start_time,
            "end_time": group.end_time,
            "duration_hours": hours,
        }

    @staticmethod
    def _tags(group: ThreadGroup) -> list[str]:
        tags = ["gmail", "thread"]
        if group.message_count > 5:
            tags.append("long-thread")
        if len(group.participants) > 2:
            tags.append("multi-participant")
        return tags