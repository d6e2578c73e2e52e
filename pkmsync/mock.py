"""An in-memory mail service with sample data, for tests and dry runs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime

from pkmsync.models import (
    GmailMessage,
    GmailSourceConfig,
    MessagePart,
    MessagePartBody,
    MessagePartHeader,
)

_DEFAULT_LIMIT = 100


@dataclass
class Label:
    """A mailbox label."""

    id: str
    name: str
    type: str = ""


@dataclass
class Profile:
    """Summary of a mailbox."""

    email_address: str = ""
    messages_total: int = 0
    threads_total: int = 0
    history_id: int = 0


def _header_value(message: GmailMessage, name: str) -> str:
    if message.payload is None:
        return ""
    return next((h.value for h in message.payload.headers if h.name == name), "")


def _sample_message(
    message_id: str,
    labels: list[str],
    snippet: str,
    size: int,
    mime_type: str,
    subject: str,
    sender: str,
    hours_ago: int,
    data: str,
    parts: list[MessagePart] | None = None,
) -> GmailMessage:
    sent = datetime.now(timezone.utc) - timedelta(hours=hours_ago)
    return GmailMessage(
        id=message_id,
        thread_id=message_id.replace("msg", "thread"),
        label_ids=labels,
        snippet=snippet,
        size_estimate=size,
        payload=MessagePart(
            mime_type=mime_type,
            headers=[
                MessagePartHeader("Subject", subject),
                MessagePartHeader("From", sender),
                MessagePartHeader("To", "testuser@example.com"),
                MessagePartHeader("Date", format_datetime(sent, usegmt=True)),
                MessagePartHeader("Message-ID", f"<{message_id}@example.com>"),
            ],
            body=MessagePartBody(data=data),
            parts=parts or [],
        ),
    )


def _create_test_messages() -> list[GmailMessage]:
    return [
        _sample_message(
            "msg1", ["INBOX", "IMPORTANT"], "Important work email from company", 1024,
            "multipart/alternative", "Important work update", "manager@example.com", 2,
            "VGhpcyBpcyBhbiBpbXBvcnRhbnQgd29yayBlbWFpbA==",
        ),
        _sample_message(
            "msg2", ["INBOX", "STARRED"], "Personal starred email", 512,
            "text/plain", "Personal important message", "friend@example.com", 4,
            "VGhpcyBpcyBhIHBlcnNvbmFsIGVtYWls",
        ),
        _sample_message(
            "msg3", ["INBOX"], "Newsletter email", 2048,
            "text/html", "Weekly Newsletter", "newsletter@example.com", 6,
            "VGhpcyBpcyBhIG5ld3NsZXR0ZXIgZW1haWw=",
        ),
        _sample_message(
            "msg4", ["INBOX", "UNREAD"], "Unread work email", 768,
            "multipart/mixed", "Project update with attachment", "colleague@example.com", 1,
            "UHJvamVjdCB1cGRhdGUgd2l0aCBhdHRhY2htZW50",
            parts=[
                MessagePart(
                    filename="report.pdf",
                    mime_type="application/pdf",
                    body=MessagePartBody(attachment_id="attachment1", size=1024),
                )
            ],
        ),
    ]


def _create_test_labels() -> list[Label]:
    system = ["INBOX", "IMPORTANT", "STARRED", "UNREAD", "SENT", "DRAFT"]
    labels = [Label(name, name, "system") for name in system]
    labels += [
        Label("Label_1", "Work", "user"),
        Label("Label_2", "Personal", "user"),
        Label("Label_3", "Projects", "user"),
    ]
    return labels


class MockService:
    """A mail service that serves sample messages filtered by its configuration."""

    def __init__(self, config: GmailSourceConfig | None = None, source_id: str = "") -> None:
        self.config = config if config is not None else GmailSourceConfig()
        self.source_id = source_id
        self.messages = _create_test_messages()
        self.labels = _create_test_labels()
        self.profile = Profile(
            email_address="testuser@example.com",
            messages_total=250,
            threads_total=125,
            history_id=12345,
        )

    def get_messages(self, since: datetime | None = None, limit: int = 0) -> list[GmailMessage]:
        """Messages matching the configured filters, at most ``limit`` (default 100)."""
        if limit <= 0:
            limit = _DEFAULT_LIMIT
        matching = [m for m in self.messages if self._matches_filters(m)]
        return matching[:limit]

    def get_message(self, message_id: str) -> GmailMessage:
        """The message with ``message_id``; raises if missing."""
        if not message_id:
            raise ValueError("message ID is required")
        for message in self.messages:
            if message.id == message_id:
                return message
        raise LookupError(f"message not found: {message_id}")

    def get_messages_in_range(
        self, start: datetime, end: datetime, limit: int = 0
    ) -> list[GmailMessage]:
        """Messages for a time range; the range must not be reversed."""
        if end < start:
            raise ValueError("end time must be after start time")
        return self.get_messages(start, limit)

    def get_labels(self) -> list[Label]:
        """All labels of the mailbox."""
        return self.labels

    def get_profile(self) -> Profile:
        """The mailbox profile."""
        return self.profile

    def validate_configuration(self) -> None:
        """Raise ``ValueError`` if a configured label does not exist."""
        known = {label.name for label in self.labels} | {label.id for label in self.labels}
        for label in self.config.labels:
            if label not in known:
                raise ValueError(f"configured label '{label}' not found in mock Gmail")

    def add_test_message(self, message: GmailMessage) -> None:
        """Add a message to the mailbox."""
        self.messages.append(message)

    def clear_messages(self) -> None:
        """Remove every message."""
        self.messages = []

    def _matches_filters(self, message: GmailMessage) -> bool:
        config = self.config
        if config.labels and not any(label in message.label_ids for label in config.labels):
            return False
        sender = _header_value(message, "From")
        if config.from_domains and not any(d in sender for d in config.from_domains):
            return False
        if any(d in sender for d in config.exclude_from_domains):
            return False
        return True