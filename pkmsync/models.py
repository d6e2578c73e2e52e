"""Data types shared by sources, processors and targets."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

# Stands in for "no time set" on items that were built without a timestamp.
ZERO_TIME = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class MessagePartHeader:
    """A single header line of a message part."""

    name: str
    value: str


@dataclass
class MessagePartBody:
    """Body of a message part: inline base64 data or a reference to an attachment."""

    data: str = ""
    attachment_id: str = ""
    size: int = 0


@dataclass
class MessagePart:
    """A MIME part of a message, possibly holding nested parts."""

    mime_type: str = ""
    filename: str = ""
    headers: list[MessagePartHeader] = field(default_factory=list)
    body: MessagePartBody | None = None
    parts: list[MessagePart] = field(default_factory=list)


@dataclass
class GmailMessage:
    """A mail message as delivered by the mail API."""

    id: str = ""
    thread_id: str = ""
    label_ids: list[str] = field(default_factory=list)
    snippet: str = ""
    size_estimate: int = 0
    internal_date: int = 0
    payload: MessagePart | None = None

    def header(self, name: str) -> str:
        """Return the value of the first header called ``name``, ignoring case."""
        if self.payload is None:
            return ""
        wanted = name.lower()
        return next(
            (h.value for h in self.payload.headers if h.name.lower() == wanted),
            "",
        )


@dataclass
class Attachment:
    """A file attached to an item."""

    id: str = ""
    name: str = ""
    mime_type: str = ""
    size: int = 0
    url: str = ""
    data: str = ""


@dataclass
class Link:
    """A hyperlink found in or attached to an item."""

    url: str = ""
    title: str = ""
    type: str = ""


@dataclass
class Attendee:
    """A participant of a calendar event."""

    email: str = ""
    name: str = ""
    response_status: str = ""

    def display_name(self) -> str:
        """The attendee's name, or the e-mail address when no name is known."""
        return self.name or self.email


@dataclass
class TaggingRule:
    """Adds ``tags`` to every message that matches ``condition``."""

    condition: str = ""
    tags: list[str] = field(default_factory=list)


@dataclass
class GmailSourceConfig:
    """Settings of one mail source."""

    name: str = ""
    labels: list[str] = field(default_factory=list)
    query: str = ""
    include_unread: bool = False
    include_read: bool = False
    max_email_age: str = ""
    min_email_age: str = ""
    from_domains: list[str] = field(default_factory=list)
    to_domains: list[str] = field(default_factory=list)
    exclude_from_domains: list[str] = field(default_factory=list)
    require_attachments: bool = False
    include_threads: bool = False
    thread_mode: str = ""
    thread_summary_length: int = 0
    extract_recipients: bool = False
    extract_links: bool = False
    process_html_content: bool = False
    strip_quoted_text: bool = False
    download_attachments: bool = False
    attachment_types: list[str] = field(default_factory=list)
    include_full_headers: bool = False
    tagging_rules: list[TaggingRule] = field(default_factory=list)


@dataclass
class Item:
    """The universal unit of content moved from sources to targets."""

    id: str = ""
    title: str = ""
    content: str = ""
    source_type: str = ""
    item_type: str = ""
    created_at: datetime = ZERO_TIME
    updated_at: datetime = ZERO_TIME
    metadata: dict[str, Any] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)


@dataclass
class Thread(Item):
    """An item that groups several message items."""

    messages: list[Item] = field(default_factory=list)


@dataclass
class FilePreview:
    """What exporting one item would do to the file system."""

    file_path: str
    action: str
    content: str
    existing_content: str = ""
    conflict: bool = False