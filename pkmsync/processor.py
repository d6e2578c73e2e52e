"""Extraction of bodies and attachments from mail messages."""

from __future__ import annotations

import base64
import binascii
import dataclasses
import logging
from typing import Any

from pkmsync.models import Attachment, GmailMessage, GmailSourceConfig, MessagePart

logger = logging.getLogger(__name__)


def _decode(data: str) -> bytes:
    """Decode URL-safe base64, falling back to the standard alphabet."""
    try:
        return base64.b64decode(data, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError):
        return base64.b64decode(data, validate=True)


def _iter_attachments(part: MessagePart | None):
    if part is None:
        return
    if part.filename and part.body is not None and part.body.attachment_id:
        yield Attachment(
            id=part.body.attachment_id,
            name=part.filename,
            mime_type=part.mime_type,
            size=part.body.size,
        )
    for sub_part in part.parts:
        yield from _iter_attachments(sub_part)


class ContentProcessor:
    """Pulls raw content and attachments out of a message.

    ``service``, when given, must offer ``get_attachment(message_id,
    attachment_id)`` returning an object with a base64 ``data`` attribute.
    """

    def __init__(self, config: GmailSourceConfig, service: Any = None) -> None:
        self.config = config
        self.service = service

    def process_email_body(self, message: GmailMessage) -> str:
        """Return the HTML body, else the plain-text body, else the snippet."""
        if message.payload is None:
            return ""
        return (
            self._extract_body_part(message.payload, "text/html")
            or self._extract_body_part(message.payload, "text/plain")
            or message.snippet
        )

    def _extract_body_part(self, part: MessagePart | None, mime_type: str) -> str:
        if part is None:
            return ""
        if part.mime_type == mime_type and part.body is not None and part.body.data:
            try:
                return _decode(part.body.data).decode("utf-8", errors="replace")
            except (binascii.Error, ValueError):
                pass
        for sub_part in part.parts:
            content = self._extract_body_part(sub_part, mime_type)
            if content:
                return content
        return ""

    def process_email_attachments(self, message: GmailMessage) -> list[Attachment]:
        """List the message's attachments allowed by the configuration."""
        if message.payload is None or not self.config.download_attachments:
            return []
        attachments = [
            attachment
            for attachment in _iter_attachments(message.payload)
            if self._is_allowed(attachment)
        ]
        if self.service is None:
            return attachments
        return [self._with_data(message.id, attachment) for attachment in attachments]

    def _with_data(self, message_id: str, attachment: Attachment) -> Attachment:
        try:
            fetched = self.service.get_attachment(message_id, attachment.id)
            encoded = getattr(fetched, "data", "") or ""
            if not encoded:
                return attachment
            decoded = _decode(encoded)
        except Exception as exc:  # a failed download must not stop the others
            logger.warning(
                "Failed to fetch attachment data for %s: %s", attachment.name, exc
            )
            return attachment
        return dataclasses.replace(
            attachment,
            data=base64.b64encode(decoded).decode("ascii"),
            size=len(decoded),
        )

    def _is_allowed(self, attachment: Attachment) -> bool:
        if not self.config.attachment_types:
            return True
        parts = attachment.name.split(".")
        if len(parts) < 2:
            return False
        extension = parts[-1].lower()
        return any(kind.lower() == extension for kind in self.config.attachment_types)