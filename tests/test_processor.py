import base64
from types import SimpleNamespace

from pkmsync.models import (
    GmailMessage,
    GmailSourceConfig,
    MessagePart,
    MessagePartBody,
)
from pkmsync.processor import ContentProcessor


def _b64(text: bytes) -> str:
    return base64.urlsafe_b64encode(text).decode("ascii")


def _part(mime, text):
    return MessagePart(mime_type=mime, body=MessagePartBody(data=_b64(text)))


def _file(name, attachment_id, size=10):
    return MessagePart(
        mime_type="application/octet-stream",
        filename=name,
        body=MessagePartBody(attachment_id=attachment_id, size=size),
    )


def test_plain_text_body_is_decoded():
    msg = GmailMessage(
        id="m",
        payload=MessagePart(
            mime_type="text/plain",
            body=MessagePartBody(data="VGhpcyBpcyBhIHBlcnNvbmFsIGVtYWls"),
        ),
    )
    assert ContentProcessor(GmailSourceConfig()).process_email_body(msg) == (
        "This is a personal email"
    )


def test_html_body_preferred_over_text():
    msg = GmailMessage(
        id="m",
        payload=MessagePart(
            mime_type="multipart/alternative",
            parts=[_part("text/plain", b"plain version"), _part("text/html", b"<p>rich</p>")],
        ),
    )
    assert ContentProcessor(GmailSourceConfig()).process_email_body(msg) == "<p>rich</p>"


def test_standard_base64_fallback():
    raw = b"\xfb\xff plus and slash"
    data = base64.b64encode(raw).decode("ascii")
    assert "+" in data or "/" in data
    msg = GmailMessage(
        id="m",
        payload=MessagePart(mime_type="text/plain", body=MessagePartBody(data=data)),
    )
    body = ContentProcessor(GmailSourceConfig()).process_email_body(msg)
    assert body.endswith(" plus and slash")


def test_snippet_fallback_and_missing_payload():
    processor = ContentProcessor(GmailSourceConfig())
    msg = GmailMessage(id="m", snippet="just a snippet", payload=MessagePart(mime_type="image/png"))
    assert processor.process_email_body(msg) == "just a snippet"
    assert processor.process_email_body(GmailMessage(id="m", snippet="s")) == ""


def _attachment_message():
    return GmailMessage(
        id="msg",
        payload=MessagePart(
            mime_type="multipart/mixed",
            parts=[
                _part("text/plain", b"body"),
                _file("document.pdf", "a1", 1024),
                MessagePart(mime_type="multipart/mixed", parts=[_file("image.JPG", "a2")]),
                _file("README", "a3"),
            ],
        ),
    )


def test_attachments_need_download_flag():
    processor = ContentProcessor(GmailSourceConfig())
    assert processor.process_email_attachments(_attachment_message()) == []


def test_attachments_extracted_recursively_in_order():
    processor = ContentProcessor(GmailSourceConfig(download_attachments=True))
    attachments = processor.process_email_attachments(_attachment_message())
    assert [a.name for a in attachments] == ["document.pdf", "image.JPG", "README"]
    assert attachments[0].id == "a1"
    assert attachments[0].size == 1024


def test_attachments_filtered_by_extension():
    config = GmailSourceConfig(download_attachments=True, attachment_types=["PDF", "jpg"])
    attachments = ContentProcessor(config).process_email_attachments(_attachment_message())
    assert [a.name for a in attachments] == ["document.pdf", "image.JPG"]


class _Service:
    def __init__(self, payloads):
        self.payloads = payloads
        self.calls = []

    def get_attachment(self, message_id, attachment_id):
        self.calls.append((message_id, attachment_id))
        payload = self.payloads[attachment_id]
        if isinstance(payload, Exception):
            raise payload
        return SimpleNamespace(data=_b64(payload))


def test_attachment_data_fetched_from_service():
    raw = b"pdf bytes here"
    service = _Service({"a1": raw, "a2": RuntimeError("boom"), "a3": b""})
    config = GmailSourceConfig(download_attachments=True)
    attachments = ContentProcessor(config, service).process_email_attachments(
        _attachment_message()
    )
    assert service.calls == [("msg", "a1"), ("msg", "a2"), ("msg", "a3")]
    assert attachments[0].data == base64.b64encode(raw).decode("ascii")
    assert attachments[0].size == len(raw)
    assert attachments[1].data == ""
    assert len(attachments) == 3