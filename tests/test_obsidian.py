import os
from datetime import datetime, timezone

from pkmsync.models import ZERO_TIME, Attachment, Attendee, Item, Link, Thread
from pkmsync.obsidian import ObsidianTarget


def make_item(**overrides):
    values = dict(
        id="item-1",
        title="Weekly Notes",
        content="Body text",
        source_type="gmail",
        item_type="email",
        created_at=datetime(2006, 1, 2, 15, 4, 5, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return Item(**values)


def test_name_and_extension():
    target = ObsidianTarget()
    assert target.name == "obsidian"
    assert target.format_filename("Plain Title") == "Plain Title.md"


def test_configure():
    target = ObsidianTarget()
    target.configure({"vault_path": "vault", "template_dir": "tpl", "daily_notes_format": 5})
    assert target.vault_path == "vault"
    assert target.template_dir == "tpl"
    assert target.daily_notes_format == "%Y-%m-%d"


def test_basic_front_matter():
    item = make_item(metadata={"thread_id": "t1"}, tags=["work", "inbox"])
    content = ObsidianTarget().format_content(item)
    assert content.startswith(
        "---\nthread_id: t1\nid: item-1\nsource: gmail\ntype: email\n"
        "created: 2006-01-02T15:04:05Z\n"
        "tags:\n  - work\n  - inbox\n---\n\n# Weekly Notes\n\nBody text\n\n"
    )


def test_zero_time_is_rendered():
    content = ObsidianTarget().format_content(make_item(created_at=ZERO_TIME))
    assert "created: 0001-01-01T00:00:00Z\n" in content


def test_attachments_and_links():
    item = make_item(
        attachments=[
            Attachment(name="report.pdf", url="https://example.com/r.pdf"),
            Attachment(name="notes.txt"),
        ],
        links=[Link(url="https://example.com", title="Example")],
    )
    content = ObsidianTarget().format_content(item)
    assert "## Attachments\n\n- [report.pdf](https://example.com/r.pdf)\n- notes.txt\n\n" in content
    assert content.endswith("## Links\n\n- [Example](https://example.com)\n\n")


def test_format_metadata_empty():
    assert ObsidianTarget().format_metadata({}) == ""


def test_attendee_objects_become_wikilinks():
    attendees = [Attendee(email="a@example.com", name="Alice"), Attendee(email="b@example.com")]
    text = ObsidianTarget().format_metadata({"attendees": attendees})
    assert text == 'attendees:\n  - "[[Alice]]"\n  - "[[b@example.com]]"\n'


def test_attendee_mappings_and_plain_values():
    attendees = [
        {"DisplayName": "Carol", "Email": "c@example.com"},
        {"DisplayName": "", "Email": "d@example.com"},
        "e@example.com",
    ]
    text = ObsidianTarget().format_metadata({"attendees": attendees})
    assert text == (
        'attendees:\n  - "[[Carol]]"\n  - "[[d@example.com]]"\n  - "[[e@example.com]]"\n'
    )


def test_attendees_empty_and_scalar():
    target = ObsidianTarget()
    assert target.format_metadata({"attendees": []}) == ""
    assert target.format_metadata({"attendees": "someone"}) == "attendees: someone\n"


def test_thread_content():
    messages = [
        make_item(id="m1", title="First", tags=["a", "b"]),
        make_item(id="m2", title="Second", content="", attachments=[Attachment(name="x.txt")]),
    ]
    thread = Thread(
        id="t1",
        title="Thread title",
        content="Summary",
        source_type="gmail",
        item_type="email_thread",
        created_at=datetime(2006, 1, 2, 15, 4, 5, tzinfo=timezone.utc),
        messages=messages,
    )
    content = ObsidianTarget().format_content(thread)
    assert "message_count: 2\n" in content
    assert "## Thread Summary\n\nSummary\n\n" in content
    assert "### Message 1: First\n\n**From:** gmail  \n" in content
    assert "**Tags:** a, b  \n" in content
    assert "### Message 2: Second\n\n" in content
    assert content.endswith("**Attachments:**\n- x.txt\n\n---\n\n")


def test_export_and_preview(tmp_path):
    target = ObsidianTarget()
    item = make_item()
    first = target.preview([item], str(tmp_path))[0]
    assert first.action == "create"
    assert first.conflict is False
    assert first.file_path == os.path.join(str(tmp_path), "Weekly Notes.md")

    target.export([item], str(tmp_path))
    written = (tmp_path / "Weekly Notes.md").read_text(encoding="utf-8")
    assert written == target.format_content(item)

    same = target.preview([item], str(tmp_path))[0]
    assert same.action == "skip"
    assert same.conflict is False

    changed = target.preview([make_item(content="Changed")], str(tmp_path))[0]
    assert changed.action == "update"
    assert changed.conflict is True
    assert changed.existing_content == written


def test_preview_empty_existing_file_counts_as_create(tmp_path):
    target = ObsidianTarget()
    (tmp_path / "Weekly Notes.md").write_text("", encoding="utf-8")
    preview = target.preview([make_item()], str(tmp_path))[0]
    assert preview.action == "create"
    assert preview.conflict is True