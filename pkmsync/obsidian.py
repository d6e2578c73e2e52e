"""Export of items as Obsidian notes."""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

from pkmsync.filenames import sanitize_filename
from pkmsync.models import Attendee, FilePreview, Item, Thread


def _rfc3339(moment: datetime) -> str:
    base = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    offset = moment.utcoffset()
    if not offset:
        return base + "Z"
    total = int(offset.total_seconds())
    sign = "+" if total >= 0 else "-"
    hours, minutes = divmod(abs(total) // 60, 60)
    return f"{base}{sign}{hours:02d}:{minutes:02d}"


def _attendee_name(attendee: Any) -> str:
    if isinstance(attendee, Attendee):
        return attendee.display_name()
    if isinstance(attendee, Mapping):
        name = attendee.get("DisplayName")
        if isinstance(name, str) and name:
            return name
        email = attendee.get("Email")
        if isinstance(email, str):
            return email
    return str(attendee)


def _format_attendees(attendees: Any) -> str:
    if not isinstance(attendees, (list, tuple)):
        return f"attendees: {attendees}\n"
    if not attendees:
        return ""
    lines = ["attendees:\n"]
    lines += [f'  - "[[{_attendee_name(attendee)}]]"\n' for attendee in attendees]
    return "".join(lines)


def _attachment_lines(item: Item) -> list[str]:
    return [
        f"- [{a.name}]({a.url})\n" if a.url else f"- {a.name}\n"
        for a in item.attachments
    ]


class ObsidianTarget:
    """Writes items as Markdown notes with YAML front matter."""

    name = "obsidian"
    file_extension = ".md"

    def __init__(self) -> None:
        self.vault_path = ""
        self.template_dir = ""
        self.daily_notes_format = "%Y-%m-%d"

    def configure(self, config: Mapping[str, Any]) -> None:
        """Apply the string settings ``vault_path``, ``template_dir`` and ``daily_notes_format``."""
        for key in ("vault_path", "template_dir", "daily_notes_format"):
            value = config.get(key)
            if isinstance(value, str):
                setattr(self, key, value)

    def export(self, items: Iterable[Item], output_dir: str) -> None:
        """Write every item as a note inside ``output_dir``."""
        for item in items:
            file_path = Path(output_dir, self.format_filename(item.title))
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(self.format_content(item), encoding="utf-8")

    def format_filename(self, title: str) -> str:
        """File name of the note for ``title``."""
        return sanitize_filename(title) + self.file_extension

    def format_metadata(self, metadata: Mapping[str, Any]) -> str:
        """Render metadata as YAML lines; attendees become wiki links."""
        return "".join(
            _format_attendees(value) if key == "attendees" else f"{key}: {value}\n"
            for key, value in metadata.items()
        )

    def format_content(self, item: Item) -> str:
        """Render an item, or a thread with its messages, as note text."""
        if isinstance(item, Thread):
            return self._thread_content(item)
        return self._basic_content(item)

    def _front_matter(self, item: Item, extra: list[str]) -> list[str]:
        parts = [
            "---\n",
            self.format_metadata(item.metadata),
            f"id: {item.id}\n",
            f"source: {item.source_type}\n",
            f"type: {item.item_type}\n",
            f"created: {_rfc3339(item.created_at)}\n",
            *extra,
        ]
        if item.tags:
            parts.append("tags:\n")
            parts += [f"  - {tag}\n" for tag in item.tags]
        parts.append("---\n\n")
        return parts

    def _basic_content(self, item: Item) -> str:
        parts = self._front_matter(item, [])
        parts.append(f"# {item.title}\n\n")
        if item.content:
            parts.append(item.content + "\n\n")
        if item.attachments:
            parts.append("## Attachments\n\n")
            parts += _attachment_lines(item)
            parts.append("\n")
        if item.links:
            parts.append("## Links\n\n")
            parts += [f"- [{link.title}]({link.url})\n" for link in item.links]
            parts.append("\n")
        return "".join(parts)

    def _thread_content(self, thread: Thread) -> str:
        parts = self._front_matter(thread, [f"message_count: {len(thread.messages)}\n"])
        parts.append(f"# {thread.title}\n\n")
        if thread.content:
            parts += ["## Thread Summary\n\n", thread.content, "\n\n"]
        if thread.messages:
            parts.append("## Messages\n\n")
            parts += [
                self._thread_message(number, message)
                for number, message in enumerate(thread.messages, start=1)
            ]
        return "".join(parts)

    @staticmethod
    def _thread_message(number: int, message: Item) -> str:
        parts = [
            f"### Message {number}: {message.title}\n\n",
            f"**From:** {message.source_type}  \n",
            f"**Created:** {_rfc3339(message.created_at)}  \n",
        ]
        if message.tags:
            parts.append(f"**Tags:** {', '.join(message.tags)}  \n")
        parts.append("\n")
        if message.content:
            parts.append(message.content + "\n\n")
        if message.attachments:
            parts.append("**Attachments:**\n")
            parts += _attachment_lines(message)
            parts.append("\n")
        parts.append("---\n\n")
        return "".join(parts)

    def preview(self, items: Iterable[Item], output_dir: str) -> list[FilePreview]:
        """Describe what :meth:`export` would do, without writing anything."""
        previews = []
        for item in items:
            file_path = os.path.join(output_dir, self.format_filename(item.title))
            content = self.format_content(item)
            existing = ""
            conflict = False
            try:
                existing = Path(file_path).read_text(encoding="utf-8")
                conflict = existing != content
            except OSError:
                pass
            if not existing:
                action = "create"
            else:
                action = "update" if conflict else "skip"
            previews.append(
                FilePreview(
                    file_path=file_path,
                    action=action,
                    content=content,
                    existing_content=existing,
                    conflict=conflict,
                )
            )
        return previews