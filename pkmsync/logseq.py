"""Export of items as Logseq pages."""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

from pkmsync.filenames import sanitize_filename
from pkmsync.models import FilePreview, Item

_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def _journal_date(moment: datetime) -> str:
    """Date in the page-reference style used for the ``created`` property."""
    return f"{_MONTHS[moment.month - 1]} {moment.day}nd, {moment.year:04d}"


def _file_action(file_path: str, new_content: str) -> tuple[str, str]:
    """Decide whether writing ``new_content`` creates, skips or updates a file."""
    try:
        existing = Path(file_path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return "create", ""
    if existing == new_content:
        return "skip", existing
    return "update", existing


class LogseqTarget:
    """Writes items as Markdown pages with Logseq block properties."""

    name = "logseq"
    file_extension = ".md"

    def __init__(self) -> None:
        self.graph_path = ""
        self.journal_path = ""
        self.pages_path = ""

    def configure(self, config: Mapping[str, Any]) -> None:
        """Apply settings; ``graph_path`` sets the graph and its sub-folders."""
        graph_path = config.get("graph_path")
        if isinstance(graph_path, str):
            self.graph_path = graph_path
            self.journal_path = os.path.join(graph_path, "journals")
            self.pages_path = os.path.join(graph_path, "pages")

    def export(self, items: Iterable[Item], output_dir: str) -> None:
        """Write every item as a page directly inside ``output_dir``."""
        for item in items:
            file_path = Path(output_dir, self.format_filename(item.title))
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(self.format_content(item), encoding="utf-8")

    def format_filename(self, title: str) -> str:
        """File name of the page for ``title``."""
        return sanitize_filename(title) + self.file_extension

    def format_metadata(self, metadata: Mapping[str, Any]) -> str:
        """Render metadata as Logseq property blocks."""
        return "".join(f"- {key}:: {value}\n" for key, value in metadata.items())

    def format_content(self, item: Item) -> str:
        """Render an item as the text of a Logseq page."""
        parts = [
            f"- id:: {item.id}\n",
            f"- source:: {item.source_type}\n",
            f"- type:: {item.item_type}\n",
            f"- created:: [[{_journal_date(item.created_at)}]]\n",
            self.format_metadata(item.metadata),
        ]
        if item.tags:
            parts.append("- tags:: " + ", ".join(f"#{tag}" for tag in item.tags) + "\n")
        parts.append("\n")
        parts.append(f"# {item.title}\n\n")

        if item.content:
            parts.append(item.content + "\n\n")

        if item.attachments:
            parts.append("## Attachments\n")
            for attachment in item.attachments:
                if attachment.url:
                    parts.append(f"- [{attachment.name}]({attachment.url})\n")
                else:
                    parts.append(f"- [[{attachment.name}]]\n")
            parts.append("\n")

        if item.links:
            parts.append("## Links\n")
            parts += [f"- [{link.title}]({link.url})\n" for link in item.links]

        return "".join(parts)

    def preview(self, items: Iterable[Item], output_dir: str) -> list[FilePreview]:
        """Describe what :meth:`export` would do, without writing anything."""
        previews = []
        for item in items:
            file_path = os.path.join(output_dir, self.format_filename(item.title))
            content = self.format_content(item)
            action, existing = _file_action(file_path, content)
            previews.append(
                FilePreview(
                    file_path=file_path,
                    action=action,
                    content=content,
                    existing_content=existing,
                    conflict=False,
                )
            )
        return previews