"""Moving items from a source to a target, optionally through a pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

FETCH_LIMIT = 100


class SyncError(RuntimeError):
    """A sync step failed."""


@dataclass
class SyncOptions:
    """How a sync run behaves."""

    since: datetime | None = None
    dry_run: bool = False
    output_dir: str = ""


class Syncer:
    """Fetches from a source, transforms, and exports to a target.

    A source offers ``name`` and ``fetch(since, limit)``; a target offers
    ``name`` and ``export(items, output_dir)``; a pipeline offers
    ``transform(items)``.
    """

    def __init__(self, pipeline: Any = None) -> None:
        self.pipeline = pipeline

    def sync(self, source: Any, target: Any, options: SyncOptions | None = None) -> None:
        """Run one sync; raises :class:`SyncError` if a step fails."""
        if options is None:
            options = SyncOptions()
        print(f"Syncing from {source.name} to {target.name}...")

        try:
            items = list(source.fetch(options.since, FETCH_LIMIT))
        except Exception as exc:
            raise SyncError(f"failed to fetch from source: {exc}") from exc
        print(f"Found {len(items)} items")

        if self.pipeline is not None:
            try:
                items = list(self.pipeline.transform(items))
            except Exception as exc:
                raise SyncError(f"failed to transform items: {exc}") from exc
            print(f"Transformed to {len(items)} items")

        if options.dry_run:
            print(f"DRY RUN: Would export {len(items)} items to {options.output_dir}")
            return

        try:
            target.export(items, options.output_dir)
        except Exception as exc:
            raise SyncError(f"failed to export to target: {exc}") from exc
        print(f"Successfully exported {len(items)} items")