"""Convert e-mail messages and threads into Markdown notes for Obsidian and Logseq."""

__version__ = "0.1.0"

__all__ = [
    "converter",
    "filenames",
    "logseq",
    "mock",
    "models",
    "obsidian",
    "processor",
    "query",
    "syncer",
    "threads",
]