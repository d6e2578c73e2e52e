"""Turning titles and subjects into safe file names."""

from __future__ import annotations

import re

_REPLACEMENTS = {
    "/": "-",
    "\\": "-",
    ":": "-",
    "*": "",
    "?": "",
    '"': "",
    "<": "",
    ">": "",
    "|": "-",
}

_TRANSLATION = str.maketrans(_REPLACEMENTS)
_REPEATED_SPACES = re.compile(r" {2,}")
_WHITESPACE = re.compile(r"\s+")


def sanitize_filename(name: str) -> str:
    """Remove or replace characters that are not allowed in file names."""
    cleaned = name.translate(_TRANSLATION).strip()
    return _REPEATED_SPACES.sub(" ", cleaned)


def sanitize_thread_subject(subject: str, thread_id: str) -> str:
    """A file-name-safe form of a thread subject, or the thread id if none is left."""
    cleaned = _WHITESPACE.sub("-", sanitize_filename(subject))
    return cleaned or thread_id