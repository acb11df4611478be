"""Shape fetched files into the bounded text handed to the analysis engine.

These bounds are independent of any truncation an adapter applied at fetch
time (Azure caps file content at 50,000 characters). The ChangedFile objects
themselves are never modified.
"""

from __future__ import annotations

from typing import Iterable

from reviewbridge_core.models import ChangedFile, NormalizedFile

MAX_CHARS_PER_FILE = 10000
MAX_FILES = 50
NO_CONTENT = "(No content available)"


def normalize_file(file: ChangedFile, max_chars: int = MAX_CHARS_PER_FILE) -> NormalizedFile:
    """Prefer the diff, fall back to full content, else mark the file as empty."""
    if file.patch:
        return NormalizedFile(file.filename, file.status, file.patch[:max_chars], kind="diff")
    if file.content:
        return NormalizedFile(file.filename, file.status, file.content[:max_chars], kind="content")
    return NormalizedFile(file.filename, file.status, NO_CONTENT, kind=None)


def normalize_files(
    files: Iterable[ChangedFile],
    max_files: int = MAX_FILES,
    max_chars: int = MAX_CHARS_PER_FILE,
) -> list[NormalizedFile]:
    """Normalize at most ``max_files`` files; later files are dropped entirely."""
    normalized = []
    for i, file in enumerate(files):
        if i >= max_files:
            break
        normalized.append(normalize_file(file, max_chars))
    return normalized
