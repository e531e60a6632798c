"""Text normalization helpers shared by search and summarization."""

from __future__ import annotations

import re

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F]")
_BLANK_RUNS = re.compile(r"[ \t]+")
_LINE_RUNS = re.compile(r"\n{3,}")


def normalize_extracted_text(text: str, *, limit: int = 8_000) -> str:
    """Return extracted document text trimmed for a prompt.

    Control characters are dropped, runs of spaces and blank lines are
    collapsed, and the result is cut to ``limit`` characters when ``limit``
    is positive.
    """
    cleaned = _CONTROL_CHARS.sub(" ", text.replace("\r\n", "\n"))
    cleaned = _BLANK_RUNS.sub(" ", cleaned)
    cleaned = _LINE_RUNS.sub("\n\n", cleaned).strip()
    if limit > 0:
        return cleaned[:limit]
    return cleaned


def query_keywords(query: str) -> list[str]:
    """Split ``query`` into lower-case whitespace-separated keywords."""
    return query.lower().split()


__all__ = ["normalize_extracted_text", "query_keywords"]
