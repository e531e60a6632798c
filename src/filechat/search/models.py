"""Search result models."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

SearchMode = Literal["ai", "local"]

FOLDER_LABEL = "Folder"


class SearchResult(BaseModel):
    """A matched file or folder with its summary.

    Attributes:
        name: Entry name.
        path: Absolute path of the entry.
        kind: ``file`` or ``folder``.
        extension: File extension, ``None`` for folders.
        size: File size in bytes, ``None`` for folders.
        modified_at: Last modification time when known.
        summary: Generated summary for files, fixed label for folders.
        content_length: Extracted characters used for the summary (files only).
        score: Keyword score when produced by the local fallback.
    """

    name: str
    path: Path
    kind: Literal["file", "folder"] = "file"
    extension: Optional[str] = None
    size: Optional[int] = None
    modified_at: Optional[datetime] = None
    summary: str
    content_length: Optional[int] = None
    score: Optional[int] = None


class SearchOutcome(BaseModel):
    """Results of one search, the mode that produced them, or an input error."""

    results: List[SearchResult] = Field(default_factory=list)
    mode: Optional[SearchMode] = None
    error: Optional[str] = None


__all__ = ["SearchMode", "FOLDER_LABEL", "SearchResult", "SearchOutcome"]
