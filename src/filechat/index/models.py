"""Data models produced by the filesystem index."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FileEntry(BaseModel):
    """An allow-listed file discovered by a scan.

    Attributes:
        name: File name including extension.
        path: Absolute path; unique within one scan.
        extension: Lower-case extension without the leading dot.
        size: Size in bytes.
        modified_at: Last modification time (UTC).
    """

    model_config = ConfigDict(frozen=True)

    name: str
    path: Path
    extension: str
    size: int
    modified_at: datetime


class FolderEntry(BaseModel):
    """A directory discovered by a folder walk or listing."""

    model_config = ConfigDict(frozen=True)

    name: str
    path: Path
    modified_at: Optional[datetime] = None


class DirectoryListing(BaseModel):
    """Single-level contents of a directory."""

    folders: List[FolderEntry] = Field(default_factory=list)
    files: List[FileEntry] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.folders and not self.files


class FolderNode(BaseModel):
    """Browsable folder tree node; ``children`` stays ``None`` until expanded."""

    name: str
    path: Path
    children: Optional[List["FolderNode"]] = None


class ChangeEvent(BaseModel):
    """Filesystem change reported under a watched root."""

    event_kind: str
    file_name: str
    root: Path


__all__ = ["FileEntry", "FolderEntry", "DirectoryListing", "FolderNode", "ChangeEvent"]
