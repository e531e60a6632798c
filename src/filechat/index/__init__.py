"""Filesystem index over the watched roots."""

from .models import ChangeEvent, DirectoryListing, FileEntry, FolderEntry, FolderNode
from .scanner import FilesystemIndex

__all__ = [
    "ChangeEvent",
    "DirectoryListing",
    "FileEntry",
    "FolderEntry",
    "FolderNode",
    "FilesystemIndex",
]
