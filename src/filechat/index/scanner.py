"""Cached filesystem index over the watched roots."""

from __future__ import annotations

import locale
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional

from filechat.config.models import DEFAULT_EXTENSIONS, DEFAULT_SKIP_DIRS, IndexSettings

from .models import ChangeEvent, DirectoryListing, FileEntry, FolderEntry, FolderNode

LOGGER = logging.getLogger(__name__)

ChangeListener = Callable[[ChangeEvent], None]


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def _name_key(name: str) -> tuple[str, str]:
    return locale.strxfrm(name.casefold()), name


def _mtime(timestamp: float) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


class FilesystemIndex:
    """Discover allow-listed files and folders beneath a fixed set of roots.

    The file collection is cached after the first walk and dropped whenever
    :meth:`invalidate` or :meth:`handle_change` runs; the next read walks the
    tree again. Unreadable directories contribute nothing and never abort a walk.
    """

    def __init__(
        self,
        roots: Iterable[Path | str],
        *,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        skip_dirs: Iterable[str] = DEFAULT_SKIP_DIRS,
        folder_depth: int = 3,
        recent_limit: int = 50,
    ) -> None:
        self._roots = [Path(root).expanduser() for root in roots]
        self._extensions = frozenset(ext.lower().lstrip(".") for ext in extensions)
        self._skip_dirs = frozenset(skip_dirs)
        self._folder_depth = folder_depth
        self._recent_limit = recent_limit
        self._cache: Optional[list[FileEntry]] = None
        self._generation = 0
        self._listener: Optional[ChangeListener] = None

    @classmethod
    def from_settings(cls, settings: IndexSettings) -> "FilesystemIndex":
        return cls(
            settings.roots,
            extensions=settings.extensions,
            skip_dirs=settings.skip_dirs,
            folder_depth=settings.folder_depth,
            recent_limit=settings.recent_limit,
        )

    @property
    def roots(self) -> list[Path]:
        return list(self._roots)

    @property
    def extensions(self) -> frozenset[str]:
        return self._extensions

    @property
    def skip_dirs(self) -> frozenset[str]:
        return self._skip_dirs

    @property
    def is_populated(self) -> bool:
        return self._cache is not None

    # ------------------------------------------------------------------ #
    # Reads                                                              #
    # ------------------------------------------------------------------ #

    def scan(self) -> list[FileEntry]:
        """Return every allow-listed file, most recently modified first."""
        cached = self._cache
        if cached is not None:
            return list(cached)

        generation = self._generation
        started = time.monotonic()
        entries: list[FileEntry] = []
        for root in self._existing_roots():
            entries.extend(self._walk_files(root))
        entries.sort(key=lambda entry: entry.modified_at, reverse=True)
        if generation == self._generation:
            self._cache = entries
        else:
            LOGGER.debug("Index changed during the walk; result not cached")
        LOGGER.info(
            "Scanned %d files in %.0fms", len(entries), (time.monotonic() - started) * 1000
        )
        return list(entries)

    def recent(
        self, limit: Optional[int] = None, *, extension: Optional[str] = None
    ) -> list[FileEntry]:
        """Return the most recently modified files, optionally of one extension."""
        files = self.scan()
        if extension:
            wanted = extension.lower().lstrip(".")
            files = [entry for entry in files if entry.extension == wanted]
        return files[: limit if limit is not None else self._recent_limit]

    def scan_folders(self, max_depth: Optional[int] = None) -> list[FolderEntry]:
        """Return folders under the roots down to ``max_depth`` levels."""
        depth = max_depth if max_depth is not None else self._folder_depth
        folders: list[FolderEntry] = []
        for root in self._existing_roots():
            folders.extend(self._walk_folders(root, 1, depth))
        return folders

    def list_children(self, path: Path | str, *, include_all: bool = False) -> DirectoryListing:
        """Return the immediate folders and files of ``path``.

        Args:
            path: Directory to list.
            include_all: List every regular file instead of only allow-listed ones.
        """
        directory = Path(path).expanduser()
        listing = DirectoryListing()
        for child in self._children(directory):
            try:
                if child.is_dir() and not child.is_symlink():
                    if child.name in self._skip_dirs:
                        continue
                    stat = child.stat()
                    listing.folders.append(
                        FolderEntry(name=child.name, path=child, modified_at=_mtime(stat.st_mtime))
                    )
                elif child.is_file():
                    entry = self._file_entry(child, require_allowed=not include_all)
                    if entry is not None:
                        listing.files.append(entry)
            except OSError as exc:
                LOGGER.debug("Skipping %s: %s", child, exc)
        listing.folders.sort(key=lambda folder: _name_key(folder.name))
        listing.files.sort(key=lambda entry: entry.modified_at, reverse=True)
        return listing

    def folder_tree(self) -> list[FolderNode]:
        """Return one node per existing root with its immediate subfolders."""
        return [
            FolderNode(name=root.name, path=root, children=self.expand_folder(root))
            for root in self._existing_roots()
        ]

    def expand_folder(self, path: Path | str) -> list[FolderNode]:
        """Return the unexpanded child nodes of ``path``."""
        listing = self.list_children(path)
        return [FolderNode(name=folder.name, path=folder.path) for folder in listing.folders]

    # ------------------------------------------------------------------ #
    # Invalidation                                                       #
    # ------------------------------------------------------------------ #

    def invalidate(self) -> None:
        """Drop the cached scan; the next read walks the tree again."""
        self._generation += 1
        self._cache = None

    def set_listener(self, listener: Optional[ChangeListener]) -> None:
        """Register a callable that receives forwarded change events."""
        self._listener = listener

    def handle_change(self, event: ChangeEvent) -> None:
        """Clear the cache for a watcher event and forward it to the listener."""
        self._generation += 1
        self._cache = None
        LOGGER.debug("Index invalidated by %s on %s", event.event_kind, event.file_name)
        listener = self._listener
        if listener is not None:
            listener(event)

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #

    def _existing_roots(self) -> Iterator[Path]:
        for root in self._roots:
            if root.is_dir():
                yield root

    def _children(self, directory: Path) -> list[Path]:
        try:
            children = sorted(directory.iterdir(), key=lambda child: child.name)
        except OSError as exc:
            LOGGER.debug("Cannot read %s: %s", directory, exc)
            return []
        return [child for child in children if not _is_hidden(child.name)]

    def _walk_files(self, directory: Path) -> Iterator[FileEntry]:
        for child in self._children(directory):
            try:
                if child.is_dir():
                    if child.is_symlink() or child.name in self._skip_dirs:
                        continue
                    yield from self._walk_files(child)
                elif child.is_file():
                    entry = self._file_entry(child, require_allowed=True)
                    if entry is not None:
                        yield entry
            except OSError as exc:
                LOGGER.debug("Skipping %s: %s", child, exc)

    def _walk_folders(self, directory: Path, depth: int, max_depth: int) -> Iterator[FolderEntry]:
        if depth > max_depth:
            return
        for child in self._children(directory):
            try:
                if not child.is_dir() or child.is_symlink() or child.name in self._skip_dirs:
                    continue
                stat = child.stat()
            except OSError:
                continue
            yield FolderEntry(name=child.name, path=child, modified_at=_mtime(stat.st_mtime))
            yield from self._walk_folders(child, depth + 1, max_depth)

    def _file_entry(self, path: Path, *, require_allowed: bool) -> Optional[FileEntry]:
        extension = path.suffix.lower().lstrip(".")
        if require_allowed and extension not in self._extensions:
            return None
        stat = path.stat()
        return FileEntry(
            name=path.name,
            path=path,
            extension=extension,
            size=stat.st_size,
            modified_at=_mtime(stat.st_mtime),
        )


__all__ = ["FilesystemIndex", "ChangeListener"]
