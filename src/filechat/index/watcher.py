"""Watchdog integration that invalidates the index on filesystem changes."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .models import ChangeEvent

LOGGER = logging.getLogger(__name__)


class IndexWatcher:
    """Monitor the watched roots and report each change to a callback.

    The callback normally is :meth:`FilesystemIndex.handle_change`; it runs on
    the observer thread, so it must limit itself to cheap, atomic work.
    """

    def __init__(
        self,
        roots: Iterable[Path],
        callback: Callable[[ChangeEvent], None],
        *,
        skip_dirs: Iterable[str] = (),
    ) -> None:
        self._roots = [Path(root).expanduser() for root in roots]
        self._callback = callback
        self._skip_dirs = frozenset(skip_dirs)
        self._observer: Observer | None = None

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        """Schedule every existing root and start the observer thread.

        Raises:
            RuntimeError: If the watcher is already running.
        """
        if self._observer is not None:
            raise RuntimeError("IndexWatcher is already running.")

        observer = Observer()
        for root in self._roots:
            if not root.is_dir():
                continue
            handler = _ChangeHandler(root, self._callback, self._skip_dirs)
            observer.schedule(handler, str(root), recursive=True)
        observer.start()
        self._observer = observer
        LOGGER.info("Watching %d root(s) for changes.", len(self._roots))

    def stop(self) -> None:
        """Stop the observer thread if it is running."""
        observer = self._observer
        if observer is None:
            return
        self._observer = None
        observer.stop()
        observer.join(timeout=5)


class _ChangeHandler(FileSystemEventHandler):
    """Translate watchdog events into :class:`ChangeEvent` callbacks."""

    def __init__(
        self,
        root: Path,
        callback: Callable[[ChangeEvent], None],
        skip_dirs: frozenset[str],
    ) -> None:
        self._root = root
        self._callback = callback
        self._skip_dirs = skip_dirs

    def on_any_event(self, event: FileSystemEvent) -> None:
        """Forward created/modified/moved/deleted events that pass the filters."""
        if event.event_type in {"opened", "closed", "closed_no_write"}:
            return
        path = Path(str(event.src_path))
        if not self.accepts(path):
            return
        self._callback(
            ChangeEvent(event_kind=event.event_type, file_name=path.name, root=self._root)
        )

    def accepts(self, path: Path) -> bool:
        """Return whether ``path`` is outside hidden and deny-listed folders."""
        try:
            parts = path.relative_to(self._root).parts
        except ValueError:
            parts = path.parts
        return not any(part.startswith(".") or part in self._skip_dirs for part in parts)


__all__ = ["IndexWatcher"]
