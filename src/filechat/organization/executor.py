"""Executor applying organization actions to disk."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from filechat.index.models import FileEntry
from filechat.index.scanner import FilesystemIndex

from .models import ActionResult, CollectResult, FileAction

LOGGER = logging.getLogger(__name__)


class ActionExecutor:
    """Apply actions in order, one failure at a time, never overwriting.

    Each action is checked against the disk immediately before it runs.
    Failures are reported per action and never stop the batch. The index
    cache is invalidated once per batch.
    """

    def __init__(self, index: Optional[FilesystemIndex] = None) -> None:
        self._index = index

    def execute(self, actions: Iterable[FileAction]) -> list[ActionResult]:
        """Apply ``actions`` strictly in order.

        Returns:
            list[ActionResult]: One result per action, in input order.
        """
        results: list[ActionResult] = []
        try:
            for action in actions:
                try:
                    result = self._apply(action)
                except (OSError, ValueError) as exc:
                    LOGGER.warning("%s failed for %s: %s", action.action, action.source_path, exc)
                    result = ActionResult(
                        action=action.action,
                        status="failed",
                        source=action.source_path,
                        message=str(exc),
                    )
                results.append(result)
        finally:
            self._invalidate()
        return results

    def execute_collect(
        self,
        base_path: Path,
        folder_name: str,
        files: Sequence[Union[Path, FileEntry]],
    ) -> CollectResult:
        """Move ``files`` into ``base_path / folder_name``.

        Files whose name (case-insensitive) is already present in the folder
        are left where they are and counted as skipped, as are files whose
        move fails. Files that no longer exist are counted as missing.
        """
        target_dir = base_path / folder_name
        result = CollectResult(target_path=target_dir)
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            present = {child.name.lower() for child in target_dir.iterdir()}
        except OSError as exc:
            LOGGER.warning("Cannot prepare %s: %s", target_dir, exc)
            present = None

        try:
            for item in files:
                source = item.path if isinstance(item, FileEntry) else Path(item)
                if not source.exists():
                    result.missing_count += 1
                    continue
                if present is None:
                    result.skipped_count += 1
                    result.failures.append(f"{source.name}: target folder unavailable")
                    continue
                key = source.name.lower()
                if key in present:
                    result.skipped_count += 1
                    result.duplicates.append(source.name)
                    continue
                try:
                    shutil.move(str(source), str(target_dir / source.name))
                except OSError as exc:
                    LOGGER.warning("Could not move %s: %s", source, exc)
                    result.skipped_count += 1
                    result.failures.append(f"{source.name}: {exc}")
                    continue
                present.add(key)
                result.moved_count += 1
        finally:
            self._invalidate()

        LOGGER.info(
            "Collected into %s: moved=%d skipped=%d missing=%d",
            target_dir,
            result.moved_count,
            result.skipped_count,
            result.missing_count,
        )
        return result

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #

    def _apply(self, action: FileAction) -> ActionResult:
        if action.action == "create_folder":
            target = _child_path(action.base_path, action.destination)
            if target.exists():
                return ActionResult(
                    action="create_folder",
                    status="skipped",
                    destination=target,
                    message="Folder already exists.",
                )
            target.mkdir(parents=True)
            return ActionResult(action="create_folder", status="done", destination=target)

        source = action.source_path
        if source is None or not source.exists():
            return ActionResult(
                action=action.action,
                status="failed",
                source=source,
                message="Source no longer exists.",
            )

        if action.action == "delete":
            return ActionResult(
                action="delete",
                status="skipped",
                source=source,
                message="Deletions are left for you to do by hand.",
            )

        if action.action == "move":
            folder = _child_path(action.base_path, action.destination)
            folder.mkdir(parents=True, exist_ok=True)
            target = folder / source.name
        else:
            new_name = action.destination
            if source.is_file() and source.suffix and not Path(new_name).suffix:
                new_name = f"{new_name}{source.suffix}"
            target = _child_path(source.parent, new_name)

        if target == source:
            return ActionResult(
                action=action.action,
                status="skipped",
                source=source,
                destination=target,
                message="Already in place.",
            )
        if target.exists():
            return ActionResult(
                action=action.action,
                status="failed",
                source=source,
                destination=target,
                message=f"{target.name} already exists.",
            )
        shutil.move(str(source), str(target))
        LOGGER.info("%s %s -> %s", action.action, source, target)
        return ActionResult(action=action.action, status="done", source=source, destination=target)

    def _invalidate(self) -> None:
        if self._index is not None:
            self._index.invalidate()


def _child_path(base: Path, name: str) -> Path:
    """Return ``base / name``, refusing names that leave ``base``."""
    if not name or name in {".", ".."} or Path(name).is_absolute() or "/" in name or "\\" in name:
        raise ValueError(f"Invalid name: {name!r}")
    return base / name


__all__ = ["ActionExecutor"]
