"""Organization suggestion and action data models."""

from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from filechat.index.models import FileEntry, FolderEntry

SuggestionAction = Literal["move", "rename", "delete", "create_folder"]
ActionStatus = Literal["done", "skipped", "failed"]


class Suggestion(BaseModel):
    """One proposed change produced by the language service.

    Attributes:
        action: Kind of change.
        target: Entry name or snapshot index the change applies to.
        destination: Folder name for move/create_folder, new name for rename.
        reason: Advisory explanation shown to the user.
        path: Snapshot path ``target`` resolved to; ``None`` for create_folder.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    action: SuggestionAction
    target: str = ""
    destination: Optional[str] = None
    reason: Optional[str] = None
    path: Optional[Path] = None

    @field_validator("target", mode="before")
    @classmethod
    def _coerce_target(cls, value: object) -> object:
        if value is None:
            return ""
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class SuggestionPlan(BaseModel):
    """Suggestions for one folder together with the snapshot they refer to."""

    model_config = ConfigDict(frozen=True)

    folder_path: Path
    preferences: str
    summary: str = ""
    suggestions: Tuple[Suggestion, ...] = ()
    files: Tuple[FileEntry, ...] = ()
    folders: Tuple[FolderEntry, ...] = ()


class SuggestionResult(BaseModel):
    """A suggestion plan or the reason none could be produced."""

    plan: Optional[SuggestionPlan] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.plan is not None and self.error is None


class FileAction(BaseModel):
    """Executor input: one filesystem mutation.

    Attributes:
        action: Mutation kind.
        source_path: Existing entry for move/rename/delete.
        destination: Folder name (create_folder/move) or new name (rename).
        base_path: Folder the destination is resolved against.
    """

    model_config = ConfigDict(frozen=True)

    action: SuggestionAction
    source_path: Optional[Path] = None
    destination: str = ""
    base_path: Path


class ActionResult(BaseModel):
    """Outcome of one executed action."""

    action: SuggestionAction
    status: ActionStatus
    source: Optional[Path] = None
    destination: Optional[Path] = None
    message: str = ""


class CollectResult(BaseModel):
    """Outcome of gathering files into one folder.

    Attributes:
        target_path: Folder the files were collected into.
        moved_count: Files moved.
        skipped_count: Files left in place because of a name collision or a failed move.
        missing_count: Input files that no longer existed.
        duplicates: Names skipped because the folder already held them.
        failures: Messages for moves that failed.
    """

    target_path: Path
    moved_count: int = 0
    skipped_count: int = 0
    missing_count: int = 0
    duplicates: List[str] = Field(default_factory=list)
    failures: List[str] = Field(default_factory=list)


__all__ = [
    "SuggestionAction",
    "ActionStatus",
    "Suggestion",
    "SuggestionPlan",
    "SuggestionResult",
    "FileAction",
    "ActionResult",
    "CollectResult",
]
