"""Shared types for the multi-turn sessions."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from filechat.organization.models import FileAction, SuggestionPlan

SessionEffectKind = Literal["none", "execute_suggestions", "execute_collect"]


class OrganizeStep(str, Enum):
    INACTIVE = "inactive"
    HEARING = "hearing"
    SUGGESTING = "suggesting"
    CONFIRM = "confirm"
    EXECUTING = "executing"


class CollectStep(str, Enum):
    INACTIVE = "inactive"
    NAMING = "naming"
    EXISTING_FOLDER = "existing_folder"
    LOCATION = "location"
    CONFIRM = "confirm"


class CollectRequest(BaseModel):
    """Executor input for gathering a snapshot of files into one folder."""

    model_config = ConfigDict(frozen=True)

    base_path: Path
    folder_name: str
    files: Tuple[Path, ...]


class SessionReply(BaseModel):
    """What a session says back, plus any filesystem work the caller must run.

    Attributes:
        message: Text to show the user.
        effect: Work the caller must run before completing the session.
        actions: Executor actions for ``execute_suggestions``.
        collect: Executor request for ``execute_collect``.
        plan: Suggestion plan currently under review, if any.
        error: Set when the turn failed.
        ended: Whether the session is no longer active after this reply.
    """

    message: str
    effect: SessionEffectKind = "none"
    actions: List[FileAction] = Field(default_factory=list)
    collect: Optional[CollectRequest] = None
    plan: Optional[SuggestionPlan] = None
    error: Optional[str] = None
    ended: bool = False


__all__ = [
    "SessionEffectKind",
    "OrganizeStep",
    "CollectStep",
    "CollectRequest",
    "SessionReply",
]
