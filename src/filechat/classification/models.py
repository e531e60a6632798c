"""Structured intents produced by the classifiers."""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

ChatAction = Literal["search", "list_files", "organize", "collect", "chat"]
SessionAction = Literal[
    "confirm",
    "change",
    "change_name",
    "change_location",
    "cancel",
    "provide_name",
    "provide_location",
    "other",
]
SessionKind = Literal["organize", "collect"]
IntentSource = Literal["ai", "fallback"]


class _IntentModel(BaseModel):
    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ChatIntent(_IntentModel):
    """Routing decision for a chat message outside any session.

    Attributes:
        action: What the router should do.
        query: Search query for ``search``.
        file_type: Optional extension filter for ``list_files``.
        folder_name: Folder name already mentioned for ``collect``.
        reply: Conversational answer for ``chat``.
        source: Whether the language service or the keyword fallback decided.
    """

    action: ChatAction = "chat"
    query: Optional[str] = None
    file_type: Optional[str] = None
    folder_name: Optional[str] = None
    reply: Optional[str] = None
    source: IntentSource = "ai"


class ChatContext(BaseModel):
    """Facts about the conversation that help routing."""

    result_count: int = 0
    current_folder: Optional[Path] = None


class SessionIntent(_IntentModel):
    """Decision for a message received while a session is active.

    Attributes:
        action: Session-level action.
        folder_name: Proposed folder name, if the message carried one.
        location: Proposed location, if the message carried one.
        source: Whether the language service or the keyword fallback decided.
    """

    action: SessionAction = "other"
    folder_name: Optional[str] = None
    location: Optional[str] = None
    source: IntentSource = "ai"


__all__ = [
    "ChatAction",
    "SessionAction",
    "SessionKind",
    "IntentSource",
    "ChatIntent",
    "ChatContext",
    "SessionIntent",
]
