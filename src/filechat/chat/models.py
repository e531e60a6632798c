"""Response model returned by the chat router."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from filechat.classification.models import SessionKind
from filechat.index.models import FileEntry
from filechat.organization.models import ActionResult, CollectResult, SuggestionPlan
from filechat.search.models import SearchMode, SearchResult

ResponseKind = Literal["reply", "search", "files", "session", "error"]


class ChatResponse(BaseModel):
    """Everything a presentation shell needs to render one chat turn.

    Attributes:
        kind: Which part of the response is populated.
        message: Text to show the user.
        results: Search results for ``search`` turns.
        mode: Search mode that produced ``results``.
        files: Recent files for ``files`` turns.
        plan: Suggestion plan under review in an organize session.
        action_results: Per-action outcome after organize suggestions ran.
        collect_result: Outcome after a collect session moved files.
        session: Session that owns the next message, if any.
        error: Set when the turn failed.
    """

    kind: ResponseKind = "reply"
    message: str = ""
    results: List[SearchResult] = Field(default_factory=list)
    mode: Optional[SearchMode] = None
    files: List[FileEntry] = Field(default_factory=list)
    plan: Optional[SuggestionPlan] = None
    action_results: List[ActionResult] = Field(default_factory=list)
    collect_result: Optional[CollectResult] = None
    session: Optional[SessionKind] = None
    error: Optional[str] = None


__all__ = ["ChatResponse", "ResponseKind"]
