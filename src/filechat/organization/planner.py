"""Planner that turns user preferences into organization suggestions."""

from __future__ import annotations

import logging
import re
import textwrap
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from pydantic import BaseModel, Field

from filechat.index.models import FileEntry, FolderEntry
from filechat.index.scanner import FilesystemIndex
from filechat.llm.client import RetryingClient
from filechat.llm.models import GenerationRequest
from filechat.llm.parsing import extract_json_object

from .models import FileAction, Suggestion, SuggestionPlan, SuggestionResult

LOGGER = logging.getLogger(__name__)

Entry = Union[FileEntry, FolderEntry]

EMPTY_FOLDER_ERROR = "This folder is empty; there is nothing to organize."

_UNSAFE_NAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')

_PLAN_PROMPT = textwrap.dedent(
    """\
    You help a user reorganize one folder.

    Folder: {folder}
    Contents (index: name [type]):
    {listing}

    User preferences:
    {preferences}

    Propose at most {limit} changes that follow the preferences. Allowed actions:
    - "create_folder": "destination" is the new folder name.
    - "move": "target" is an entry name, "destination" is a folder name inside this folder.
    - "rename": "target" is an entry name, "destination" is the new name.
    - "delete": "target" is an entry name.
    Always explain each change in "reason".

    Answer with one JSON object only:
    {{"summary": "...", "suggestions": [{{"action": "move", "target": "...", "destination": "...", "reason": "..."}}]}}"""  # noqa: E501
)


class _PlanPayload(BaseModel):
    summary: str = ""
    suggestions: list[Suggestion] = Field(default_factory=list)


def parse_plan(text: str) -> _PlanPayload:
    """Validate the first JSON object in ``text`` as a suggestion payload."""
    return _PlanPayload.model_validate(extract_json_object(text))


def sanitize_name(value: str) -> str:
    """Return ``value`` without path separators or characters unsafe in file names."""
    cleaned = _UNSAFE_NAME_CHARS.sub(" ", value).strip(" .")
    return re.sub(r"\s+", " ", cleaned)


class SuggestionPlanner:
    """Request move/rename/delete/create suggestions for a folder."""

    def __init__(
        self,
        index: FilesystemIndex,
        client: RetryingClient,
        *,
        max_suggestions: int = 10,
        temperature: float = 0.3,
    ) -> None:
        self._index = index
        self._client = client
        self._max_suggestions = max_suggestions
        self._temperature = temperature

    def suggest_with_preferences(self, folder_path: Path, preferences: str) -> SuggestionResult:
        """Produce a suggestion plan for ``folder_path``.

        Args:
            folder_path: Folder whose immediate children are reorganized.
            preferences: Free-text preferences gathered from the user.

        Returns:
            SuggestionResult: A plan whose suggestions all reference entries of
            the snapshot taken here, or an error. Service and parse failures
            never yield a partial plan.
        """
        listing = self._index.list_children(folder_path, include_all=True)
        if listing.is_empty:
            return SuggestionResult(error=EMPTY_FOLDER_ERROR)

        entries: list[Entry] = [*listing.folders, *listing.files]
        listing_text = "\n".join(
            f"{position}: {entry.name} [{_entry_label(entry)}]"
            for position, entry in enumerate(entries)
        )
        request = GenerationRequest(
            prompt=_PLAN_PROMPT.format(
                folder=folder_path,
                listing=listing_text,
                preferences=preferences.strip() or "(none given)",
                limit=self._max_suggestions,
            ),
            temperature=self._temperature,
        )
        result = self._client.call_structured(request, parse_plan)
        if not result.ok or result.value is None:
            message = result.error.message if result.error else "empty response"
            LOGGER.warning("Suggestion generation failed for %s: %s", folder_path, message)
            return SuggestionResult(error="Could not generate suggestions. Please try again.")

        payload = result.value
        suggestions = tuple(
            self._resolve(payload.suggestions[: self._max_suggestions], entries)
        )
        LOGGER.info("Planned %d suggestion(s) for %s", len(suggestions), folder_path)
        return SuggestionResult(
            plan=SuggestionPlan(
                folder_path=folder_path,
                preferences=preferences,
                summary=payload.summary,
                suggestions=suggestions,
                files=tuple(listing.files),
                folders=tuple(listing.folders),
            )
        )

    def _resolve(
        self, suggestions: Iterable[Suggestion], entries: Sequence[Entry]
    ) -> Iterable[Suggestion]:
        for suggestion in suggestions:
            destination = sanitize_name(suggestion.destination or "")
            if suggestion.action == "create_folder":
                name = destination or sanitize_name(suggestion.target)
                if name:
                    yield suggestion.model_copy(update={"destination": name, "path": None})
                continue

            entry = _find_entry(suggestion.target, entries)
            if entry is None:
                LOGGER.warning("Dropping suggestion for unknown entry %r", suggestion.target)
                continue
            if suggestion.action in ("move", "rename") and not destination:
                LOGGER.warning(
                    "Dropping %s of %s without destination", suggestion.action, entry.name
                )
                continue
            yield suggestion.model_copy(
                update={
                    "target": entry.name,
                    "destination": destination or None,
                    "path": entry.path,
                }
            )


def to_actions(plan: SuggestionPlan) -> list[FileAction]:
    """Convert a plan's suggestions into executor actions, preserving order."""
    return [
        FileAction(
            action=suggestion.action,
            source_path=suggestion.path,
            destination=suggestion.destination or "",
            base_path=plan.folder_path,
        )
        for suggestion in plan.suggestions
    ]


def _find_entry(target: str, entries: Sequence[Entry]) -> Optional[Entry]:
    value = target.strip()
    if value.isdigit():
        position = int(value)
        if 0 <= position < len(entries):
            return entries[position]
    for entry in entries:
        if entry.name == value:
            return entry
    lowered = value.lower()
    for entry in entries:
        if entry.name.lower() == lowered:
            return entry
    return None


def _entry_label(entry: Entry) -> str:
    if isinstance(entry, FolderEntry):
        return "folder"
    return entry.extension or "file"


__all__ = [
    "SuggestionPlanner",
    "parse_plan",
    "sanitize_name",
    "to_actions",
    "EMPTY_FOLDER_ERROR",
]
