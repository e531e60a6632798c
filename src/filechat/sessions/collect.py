"""Conversation that gathers a snapshot of search results into one folder."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence, Union

from filechat.classification.engine import SessionIntentClassifier, clean_value, contains_phrase
from filechat.classification.models import SessionAction, SessionIntent
from filechat.index.models import FileEntry
from filechat.index.scanner import FilesystemIndex
from filechat.organization.models import CollectResult
from filechat.organization.planner import sanitize_name

from .models import CollectRequest, CollectStep, SessionReply

LOGGER = logging.getLogger(__name__)

CURRENT_FOLDER_PHRASES = ("current folder", "this folder", "here", "current")


class CollectEffect(str, Enum):
    ACCEPT_NAME = "accept_name"
    ADOPT_EXISTING = "adopt_existing"
    REJECT_EXISTING = "reject_existing"
    ACCEPT_LOCATION = "accept_location"
    CHANGE_NAME = "change_name"
    CHANGE_LOCATION = "change_location"
    EXECUTE = "execute"
    CANCEL = "cancel"
    REPEAT_PROMPT = "repeat_prompt"


_TRANSITIONS: dict[tuple[CollectStep, SessionAction], tuple[CollectStep, CollectEffect]] = {
    (CollectStep.EXISTING_FOLDER, "confirm"): (CollectStep.CONFIRM, CollectEffect.ADOPT_EXISTING),
    (CollectStep.EXISTING_FOLDER, "change"): (CollectStep.LOCATION, CollectEffect.REJECT_EXISTING),
    (CollectStep.EXISTING_FOLDER, "change_location"): (
        CollectStep.LOCATION,
        CollectEffect.REJECT_EXISTING,
    ),
    (CollectStep.EXISTING_FOLDER, "cancel"): (CollectStep.LOCATION, CollectEffect.REJECT_EXISTING),
    (CollectStep.CONFIRM, "confirm"): (CollectStep.CONFIRM, CollectEffect.EXECUTE),
    (CollectStep.CONFIRM, "change_name"): (CollectStep.NAMING, CollectEffect.CHANGE_NAME),
    (CollectStep.CONFIRM, "change_location"): (CollectStep.LOCATION, CollectEffect.CHANGE_LOCATION),
    (CollectStep.CONFIRM, "cancel"): (CollectStep.INACTIVE, CollectEffect.CANCEL),
}


def collect_transition(
    step: CollectStep, action: SessionAction
) -> tuple[CollectStep, CollectEffect]:
    """Return the next step and effect for ``action`` received at ``step``.

    Naming and location treat every non-cancel reply as the requested value.
    Any other pair without an entry repeats the current prompt.
    """
    if step in (CollectStep.NAMING, CollectStep.LOCATION):
        if action == "cancel":
            return CollectStep.INACTIVE, CollectEffect.CANCEL
        if step is CollectStep.NAMING:
            return CollectStep.NAMING, CollectEffect.ACCEPT_NAME
        return CollectStep.LOCATION, CollectEffect.ACCEPT_LOCATION
    return _TRANSITIONS.get((step, action), (step, CollectEffect.REPEAT_PROMPT))


@dataclass
class CollectState:
    step: CollectStep = CollectStep.INACTIVE
    files: tuple[Path, ...] = ()
    folder_name: Optional[str] = None
    target_path: Optional[Path] = None
    existing_folder_path: Optional[Path] = None
    current_folder: Optional[Path] = None
    # Set once the user has reached confirmation; later edits return there.
    settled: bool = False

    @property
    def active(self) -> bool:
        return self.step is not CollectStep.INACTIVE


class CollectSession:
    """Ask for a folder name and location, then hand the move to the caller.

    The file list is a snapshot taken when the session starts. Later searches
    never change it.
    """

    def __init__(self, classifier: SessionIntentClassifier, index: FilesystemIndex) -> None:
        self._classifier = classifier
        self._index = index
        self._state = CollectState()

    @property
    def state(self) -> CollectState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state.active

    def start(
        self,
        files: Sequence[Union[Path, FileEntry]],
        *,
        current_folder: Optional[Path] = None,
        folder_name: Optional[str] = None,
    ) -> SessionReply:
        """Begin collecting ``files``.

        Args:
            files: Files to gather, frozen for the rest of the session.
            current_folder: Folder open in the client, offered as a location.
            folder_name: Name already given alongside the request, if any.

        Returns:
            SessionReply: The first question of the session.
        """
        snapshot = tuple(item.path if isinstance(item, FileEntry) else Path(item) for item in files)
        if not snapshot:
            message = "There are no files to collect. Search for something first."
            return SessionReply(message=message, error=message, ended=True)

        self._state = CollectState(
            step=CollectStep.NAMING, files=snapshot, current_folder=current_folder
        )
        LOGGER.info("Collect session started with %d file(s)", len(snapshot))
        if folder_name:
            intent = SessionIntent(action="provide_name", folder_name=folder_name)
            return self._accept_name(intent, "")
        return SessionReply(message=self._naming_prompt())

    def handle(self, message: str) -> SessionReply:
        """Advance the session with one user message."""
        state = self._state
        if not state.active:
            text = "No files are being collected right now."
            return SessionReply(message=text, error=text, ended=True)

        intent = self._classifier.classify(message, "collect", state.step.value)
        next_step, effect = collect_transition(state.step, intent.action)
        LOGGER.debug(
            "collect %s --%s--> %s (%s)",
            state.step.value,
            intent.action,
            next_step.value,
            effect.value,
        )

        if effect is CollectEffect.CANCEL:
            self.cancel()
            return SessionReply(message="Okay, nothing was moved.", ended=True)
        if effect is CollectEffect.ACCEPT_NAME:
            return self._accept_name(intent, message)
        if effect is CollectEffect.ADOPT_EXISTING:
            return self._adopt_existing()
        if effect is CollectEffect.REJECT_EXISTING:
            state.existing_folder_path = None
            if state.settled and state.target_path is not None:
                return self._confirm()
            state.step = CollectStep.LOCATION
            return SessionReply(message=self._location_prompt())
        if effect is CollectEffect.ACCEPT_LOCATION:
            return self._accept_location(intent.location or message)
        if effect is CollectEffect.CHANGE_NAME:
            if intent.folder_name:
                return self._accept_name(intent, "")
            state.step = CollectStep.NAMING
            return SessionReply(message="What should the folder be called instead?")
        if effect is CollectEffect.CHANGE_LOCATION:
            if intent.location and self.resolve_location(intent.location) is not None:
                return self._accept_location(intent.location)
            state.step = CollectStep.LOCATION
            return SessionReply(message=self._location_prompt())
        if effect is CollectEffect.EXECUTE:
            return self._execute()
        return SessionReply(message=self._prompt())

    def complete(self, result: CollectResult) -> SessionReply:
        """Report the executor's outcome and end the session."""
        self.cancel()
        parts = [f"Moved {result.moved_count} file(s) to {result.target_path}."]
        if result.duplicates:
            parts.append(
                f"Skipped {len(result.duplicates)} already there: {', '.join(result.duplicates)}."
            )
        if result.failures:
            parts.append(f"Could not move {len(result.failures)}: {'; '.join(result.failures)}.")
        if result.missing_count:
            parts.append(f"{result.missing_count} file(s) no longer existed.")
        return SessionReply(message=" ".join(parts), ended=True)

    def cancel(self) -> None:
        """End the session without moving anything."""
        self._state = CollectState()

    # ------------------------------------------------------------------ #
    # Lookups                                                            #
    # ------------------------------------------------------------------ #

    def find_existing_folder(self, name: str) -> Optional[Path]:
        """Return an indexed folder whose name resembles ``name``.

        Names match case-insensitively when either contains the other. Exact
        matches win over partial ones; otherwise scan order decides.
        """
        lowered = name.lower()
        if not lowered:
            return None
        matches = [
            folder
            for folder in self._index.scan_folders()
            if lowered in folder.name.lower() or folder.name.lower() in lowered
        ]
        matches.sort(key=lambda folder: folder.name.lower() != lowered)
        return matches[0].path if matches else None

    def resolve_location(self, text: str) -> Optional[Path]:
        """Map a spoken location onto a root, the current folder, or an existing path."""
        value = clean_value(text)
        lowered = value.lower()
        if not lowered:
            return None
        current = self._state.current_folder
        if current is not None and contains_phrase(lowered, CURRENT_FOLDER_PHRASES):
            return current
        roots = [root for root in self._index.roots if root.is_dir()]
        for root in roots:
            if root.name.lower() == lowered:
                return root
        for root in roots:
            if contains_phrase(lowered, (root.name.lower(),)):
                return root
        candidate = Path(value).expanduser()
        if candidate.is_absolute() and candidate.is_dir():
            return candidate
        return None

    # ------------------------------------------------------------------ #
    # Step handlers                                                      #
    # ------------------------------------------------------------------ #

    def _accept_name(self, intent: SessionIntent, message: str) -> SessionReply:
        state = self._state
        name = sanitize_name(clean_value(intent.folder_name or message))
        if not name:
            state.step = CollectStep.NAMING
            return SessionReply(message=f"I didn't catch a name. {self._naming_prompt()}")

        state.folder_name = name
        state.existing_folder_path = None
        existing = self.find_existing_folder(name)
        if existing is not None:
            state.existing_folder_path = existing
            state.step = CollectStep.EXISTING_FOLDER
            return SessionReply(
                message=(
                    f'A folder named "{existing.name}" already exists in {existing.parent}. '
                    "Should I put the files there?"
                )
            )

        if intent.location:
            resolved = self.resolve_location(intent.location)
            if resolved is not None:
                state.target_path = resolved
                return self._confirm()
        if state.settled and state.target_path is not None:
            return self._confirm()
        state.step = CollectStep.LOCATION
        return SessionReply(message=self._location_prompt())

    def _adopt_existing(self) -> SessionReply:
        state = self._state
        existing = state.existing_folder_path
        if existing is None:
            state.step = CollectStep.LOCATION
            return SessionReply(message=self._location_prompt())
        state.target_path = existing.parent
        state.folder_name = existing.name
        return self._confirm()

    def _accept_location(self, text: str) -> SessionReply:
        state = self._state
        resolved = self.resolve_location(text)
        if resolved is None:
            state.step = CollectStep.LOCATION
            return SessionReply(message=f"I couldn't find that location. {self._location_prompt()}")
        state.target_path = resolved
        state.existing_folder_path = None
        return self._confirm()

    def _confirm(self) -> SessionReply:
        state = self._state
        state.step = CollectStep.CONFIRM
        state.settled = True
        return SessionReply(message=self._confirm_prompt())

    def _execute(self) -> SessionReply:
        state = self._state
        if state.folder_name is None or state.target_path is None:
            return SessionReply(message=self._prompt())
        request = CollectRequest(
            base_path=state.target_path, folder_name=state.folder_name, files=state.files
        )
        return SessionReply(
            message=f"Moving {len(state.files)} file(s) into {state.folder_name}...",
            effect="execute_collect",
            collect=request,
        )

    # ------------------------------------------------------------------ #
    # Prompts                                                            #
    # ------------------------------------------------------------------ #

    def _prompt(self) -> str:
        step = self._state.step
        if step is CollectStep.NAMING:
            return self._naming_prompt()
        if step is CollectStep.EXISTING_FOLDER and self._state.existing_folder_path is not None:
            name = self._state.existing_folder_path.name
            return f'Should I use the existing folder "{name}"? (yes/no)'
        if step is CollectStep.LOCATION:
            return self._location_prompt()
        return self._confirm_prompt()

    def _naming_prompt(self) -> str:
        return f"What should the folder for these {len(self._state.files)} file(s) be called?"

    def _location_prompt(self) -> str:
        options = [root.name for root in self._index.roots]
        if self._state.current_folder is not None:
            options.append("the current folder")
        return f"Where should I create it? ({', '.join(options)})"

    def _confirm_prompt(self) -> str:
        state = self._state
        target = None
        if state.target_path is not None and state.folder_name:
            target = state.target_path / state.folder_name
        return (
            f"I'll move {len(state.files)} file(s) into {target}. "
            'Say "yes" to go ahead, change the name or location, or "cancel".'
        )


__all__ = [
    "CollectEffect",
    "CollectSession",
    "CollectState",
    "collect_transition",
]
