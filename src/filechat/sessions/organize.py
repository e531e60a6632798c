"""Conversation that reorganizes one folder according to the user's wishes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from filechat.classification.engine import SessionIntentClassifier
from filechat.classification.models import SessionAction
from filechat.organization.models import ActionResult, SuggestionPlan
from filechat.organization.planner import SuggestionPlanner, to_actions

from .models import OrganizeStep, SessionReply

LOGGER = logging.getLogger(__name__)

ASK_PREFERENCES = (
    "How would you like this folder organized? For example: by year, by project, "
    "or tidy up the file names."
)
CONFIRM_HINT = (
    'Reply "yes" to apply, tell me what to adjust, say "change" to start over, or "cancel".'
)


class OrganizeEffect(str, Enum):
    ASK_PREFERENCES = "ask_preferences"
    SUGGEST = "suggest"
    EXECUTE = "execute"
    CANCEL = "cancel"
    RESET_ECHO = "reset_echo"
    REPEAT_PROMPT = "repeat_prompt"


_TRANSITIONS: dict[tuple[OrganizeStep, str], tuple[OrganizeStep, OrganizeEffect]] = {
    (OrganizeStep.HEARING, "cancel"): (OrganizeStep.INACTIVE, OrganizeEffect.CANCEL),
    (OrganizeStep.HEARING, "confirm"): (OrganizeStep.SUGGESTING, OrganizeEffect.SUGGEST),
    (OrganizeStep.HEARING, "change"): (OrganizeStep.SUGGESTING, OrganizeEffect.SUGGEST),
    (OrganizeStep.HEARING, "other"): (OrganizeStep.SUGGESTING, OrganizeEffect.SUGGEST),
    (OrganizeStep.SUGGESTING, "cancel"): (OrganizeStep.INACTIVE, OrganizeEffect.CANCEL),
    (OrganizeStep.CONFIRM, "cancel"): (OrganizeStep.INACTIVE, OrganizeEffect.CANCEL),
    (OrganizeStep.CONFIRM, "confirm"): (OrganizeStep.EXECUTING, OrganizeEffect.EXECUTE),
    (OrganizeStep.CONFIRM, "change"): (OrganizeStep.HEARING, OrganizeEffect.ASK_PREFERENCES),
    (OrganizeStep.CONFIRM, "other"): (OrganizeStep.CONFIRM, OrganizeEffect.SUGGEST),
    (OrganizeStep.EXECUTING, "cancel"): (OrganizeStep.INACTIVE, OrganizeEffect.CANCEL),
    (OrganizeStep.EXECUTING, "confirm"): (OrganizeStep.INACTIVE, OrganizeEffect.RESET_ECHO),
    (OrganizeStep.EXECUTING, "change"): (OrganizeStep.INACTIVE, OrganizeEffect.RESET_ECHO),
    (OrganizeStep.EXECUTING, "other"): (OrganizeStep.INACTIVE, OrganizeEffect.RESET_ECHO),
}


def _organize_action(action: SessionAction) -> str:
    if action in ("confirm", "change", "cancel"):
        return action
    if action in ("change_name", "change_location"):
        return "change"
    return "other"


def organize_transition(
    step: OrganizeStep, action: SessionAction
) -> tuple[OrganizeStep, OrganizeEffect]:
    """Return the next step and effect for ``action`` received at ``step``.

    Pairs without an entry keep the current step and repeat its prompt.
    """
    return _TRANSITIONS.get(
        (step, _organize_action(action)), (step, OrganizeEffect.REPEAT_PROMPT)
    )


@dataclass
class OrganizeState:
    step: OrganizeStep = OrganizeStep.INACTIVE
    folder_path: Optional[Path] = None
    preferences: str = ""
    plan: Optional[SuggestionPlan] = None

    @property
    def active(self) -> bool:
        return self.step is not OrganizeStep.INACTIVE


class OrganizeSession:
    """Gather preferences, propose changes, and hand confirmed changes to the caller."""

    def __init__(self, classifier: SessionIntentClassifier, planner: SuggestionPlanner) -> None:
        self._classifier = classifier
        self._planner = planner
        self._state = OrganizeState()

    @property
    def state(self) -> OrganizeState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state.active

    def start(self, folder_path: Path) -> SessionReply:
        """Begin a session for ``folder_path`` and ask for preferences."""
        if self.active and self._state.folder_path != folder_path:
            message = "Another folder is being organized. Finish or cancel that first."
            return SessionReply(message=message, error=message)
        self._state = OrganizeState(step=OrganizeStep.HEARING, folder_path=folder_path)
        LOGGER.info("Organize session started for %s", folder_path)
        return SessionReply(message=f"Organizing {folder_path.name}. {ASK_PREFERENCES}")

    def handle(self, message: str) -> SessionReply:
        """Advance the session with one user message."""
        state = self._state
        if not state.active:
            text = "No folder is being organized right now."
            return SessionReply(message=text, error=text, ended=True)

        intent = self._classifier.classify(message, "organize", state.step.value)
        next_step, effect = organize_transition(state.step, intent.action)
        LOGGER.debug(
            "organize %s --%s--> %s (%s)",
            state.step.value,
            intent.action,
            next_step.value,
            effect.value,
        )

        if effect is OrganizeEffect.CANCEL:
            self.cancel()
            return SessionReply(message="Okay, I won't change anything.", ended=True)

        if effect is OrganizeEffect.RESET_ECHO:
            self.cancel()
            return SessionReply(message=message, ended=True)

        if effect is OrganizeEffect.ASK_PREFERENCES:
            state.step = OrganizeStep.HEARING
            state.preferences = ""
            state.plan = None
            return SessionReply(message=ASK_PREFERENCES)

        if effect is OrganizeEffect.SUGGEST:
            regenerating = state.step is OrganizeStep.CONFIRM
            preferences = f"{state.preferences}\n{message}".strip() if regenerating else message
            return self._suggest(preferences, regenerating=regenerating)

        if effect is OrganizeEffect.EXECUTE and state.plan is not None:
            state.step = OrganizeStep.EXECUTING
            actions = to_actions(state.plan)
            return SessionReply(
                message=f"Applying {len(actions)} change(s)...",
                effect="execute_suggestions",
                actions=actions,
                plan=state.plan,
            )

        return SessionReply(message=self._prompt())

    def complete(self, results: list[ActionResult]) -> SessionReply:
        """Report executed results and end the session."""
        self.cancel()
        if not results:
            return SessionReply(message="There was nothing to change.", ended=True)
        done = sum(1 for result in results if result.status == "done")
        lines = [f"Applied {done} of {len(results)} change(s)."]
        for result in results:
            if result.status != "done":
                subject = result.source.name if result.source else (
                    result.destination.name if result.destination else result.action
                )
                lines.append(f"- {result.action} {subject}: {result.status} ({result.message})")
        return SessionReply(message="\n".join(lines), ended=True)

    def cancel(self) -> None:
        """End the session without changing anything."""
        self._state = OrganizeState()

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #

    def _suggest(self, preferences: str, *, regenerating: bool) -> SessionReply:
        state = self._state
        folder_path = state.folder_path
        if folder_path is None:
            self.cancel()
            text = "No folder is open to organize."
            return SessionReply(message=text, error=text, ended=True)
        state.step = OrganizeStep.SUGGESTING
        result = self._planner.suggest_with_preferences(folder_path, preferences)

        if not result.ok or result.plan is None:
            error = result.error or "Could not generate suggestions."
            if regenerating and state.plan is not None:
                state.step = OrganizeStep.CONFIRM
                return SessionReply(
                    message=f"{error} The previous suggestions still stand. {CONFIRM_HINT}",
                    plan=state.plan,
                    error=error,
                )
            self.cancel()
            return SessionReply(message=error, error=error, ended=True)

        state.preferences = preferences
        state.plan = result.plan
        state.step = OrganizeStep.CONFIRM
        return SessionReply(message=render_plan(result.plan), plan=result.plan)

    def _prompt(self) -> str:
        if self._state.step is OrganizeStep.CONFIRM and self._state.plan is not None:
            return render_plan(self._state.plan)
        return ASK_PREFERENCES


def render_plan(plan: SuggestionPlan) -> str:
    """Return a readable description of ``plan`` ending with the confirmation hint."""
    lines: list[str] = []
    if plan.summary:
        lines.append(plan.summary)
    if not plan.suggestions:
        lines.append("I have no changes to suggest for these preferences.")
    for number, suggestion in enumerate(plan.suggestions, start=1):
        if suggestion.action == "create_folder":
            line = f"{number}. Create folder {suggestion.destination}"
        elif suggestion.action == "move":
            line = f"{number}. Move {suggestion.target} to {suggestion.destination}"
        elif suggestion.action == "rename":
            line = f"{number}. Rename {suggestion.target} to {suggestion.destination}"
        else:
            line = f"{number}. Delete {suggestion.target}"
        if suggestion.reason:
            line += f" ({suggestion.reason})"
        lines.append(line)
    lines.append(CONFIRM_HINT)
    return "\n".join(lines)


__all__ = [
    "OrganizeEffect",
    "OrganizeSession",
    "OrganizeState",
    "organize_transition",
    "render_plan",
]
