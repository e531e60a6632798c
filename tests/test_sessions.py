"""Tests for the organize and collect session state machines."""

from __future__ import annotations

import json
from itertools import product
from pathlib import Path
from typing import get_args

import pytest
from conftest import FakeService, write_file

from filechat.classification import SessionIntentClassifier
from filechat.classification.models import SessionAction
from filechat.index import FilesystemIndex
from filechat.llm import GenerationRequest, RetryingClient, ServiceErrorKind, ServiceResponse
from filechat.organization import ActionExecutor, SuggestionPlanner
from filechat.sessions import (
    CollectEffect,
    CollectSession,
    CollectStep,
    OrganizeEffect,
    OrganizeSession,
    OrganizeStep,
    collect_transition,
    organize_transition,
)

ACTIONS: tuple[str, ...] = get_args(SessionAction)

PLAN = json.dumps(
    {
        "summary": "Put documents into a folder.",
        "suggestions": [
            {"action": "create_folder", "destination": "Docs", "reason": "tidy"},
            {"action": "move", "target": "a.pdf", "destination": "Docs", "reason": "pdf"},
        ],
    }
)


def _planner_only(plans: list[str]) -> FakeService:
    """Answer suggestion prompts from ``plans``; every other prompt fails."""
    remaining = list(plans)

    def responder(request: GenerationRequest):
        if request.prompt.startswith("You help a user reorganize") and remaining:
            return remaining.pop(0)
        return ServiceResponse.failure(ServiceErrorKind.SERVICE, "unavailable")

    return FakeService(responder=responder)


def _organize(index: FilesystemIndex, service: FakeService) -> OrganizeSession:
    client = RetryingClient(service, sleep=lambda _: None)
    return OrganizeSession(SessionIntentClassifier(client), SuggestionPlanner(index, client))


def _collect(index: FilesystemIndex, service: FakeService | None = None) -> CollectSession:
    client = RetryingClient(service or FakeService(), sleep=lambda _: None)
    return CollectSession(SessionIntentClassifier(client), index)


# ---- organize transitions ---- #

_ORGANIZE_EXPECTED = {
    OrganizeStep.HEARING: {
        "cancel": (OrganizeStep.INACTIVE, OrganizeEffect.CANCEL),
        "*": (OrganizeStep.SUGGESTING, OrganizeEffect.SUGGEST),
    },
    OrganizeStep.SUGGESTING: {
        "cancel": (OrganizeStep.INACTIVE, OrganizeEffect.CANCEL),
        "*": (OrganizeStep.SUGGESTING, OrganizeEffect.REPEAT_PROMPT),
    },
    OrganizeStep.CONFIRM: {
        "cancel": (OrganizeStep.INACTIVE, OrganizeEffect.CANCEL),
        "confirm": (OrganizeStep.EXECUTING, OrganizeEffect.EXECUTE),
        "change": (OrganizeStep.HEARING, OrganizeEffect.ASK_PREFERENCES),
        "change_name": (OrganizeStep.HEARING, OrganizeEffect.ASK_PREFERENCES),
        "change_location": (OrganizeStep.HEARING, OrganizeEffect.ASK_PREFERENCES),
        "*": (OrganizeStep.CONFIRM, OrganizeEffect.SUGGEST),
    },
    OrganizeStep.EXECUTING: {
        "cancel": (OrganizeStep.INACTIVE, OrganizeEffect.CANCEL),
        "*": (OrganizeStep.INACTIVE, OrganizeEffect.RESET_ECHO),
    },
    OrganizeStep.INACTIVE: {"*": (OrganizeStep.INACTIVE, OrganizeEffect.REPEAT_PROMPT)},
}


@pytest.mark.parametrize(("step", "action"), list(product(OrganizeStep, ACTIONS)))
def test_organize_transition_table(step: OrganizeStep, action: str) -> None:
    expected = _ORGANIZE_EXPECTED[step]

    outcome = organize_transition(step, action)  # type: ignore[arg-type]

    assert outcome == expected.get(action, expected["*"])


def test_organize_executes_only_after_confirm_in_confirm_step() -> None:
    executing = [
        (step, action)
        for step, action in product(OrganizeStep, ACTIONS)
        if organize_transition(step, action)[1] is OrganizeEffect.EXECUTE  # type: ignore[arg-type]
    ]

    assert executing == [(OrganizeStep.CONFIRM, "confirm")]


# ---- organize flow ---- #


def test_organize_flow_suggests_then_executes(
    index: FilesystemIndex, roots: dict[str, Path]
) -> None:
    folder = roots["Downloads"]
    write_file(folder / "a.pdf")
    session = _organize(index, _planner_only([PLAN]))

    started = session.start(folder)
    assert session.state.step is OrganizeStep.HEARING
    assert "How would you like" in started.message

    proposed = session.handle("put pdfs together")
    assert session.state.step is OrganizeStep.CONFIRM
    assert proposed.plan is not None
    assert "1. Create folder Docs (tidy)" in proposed.message
    assert "2. Move a.pdf to Docs (pdf)" in proposed.message

    confirmed = session.handle("yes")
    assert confirmed.effect == "execute_suggestions"
    assert session.state.step is OrganizeStep.EXECUTING
    assert [action.action for action in confirmed.actions] == ["create_folder", "move"]

    results = ActionExecutor(index).execute(confirmed.actions)
    final = session.complete(results)

    assert final.ended
    assert not session.active
    assert "Applied 2 of 2" in final.message
    assert (folder / "Docs" / "a.pdf").exists()


def test_organize_remark_in_confirm_regenerates(
    index: FilesystemIndex, roots: dict[str, Path]
) -> None:
    write_file(roots["Desktop"] / "a.pdf")
    service = _planner_only([PLAN, PLAN])
    session = _organize(index, service)
    session.start(roots["Desktop"])
    session.handle("put pdfs together")

    reply = session.handle("and keep names short")

    assert reply.effect == "none"
    assert session.state.step is OrganizeStep.CONFIRM
    assert session.state.preferences == "put pdfs together\nand keep names short"
    last_prompt = [r.prompt for r in service.requests if r.prompt.startswith("You help")][-1]
    assert "keep names short" in last_prompt


def test_organize_failed_regeneration_keeps_previous_plan(
    index: FilesystemIndex, roots: dict[str, Path]
) -> None:
    write_file(roots["Desktop"] / "a.pdf")
    session = _organize(index, _planner_only([PLAN]))
    session.start(roots["Desktop"])
    first = session.handle("put pdfs together")

    reply = session.handle("and also by year")

    assert reply.error is not None
    assert session.state.step is OrganizeStep.CONFIRM
    assert session.state.plan == first.plan


def test_organize_change_returns_to_hearing(index: FilesystemIndex, roots: dict[str, Path]) -> None:
    write_file(roots["Desktop"] / "a.pdf")
    session = _organize(index, _planner_only([PLAN]))
    session.start(roots["Desktop"])
    session.handle("put pdfs together")

    session.handle("change")

    assert session.state.step is OrganizeStep.HEARING
    assert session.state.plan is None


def test_organize_without_folder_reports_error(index: FilesystemIndex) -> None:
    session = _organize(index, _planner_only([PLAN]))
    session.state.step = OrganizeStep.HEARING

    reply = session.handle("by year")

    assert reply.ended
    assert reply.error == "No folder is open to organize."
    assert not session.active


def test_organize_failure_while_hearing_ends_session(
    index: FilesystemIndex, roots: dict[str, Path]
) -> None:
    session = _organize(index, _planner_only([]))
    session.start(roots["Desktop"])

    reply = session.handle("by year")

    assert reply.ended
    assert reply.error is not None
    assert not session.active


def test_organize_cancel_from_any_step(index: FilesystemIndex, roots: dict[str, Path]) -> None:
    write_file(roots["Desktop"] / "a.pdf")
    session = _organize(index, _planner_only([PLAN]))
    session.start(roots["Desktop"])
    session.handle("put pdfs together")

    reply = session.handle("cancel")

    assert reply.ended
    assert not session.active
    assert (roots["Desktop"] / "a.pdf").exists()


def test_organize_message_while_executing_resets_and_echoes(
    index: FilesystemIndex, roots: dict[str, Path]
) -> None:
    write_file(roots["Desktop"] / "a.pdf")
    session = _organize(index, _planner_only([PLAN]))
    session.start(roots["Desktop"])
    session.handle("put pdfs together")
    session.handle("yes")

    reply = session.handle("what happened?")

    assert reply.message == "what happened?"
    assert not session.active


# ---- collect transitions ---- #

_COLLECT_EXPECTED = {
    CollectStep.NAMING: {
        "cancel": (CollectStep.INACTIVE, CollectEffect.CANCEL),
        "*": (CollectStep.NAMING, CollectEffect.ACCEPT_NAME),
    },
    CollectStep.LOCATION: {
        "cancel": (CollectStep.INACTIVE, CollectEffect.CANCEL),
        "*": (CollectStep.LOCATION, CollectEffect.ACCEPT_LOCATION),
    },
    CollectStep.EXISTING_FOLDER: {
        "confirm": (CollectStep.CONFIRM, CollectEffect.ADOPT_EXISTING),
        "change": (CollectStep.LOCATION, CollectEffect.REJECT_EXISTING),
        "change_location": (CollectStep.LOCATION, CollectEffect.REJECT_EXISTING),
        "cancel": (CollectStep.LOCATION, CollectEffect.REJECT_EXISTING),
        "*": (CollectStep.EXISTING_FOLDER, CollectEffect.REPEAT_PROMPT),
    },
    CollectStep.CONFIRM: {
        "confirm": (CollectStep.CONFIRM, CollectEffect.EXECUTE),
        "change_name": (CollectStep.NAMING, CollectEffect.CHANGE_NAME),
        "change_location": (CollectStep.LOCATION, CollectEffect.CHANGE_LOCATION),
        "cancel": (CollectStep.INACTIVE, CollectEffect.CANCEL),
        "*": (CollectStep.CONFIRM, CollectEffect.REPEAT_PROMPT),
    },
    CollectStep.INACTIVE: {"*": (CollectStep.INACTIVE, CollectEffect.REPEAT_PROMPT)},
}


@pytest.mark.parametrize(("step", "action"), list(product(CollectStep, ACTIONS)))
def test_collect_transition_table(step: CollectStep, action: str) -> None:
    expected = _COLLECT_EXPECTED[step]

    outcome = collect_transition(step, action)  # type: ignore[arg-type]

    assert outcome == expected.get(action, expected["*"])


# ---- collect flow ---- #


def test_collect_adopts_existing_similar_folder(
    index: FilesystemIndex, roots: dict[str, Path]
) -> None:
    existing = roots["Documents"] / "Receipts"
    existing.mkdir()
    receipt = write_file(roots["Downloads"] / "r1.pdf")
    session = _collect(index)
    session.start([receipt])

    session.handle("receipts")
    assert session.state.step is CollectStep.EXISTING_FOLDER
    assert session.state.existing_folder_path == existing

    session.handle("yes")

    assert session.state.step is CollectStep.CONFIRM
    assert session.state.target_path == roots["Documents"]
    assert session.state.folder_name == "Receipts"


def test_collect_rejecting_existing_folder_asks_location(
    index: FilesystemIndex, roots: dict[str, Path]
) -> None:
    (roots["Documents"] / "Receipts").mkdir()
    session = _collect(index)
    session.start([roots["Downloads"] / "r1.pdf"])
    session.handle("Receipts")

    reply = session.handle("no")

    assert session.state.step is CollectStep.LOCATION
    assert session.state.existing_folder_path is None
    assert "Desktop" in reply.message


def test_collect_full_flow_moves_snapshot(index: FilesystemIndex, roots: dict[str, Path]) -> None:
    file_a = write_file(roots["Downloads"] / "a.pdf")
    file_b = write_file(roots["Downloads"] / "b.pdf")
    session = _collect(index)
    session.start([file_a, file_b])

    session.handle("Trip")
    assert session.state.step is CollectStep.LOCATION
    session.handle("desktop")
    assert session.state.step is CollectStep.CONFIRM
    assert session.state.target_path == roots["Desktop"]

    reply = session.handle("yes")
    assert reply.effect == "execute_collect"
    assert reply.collect is not None
    assert reply.collect.files == (file_a, file_b)

    result = ActionExecutor(index).execute_collect(
        reply.collect.base_path, reply.collect.folder_name, reply.collect.files
    )
    final = session.complete(result)

    assert "Moved 2 file(s)" in final.message
    assert not session.active
    assert (roots["Desktop"] / "Trip" / "a.pdf").exists()


def test_collect_name_with_location_skips_location_step(
    index: FilesystemIndex, roots: dict[str, Path]
) -> None:
    session = _collect(index)
    session.start([roots["Downloads"] / "a.pdf"])

    session.handle("call it Taxes in documents")

    assert session.state.step is CollectStep.CONFIRM
    assert session.state.folder_name == "Taxes"
    assert session.state.target_path == roots["Documents"]


def test_collect_current_folder_location(
    index: FilesystemIndex, roots: dict[str, Path], tmp_path: Path
) -> None:
    current = tmp_path / "Open"
    current.mkdir()
    session = _collect(index)
    session.start([roots["Downloads"] / "a.pdf"], current_folder=current)
    session.handle("Taxes")

    session.handle("the current folder")

    assert session.state.target_path == current


def test_collect_unknown_location_repeats_prompt(
    index: FilesystemIndex, roots: dict[str, Path]
) -> None:
    session = _collect(index)
    session.start([roots["Downloads"] / "a.pdf"])
    session.handle("Taxes")

    reply = session.handle("the moon")

    assert session.state.step is CollectStep.LOCATION
    assert reply.message.startswith("I couldn't find that location.")


def test_collect_change_name_keeps_settled_location(
    index: FilesystemIndex, roots: dict[str, Path]
) -> None:
    session = _collect(index)
    session.start([roots["Downloads"] / "a.pdf"])
    session.handle("Taxes")
    session.handle("desktop")

    session.handle("rename it to Travel")

    assert session.state.step is CollectStep.CONFIRM
    assert session.state.folder_name == "Travel"
    assert session.state.target_path == roots["Desktop"]


def test_collect_change_location_in_confirm(index: FilesystemIndex, roots: dict[str, Path]) -> None:
    session = _collect(index)
    session.start([roots["Downloads"] / "a.pdf"])
    session.handle("Taxes")
    session.handle("desktop")

    session.handle("change the location to downloads")

    assert session.state.step is CollectStep.CONFIRM
    assert session.state.target_path == roots["Downloads"]


def test_collect_start_with_name_and_empty_snapshot(
    index: FilesystemIndex, roots: dict[str, Path]
) -> None:
    session = _collect(index)

    empty = session.start([])
    assert empty.error is not None
    assert not session.active

    session.start([roots["Downloads"] / "a.pdf"], folder_name="Travel")
    assert session.state.step is CollectStep.LOCATION
    assert session.state.folder_name == "Travel"


def test_collect_cancel(index: FilesystemIndex, roots: dict[str, Path]) -> None:
    session = _collect(index)
    session.start([roots["Downloads"] / "a.pdf"])

    reply = session.handle("cancel")

    assert reply.ended
    assert not session.active


def test_find_existing_folder_prefers_exact_match(
    index: FilesystemIndex, roots: dict[str, Path]
) -> None:
    (roots["Desktop"] / "Old Receipts").mkdir()
    (roots["Documents"] / "receipts").mkdir()
    session = _collect(index)

    assert session.find_existing_folder("Receipts") == roots["Documents"] / "receipts"
    assert session.find_existing_folder("Nothing like it") is None
