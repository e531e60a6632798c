"""Tests for suggestion planning and the filesystem action executor."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from conftest import FakeService, write_file

from filechat.index import FilesystemIndex
from filechat.llm import RetryingClient
from filechat.organization import (
    ActionExecutor,
    FileAction,
    SuggestionPlanner,
    sanitize_name,
    to_actions,
)
from filechat.organization.planner import EMPTY_FOLDER_ERROR


def _planner(index: FilesystemIndex, service: FakeService) -> SuggestionPlanner:
    return SuggestionPlanner(index, RetryingClient(service, sleep=lambda _: None))


def _plan_text(*suggestions: dict, summary: str = "Group by type") -> str:
    return "Proposal:\n" + json.dumps({"summary": summary, "suggestions": list(suggestions)})


# ---- planner ---- #


def test_planner_resolves_targets_by_index_and_name(
    index: FilesystemIndex, roots: dict[str, Path]
) -> None:
    folder = roots["Downloads"]
    (folder / "Old").mkdir()
    write_file(folder / "Invoice.PDF", mtime=2_000)
    write_file(folder / "setup.exe", mtime=1_000)
    service = FakeService(
        [
            _plan_text(
                {"action": "create_folder", "destination": "Invoices", "reason": "group"},
                {"action": "move", "target": "invoice.pdf", "destination": "Invoices"},
                {"action": "rename", "target": 2, "destination": "installer"},
                {"action": "delete", "target": "Old"},
                {"action": "move", "target": "ghost.txt", "destination": "Invoices"},
                {"action": "move", "target": "setup.exe"},
            )
        ]
    )

    result = _planner(index, service).suggest_with_preferences(folder, "group invoices")

    assert result.ok and result.plan is not None
    plan = result.plan
    assert [s.action for s in plan.suggestions] == ["create_folder", "move", "rename", "delete"]
    assert plan.suggestions[1].target == "Invoice.PDF"
    assert plan.suggestions[1].path == folder / "Invoice.PDF"
    assert plan.suggestions[2].path == folder / "setup.exe"
    assert plan.suggestions[3].path == folder / "Old"
    assert [entry.name for entry in plan.files] == ["Invoice.PDF", "setup.exe"]
    assert "group invoices" in service.requests[0].prompt


def test_planner_reports_empty_folder(index: FilesystemIndex, roots: dict[str, Path]) -> None:
    service = FakeService()

    result = _planner(index, service).suggest_with_preferences(roots["Desktop"], "anything")

    assert result.error == EMPTY_FOLDER_ERROR
    assert service.requests == []


@pytest.mark.parametrize(
    "answer", ["I would rather not.", '{"suggestions": [{"action": "explode"}]}']
)
def test_planner_rejects_unusable_answers(
    index: FilesystemIndex, roots: dict[str, Path], answer: str
) -> None:
    write_file(roots["Desktop"] / "a.txt")

    result = _planner(index, FakeService([answer])).suggest_with_preferences(roots["Desktop"], "")

    assert not result.ok
    assert result.plan is None
    assert result.error == "Could not generate suggestions. Please try again."


def test_sanitize_name_strips_separators() -> None:
    assert sanitize_name("  ../Tax/2023:  ") == "Tax 2023"
    assert sanitize_name("...") == ""


def test_to_actions_preserves_order(index: FilesystemIndex, roots: dict[str, Path]) -> None:
    folder = roots["Desktop"]
    write_file(folder / "a.txt")
    service = FakeService(
        [
            _plan_text(
                {"action": "create_folder", "destination": "Notes"},
                {"action": "move", "target": "a.txt", "destination": "Notes"},
            )
        ]
    )
    plan = _planner(index, service).suggest_with_preferences(folder, "").plan
    assert plan is not None

    actions = to_actions(plan)

    assert [(a.action, a.source_path, a.destination) for a in actions] == [
        ("create_folder", None, "Notes"),
        ("move", folder / "a.txt", "Notes"),
    ]
    assert all(action.base_path == folder for action in actions)


# ---- executor ---- #


def test_execute_collect_skips_name_collisions(tmp_path: Path) -> None:
    base = tmp_path / "Documents"
    file_a = write_file(tmp_path / "inbox" / "fileA.pdf", "new")
    file_b = write_file(tmp_path / "inbox" / "fileB.pdf", "b")
    write_file(base / "Trip" / "FILEA.pdf", "existing")

    result = ActionExecutor().execute_collect(base, "Trip", [file_a, file_b])

    assert result.moved_count == 1
    assert result.skipped_count == 1
    assert result.duplicates == ["fileA.pdf"]
    assert file_a.exists()
    assert not file_b.exists()
    assert (base / "Trip" / "fileB.pdf").read_text() == "b"


def test_execute_collect_counts_missing_files(tmp_path: Path) -> None:
    present = write_file(tmp_path / "a.txt")
    gone = tmp_path / "gone.txt"

    result = ActionExecutor().execute_collect(tmp_path, "New", [present, gone])

    assert (result.moved_count, result.skipped_count, result.missing_count) == (1, 0, 1)
    assert result.target_path == tmp_path / "New"


def test_execute_collect_invalidates_index(index: FilesystemIndex, roots: dict[str, Path]) -> None:
    source = write_file(roots["Desktop"] / "a.txt")
    index.scan()

    ActionExecutor(index).execute_collect(roots["Documents"], "Notes", [source])

    assert not index.is_populated
    assert [entry.path for entry in index.scan()] == [roots["Documents"] / "Notes" / "a.txt"]


def test_execute_applies_actions_in_order(tmp_path: Path) -> None:
    source = write_file(tmp_path / "report.pdf")
    draft = write_file(tmp_path / "draft.txt")
    actions = [
        FileAction(action="create_folder", destination="Reports", base_path=tmp_path),
        FileAction(action="move", source_path=source, destination="Reports", base_path=tmp_path),
        FileAction(action="rename", source_path=draft, destination="final", base_path=tmp_path),
    ]

    results = ActionExecutor().execute(actions)

    assert [result.status for result in results] == ["done", "done", "done"]
    assert (tmp_path / "Reports" / "report.pdf").exists()
    assert (tmp_path / "final.txt").exists()
    assert not draft.exists()


def test_execute_is_duplicate_safe(tmp_path: Path) -> None:
    (tmp_path / "Reports").mkdir()
    source = write_file(tmp_path / "report.pdf", "new")
    write_file(tmp_path / "Reports" / "report.pdf", "old")
    other = write_file(tmp_path / "a.txt")
    write_file(tmp_path / "b.txt")
    actions = [
        FileAction(action="create_folder", destination="Reports", base_path=tmp_path),
        FileAction(action="move", source_path=source, destination="Reports", base_path=tmp_path),
        FileAction(action="rename", source_path=other, destination="b.txt", base_path=tmp_path),
    ]

    results = ActionExecutor().execute(actions)

    assert [result.status for result in results] == ["skipped", "failed", "failed"]
    assert source.read_text() == "new"
    assert (tmp_path / "Reports" / "report.pdf").read_text() == "old"
    assert other.exists()


def test_execute_never_deletes_and_reports_missing_sources(tmp_path: Path) -> None:
    keep = write_file(tmp_path / "keep.txt")
    actions = [
        FileAction(action="delete", source_path=keep, base_path=tmp_path),
        FileAction(
            action="move", source_path=tmp_path / "gone.txt", destination="X", base_path=tmp_path
        ),
    ]

    results = ActionExecutor().execute(actions)

    assert [(result.action, result.status) for result in results] == [
        ("delete", "skipped"),
        ("move", "failed"),
    ]
    assert keep.exists()


def test_execute_rejects_names_leaving_the_folder(tmp_path: Path) -> None:
    source = write_file(tmp_path / "a.txt")

    results = ActionExecutor().execute(
        [FileAction(action="move", source_path=source, destination="..", base_path=tmp_path)]
    )

    assert results[0].status == "failed"
    assert source.exists()
