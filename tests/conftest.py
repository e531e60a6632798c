"""Shared fixtures: a scripted language service and temporary watched roots."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

import pytest

from filechat.index import FilesystemIndex
from filechat.llm import (
    GenerationRequest,
    RetryingClient,
    ServiceErrorKind,
    ServiceResponse,
)

Scripted = Union[str, ServiceResponse, Exception]


class FakeService:
    """Language service that replays scripted answers in order.

    Once the script runs out, ``responder`` decides (when given); otherwise
    every request fails with a non-retryable service error, which is how the
    tests simulate an unavailable service.
    """

    def __init__(
        self,
        script: Iterable[Scripted] = (),
        *,
        responder: Optional[Callable[[GenerationRequest], Scripted]] = None,
    ) -> None:
        self.script = list(script)
        self.responder = responder
        self.requests: list[GenerationRequest] = []

    def push(self, *items: Scripted) -> None:
        self.script.extend(items)

    def generate(self, request: GenerationRequest) -> ServiceResponse:
        self.requests.append(request)
        if self.script:
            item = self.script.pop(0)
        elif self.responder is not None:
            item = self.responder(request)
        else:
            item = ServiceResponse.failure(ServiceErrorKind.SERVICE, "service unavailable")
        if isinstance(item, Exception):
            raise item
        if isinstance(item, ServiceResponse):
            return item
        return ServiceResponse(text=item)


def write_file(path: Path, content: str = "", *, mtime: Optional[float] = None) -> Path:
    """Create ``path`` (and parents) with ``content`` and an optional mtime."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def service() -> FakeService:
    return FakeService()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def client(service: FakeService, sleeps: list[float]) -> RetryingClient:
    return RetryingClient(service, sleep=sleeps.append)


@pytest.fixture
def roots(tmp_path: Path) -> dict[str, Path]:
    created = {}
    for name in ("Desktop", "Documents", "Downloads"):
        directory = tmp_path / name
        directory.mkdir()
        created[name] = directory
    return created


@pytest.fixture
def index(roots: dict[str, Path]) -> FilesystemIndex:
    return FilesystemIndex(roots.values())
