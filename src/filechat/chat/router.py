"""Top-level dispatcher for chat messages."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Optional

from filechat.classification.engine import (
    FALLBACK_REPLY,
    ChatIntentClassifier,
    SessionIntentClassifier,
)
from filechat.classification.models import ChatContext, ChatIntent, SessionKind
from filechat.config.models import FilechatConfig
from filechat.index.models import DirectoryListing, FileEntry, FolderNode
from filechat.index.scanner import FilesystemIndex
from filechat.ingestion.extractors import ContentExtractor
from filechat.llm.client import LanguageService, RetryingClient
from filechat.organization.executor import ActionExecutor
from filechat.organization.planner import SuggestionPlanner
from filechat.search.models import SearchOutcome, SearchResult
from filechat.search.pipeline import SearchPipeline
from filechat.search.summarizer import ContentSummarizer
from filechat.sessions.collect import CollectSession
from filechat.sessions.models import SessionReply
from filechat.sessions.organize import OrganizeSession

from .models import ChatResponse

LOGGER = logging.getLogger(__name__)

EMPTY_MESSAGE_ERROR = "Please type a message."
NO_FOLDER_MESSAGE = "Open a folder first, then ask me to organize it."
NO_RESULTS_MESSAGE = "Search for some files first, then ask me to collect them into a folder."


class ChatRouter:
    """Route each message to the active session or to a freshly classified action.

    The router owns the index, both sessions, and the results of the last
    search. At most one session is active at a time; while one is, every
    message belongs to it.
    """

    def __init__(
        self,
        index: FilesystemIndex,
        client: RetryingClient,
        *,
        search_pipeline: Optional[SearchPipeline] = None,
        executor: Optional[ActionExecutor] = None,
    ) -> None:
        self._index = index
        self._search = search_pipeline or SearchPipeline(
            index, client, ContentSummarizer(client, ContentExtractor())
        )
        self._executor = executor or ActionExecutor(index)
        self._chat_classifier = ChatIntentClassifier(client)
        session_classifier = SessionIntentClassifier(client)
        self._organize = OrganizeSession(session_classifier, SuggestionPlanner(index, client))
        self._collect = CollectSession(session_classifier, index)
        self._last_results: list[SearchResult] = []

    @classmethod
    def from_config(
        cls,
        config: FilechatConfig,
        *,
        service: Optional[LanguageService] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "ChatRouter":
        """Build a router wired to the configured backend, index, and extractor.

        Args:
            config: Resolved configuration.
            service: Language service to use instead of the DSPy backend.
            sleep: Sleep function used between retries.
        """
        if service is None:
            from filechat.llm.backend import DSPyLanguageService

            service = DSPyLanguageService(config.llm)
        client = RetryingClient(service, config.retry, sleep=sleep)
        index = FilesystemIndex.from_settings(config.index)
        summarizer = ContentSummarizer(client, ContentExtractor(), config.summary)
        return cls(
            index,
            client,
            search_pipeline=SearchPipeline(index, client, summarizer, config.search),
            executor=ActionExecutor(index),
        )

    # ------------------------------------------------------------------ #
    # State                                                              #
    # ------------------------------------------------------------------ #

    @property
    def index(self) -> FilesystemIndex:
        return self._index

    @property
    def organize_session(self) -> OrganizeSession:
        return self._organize

    @property
    def collect_session(self) -> CollectSession:
        return self._collect

    @property
    def last_results(self) -> list[SearchResult]:
        return list(self._last_results)

    @property
    def active_session(self) -> Optional[SessionKind]:
        if self._organize.active:
            return "organize"
        if self._collect.active:
            return "collect"
        return None

    def cancel_sessions(self) -> None:
        """End any active session without touching the filesystem."""
        self._organize.cancel()
        self._collect.cancel()

    # ------------------------------------------------------------------ #
    # Direct operations                                                  #
    # ------------------------------------------------------------------ #

    def search(self, query: str) -> SearchOutcome:
        """Run a search and remember its results for a later collect request."""
        outcome = self._search.search(query)
        if outcome.error is None:
            self._last_results = list(outcome.results)
        return outcome

    def recent_files(self, file_type: Optional[str] = None) -> list[FileEntry]:
        return self._index.recent(extension=file_type)

    def folder_tree(self) -> list[FolderNode]:
        return self._index.folder_tree()

    def expand_folder(self, path: Path | str) -> list[FolderNode]:
        return self._index.expand_folder(path)

    def list_children(self, path: Path | str) -> DirectoryListing:
        return self._index.list_children(path)

    # ------------------------------------------------------------------ #
    # Chat                                                               #
    # ------------------------------------------------------------------ #

    def handle(self, message: str, current_folder: Optional[Path | str] = None) -> ChatResponse:
        """Process one chat message.

        Args:
            message: Raw user input.
            current_folder: Folder currently open in the client, if any.

        Returns:
            ChatResponse: The reply for this turn; failures are reported in
            ``error`` rather than raised.
        """
        text = message.strip()
        if not text:
            return ChatResponse(
                kind="error", message=EMPTY_MESSAGE_ERROR, error=EMPTY_MESSAGE_ERROR
            )
        folder = Path(current_folder).expanduser() if current_folder else None

        if self._organize.active:
            return self._session_turn("organize", self._organize.handle(text))
        if self._collect.active:
            return self._session_turn("collect", self._collect.handle(text))

        intent = self._chat_classifier.classify(
            text, ChatContext(result_count=len(self._last_results), current_folder=folder)
        )
        LOGGER.info("Routing message as %s (%s)", intent.action, intent.source)

        if intent.action == "search":
            return self._search_turn(intent.query or text)
        if intent.action == "list_files":
            return self._list_turn(intent)
        if intent.action == "organize":
            if folder is None:
                return ChatResponse(message=NO_FOLDER_MESSAGE)
            return self._session_turn("organize", self._organize.start(folder))
        if intent.action == "collect":
            files = [result.path for result in self._last_results if result.kind == "file"]
            if not files:
                return ChatResponse(message=NO_RESULTS_MESSAGE)
            reply = self._collect.start(
                files, current_folder=folder, folder_name=intent.folder_name
            )
            return self._session_turn("collect", reply)
        return ChatResponse(message=intent.reply or FALLBACK_REPLY)

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #

    def _search_turn(self, query: str) -> ChatResponse:
        outcome = self.search(query)
        if outcome.error is not None:
            return ChatResponse(kind="error", message=outcome.error, error=outcome.error)
        count = len(outcome.results)
        message = f"Found {count} result(s)." if count else "No matching files found."
        return ChatResponse(
            kind="search", message=message, results=outcome.results, mode=outcome.mode
        )

    def _list_turn(self, intent: ChatIntent) -> ChatResponse:
        files = self.recent_files(intent.file_type)
        label = f"{intent.file_type} files" if intent.file_type else "files"
        if not files:
            return ChatResponse(kind="files", message=f"No recent {label} found.", files=files)
        message = f"Your {len(files)} most recent {label}."
        return ChatResponse(kind="files", message=message, files=files)

    def _session_turn(self, kind: SessionKind, reply: SessionReply) -> ChatResponse:
        if reply.effect == "execute_suggestions":
            results = self._executor.execute(reply.actions)
            final = self._organize.complete(results)
            return ChatResponse(
                kind="session",
                message=f"{reply.message}\n{final.message}",
                plan=reply.plan,
                action_results=results,
            )
        if reply.effect == "execute_collect" and reply.collect is not None:
            request = reply.collect
            collected = self._executor.execute_collect(
                request.base_path, request.folder_name, request.files
            )
            final = self._collect.complete(collected)
            return ChatResponse(
                kind="session",
                message=f"{reply.message}\n{final.message}",
                collect_result=collected,
            )
        return ChatResponse(
            kind="error" if reply.error and reply.ended else "session",
            message=reply.message,
            plan=reply.plan,
            session=None if reply.ended else kind,
            error=reply.error,
        )


__all__ = ["ChatRouter", "EMPTY_MESSAGE_ERROR", "NO_FOLDER_MESSAGE", "NO_RESULTS_MESSAGE"]
