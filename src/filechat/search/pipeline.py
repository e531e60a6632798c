"""Query resolution against the filesystem index."""

from __future__ import annotations

import logging
import textwrap
from typing import Sequence, Union

from filechat.config.models import SearchSettings
from filechat.index.models import FileEntry, FolderEntry
from filechat.index.scanner import FilesystemIndex
from filechat.llm.client import RetryingClient
from filechat.llm.models import GenerationRequest
from filechat.llm.parsing import extract_json_array

from .local import rank_by_keywords
from .models import FOLDER_LABEL, SearchMode, SearchOutcome, SearchResult
from .summarizer import ContentSummarizer

LOGGER = logging.getLogger(__name__)

Candidate = Union[FileEntry, FolderEntry]

EMPTY_QUERY_ERROR = "Please enter a search query."
NO_FILES_ERROR = "No files found in the watched folders."

_SELECTION_PROMPT = textwrap.dedent(
    """\
    File search. Pick the entries relevant to the query.

    Query: "{query}"

    Entries (index: name [type]):
    {listing}

    Return the indices of the relevant entries as a JSON array, most relevant
    first, at most {limit} items. Example: [0, 3, 12]
    Return [] if nothing is relevant. Return only the array."""
)


def parse_indices(text: str) -> list[int]:
    """Return the integer indices from the first JSON array in ``text``."""
    values = extract_json_array(text)
    return [value for value in values if isinstance(value, int) and not isinstance(value, bool)]


class SearchPipeline:
    """Resolve free-text queries with an AI shortlist and a keyword fallback.

    Files are summarized one at a time in ranking order so at most one
    language service request is outstanding.
    """

    def __init__(
        self,
        index: FilesystemIndex,
        client: RetryingClient,
        summarizer: ContentSummarizer,
        settings: SearchSettings | None = None,
    ) -> None:
        self._index = index
        self._client = client
        self._summarizer = summarizer
        self._settings = settings or SearchSettings()

    def search(self, query: str) -> SearchOutcome:
        """Search the index for ``query``.

        Returns:
            SearchOutcome: Ranked, summarized results and the mode used, or an
            ``error`` for a blank query or an empty index.
        """
        if not query or not query.strip():
            return SearchOutcome(error=EMPTY_QUERY_ERROR)
        query = query.strip()

        files = self._index.scan()
        if not files:
            return SearchOutcome(error=NO_FILES_ERROR)

        items: list[Candidate] = [*files, *self._index.scan_folders()]
        LOGGER.info("Searching %d entries for %r", len(items), query)

        selected = self._select_with_ai(query, items[: self._settings.max_candidates])
        if selected:
            return SearchOutcome(results=self._materialize(query, selected), mode="ai")

        LOGGER.info("Falling back to local keyword search for %r", query)
        return self.local_search(query, items)

    def local_search(self, query: str, items: Sequence[Candidate]) -> SearchOutcome:
        """Rank ``items`` by keyword score and summarize the matches."""
        ranked = rank_by_keywords(
            query,
            items,
            [item.name for item in items],
            limit=self._settings.max_results,
        )
        results = self._materialize(query, [item for item, _ in ranked], mode="local")
        for result, (_, score) in zip(results, ranked):
            result.score = score
        return SearchOutcome(results=results, mode="local")

    def _select_with_ai(self, query: str, candidates: Sequence[Candidate]) -> list[Candidate]:
        listing = "\n".join(
            f"{position}: {item.name} [{self._label(item)}]"
            for position, item in enumerate(candidates)
        )
        request = GenerationRequest(
            prompt=_SELECTION_PROMPT.format(
                query=query, listing=listing, limit=self._settings.max_results
            ),
            temperature=self._settings.selection_temperature,
        )
        result = self._client.call_structured(request, parse_indices)
        if not result.ok:
            reason = result.error.message if result.error else ""
            LOGGER.info("AI shortlist unavailable: %s", reason)
            return []

        seen: set[int] = set()
        selected: list[Candidate] = []
        for position in result.value or []:
            if 0 <= position < len(candidates) and position not in seen:
                seen.add(position)
                selected.append(candidates[position])
        return selected[: self._settings.max_results]

    def _materialize(
        self,
        query: str,
        items: Sequence[Candidate],
        mode: SearchMode = "ai",
    ) -> list[SearchResult]:
        results: list[SearchResult] = []
        for item in items:
            if isinstance(item, FolderEntry):
                results.append(
                    SearchResult(
                        name=item.name,
                        path=item.path,
                        kind="folder",
                        modified_at=item.modified_at,
                        summary=FOLDER_LABEL,
                    )
                )
                continue
            summary = self._summarizer.summarize(item, query)
            results.append(
                SearchResult(
                    name=item.name,
                    path=item.path,
                    kind="file",
                    extension=item.extension,
                    size=item.size,
                    modified_at=item.modified_at,
                    summary=summary.text,
                    content_length=summary.content_length,
                )
            )
        LOGGER.info("Search produced %d %s result(s)", len(results), mode)
        return results

    @staticmethod
    def _label(item: Candidate) -> str:
        if isinstance(item, FolderEntry):
            return "folder"
        return item.extension or "file"


__all__ = ["SearchPipeline", "parse_indices", "EMPTY_QUERY_ERROR", "NO_FILES_ERROR"]
