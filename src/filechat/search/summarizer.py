"""Natural-language summaries of single files."""

from __future__ import annotations

import logging
import textwrap
from dataclasses import dataclass

from filechat.config.models import SummarySettings
from filechat.index.models import FileEntry
from filechat.ingestion.extractors import TextExtractor
from filechat.llm.client import RetryingClient
from filechat.llm.models import GenerationRequest

from .text import normalize_extracted_text

LOGGER = logging.getLogger(__name__)

_CONTENT_PROMPT = textwrap.dedent(
    """\
    You summarize documents for someone searching their files.

    Search query: "{query}"

    Summarize the document below with the search query in mind.
    - Write 3 to 5 sentences.
    - Cover the main points of the document.
    - Include concrete numbers and proper nouns when present.

    File name: {name}

    Document content:
    {content}

    Summary (3 to 5 sentences):"""
)

_NAME_PROMPT = textwrap.dedent(
    """\
    You guess what a file contains from its name.

    Search query: "{query}"

    Describe what this file most likely contains.
    - Write 2 to 3 sentences.
    - Infer the kind of document and its purpose.
    - Explain how it probably relates to the search query.

    File name: {name}
    File type: {extension}

    Description (2 to 3 sentences):"""
)


@dataclass(slots=True)
class Summary:
    """Summary text plus the number of extracted characters it was based on."""

    text: str
    content_length: int = 0


def fallback_summary(file: FileEntry, query: str) -> str:
    """Return the canned description used when no summary can be generated."""
    return (
        f"{file.name} - a {file.extension.upper() or 'plain'} file. "
        f'It may be related to "{query}"; open it to check the details.'
    )


class ContentSummarizer:
    """Describe one file in relation to a query; never raises, never returns blank."""

    def __init__(
        self,
        client: RetryingClient,
        extractor: TextExtractor,
        settings: SummarySettings | None = None,
    ) -> None:
        self._client = client
        self._extractor = extractor
        self._settings = settings or SummarySettings()

    def summarize(self, file: FileEntry, query: str) -> Summary:
        """Summarize ``file`` with ``query`` as context.

        Args:
            file: Indexed file to describe.
            query: The user's search query.

        Returns:
            Summary: Generated text, or a canned fallback embedding the file
            name, extension, and query when generation fails.
        """
        content = self._extract(file)
        used = 0
        if len(content) >= self._settings.min_content_chars:
            used = len(content)
            prompt = _CONTENT_PROMPT.format(query=query, name=file.name, content=content)
        else:
            prompt = _NAME_PROMPT.format(
                query=query, name=file.name, extension=file.extension.upper()
            )

        response = self._client.call(
            GenerationRequest(
                prompt=prompt,
                temperature=self._settings.temperature,
                max_tokens=self._settings.max_tokens,
            )
        )
        text = (response.text or "").strip()
        if response.error is not None or len(text) < self._settings.min_summary_chars:
            LOGGER.info("Using fallback summary for %s", file.name)
            return Summary(text=fallback_summary(file, query), content_length=used)

        LOGGER.debug("Summary for %s: %d chars", file.name, len(text))
        return Summary(text=text, content_length=used)

    def _extract(self, file: FileEntry) -> str:
        try:
            raw = self._extractor.extract(file.path, file.extension)
        except Exception as exc:  # extractor implementations are pluggable
            LOGGER.warning("Extractor raised for %s: %s", file.name, exc)
            raw = None
        if not raw:
            return ""
        return normalize_extracted_text(raw, limit=self._settings.char_limit)


__all__ = ["ContentSummarizer", "Summary", "fallback_summary"]
