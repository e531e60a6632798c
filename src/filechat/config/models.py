"""Configuration models describing filechat settings."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_ROOTS = ["~/Desktop", "~/Documents", "~/Downloads"]
DEFAULT_SKIP_DIRS = ["node_modules", "__pycache__", ".git", "Library", "Applications", ".Trash"]
DEFAULT_EXTENSIONS = ["pdf", "docx", "doc", "xlsx", "xls", "pptx", "ppt", "txt", "md", "csv"]


class FilechatBaseModel(BaseModel):
    """Shared configuration for filechat Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class LLMSettings(FilechatBaseModel):
    """Language service configuration options.

    Attributes:
        provider: LiteLLM provider prefix applied when ``model`` has none.
        model: LiteLLM-style model name to target when issuing requests.
        temperature: Default sampling temperature for generative calls.
        max_tokens: Default maximum number of tokens in responses.
        api_key: Optional credential for hosted providers.
        api_base_url: Optional base URL for self-hosted or proxied endpoints.
    """

    provider: str = "gemini"
    model: str = "gemini/gemini-2.5-flash"
    temperature: float = 0.4
    max_tokens: int = 1_000
    api_key: Optional[str] = None
    api_base_url: Optional[str] = None


class RetrySettings(FilechatBaseModel):
    """Retry policy applied to every language service call.

    Attributes:
        max_attempts: Number of attempts before giving up.
        rate_limit_backoff_seconds: Backoff unit applied after a rate-limit response.
        transport_backoff_seconds: Backoff unit applied after a transport failure.
    """

    max_attempts: int = Field(default=3, ge=1)
    rate_limit_backoff_seconds: float = 5.0
    transport_backoff_seconds: float = 2.0


class IndexSettings(FilechatBaseModel):
    """Settings for the watched directories and the filesystem index.

    Attributes:
        roots: Directories scanned and watched for changes.
        skip_dirs: Directory names never descended into.
        extensions: Allow-listed file extensions (without the leading dot).
        folder_depth: Maximum depth used when walking folders.
        recent_limit: Number of files returned by the recent-files listing.
        watch: Whether to start a filesystem watcher for interactive sessions.
    """

    roots: List[str] = Field(default_factory=lambda: list(DEFAULT_ROOTS))
    skip_dirs: List[str] = Field(default_factory=lambda: list(DEFAULT_SKIP_DIRS))
    extensions: List[str] = Field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    folder_depth: int = Field(default=3, ge=1)
    recent_limit: int = 50
    watch: bool = True


class SearchSettings(FilechatBaseModel):
    """Search pipeline limits.

    Attributes:
        max_candidates: Maximum number of names offered to the language service.
        max_results: Maximum number of results returned by either search mode.
        selection_temperature: Sampling temperature for the shortlist request.
    """

    max_candidates: int = 800
    max_results: int = 100
    selection_temperature: float = 0.1


class SummarySettings(FilechatBaseModel):
    """Content summarizer thresholds.

    Attributes:
        char_limit: Maximum number of extracted characters sent for summarization.
        min_content_chars: Minimum extracted length for a content-based summary.
        min_summary_chars: Minimum acceptable summary length.
        temperature: Sampling temperature for summaries.
        max_tokens: Maximum number of tokens in a summary.
    """

    char_limit: int = 8_000
    min_content_chars: int = 30
    min_summary_chars: int = 10
    temperature: float = 0.4
    max_tokens: int = 1_000


class LoggingSettings(FilechatBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
    """

    level: str = "WARNING"


class FilechatConfig(FilechatBaseModel):
    """Top-level configuration struct for filechat.

    Attributes:
        llm: Language service settings.
        retry: Retry policy for language service calls.
        index: Watched directories and index settings.
        search: Search pipeline settings.
        summary: Summarizer settings.
        logging: Logging configuration.
    """

    llm: LLMSettings = Field(default_factory=LLMSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    index: IndexSettings = Field(default_factory=IndexSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    summary: SummarySettings = Field(default_factory=SummarySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


__all__ = [
    "DEFAULT_ROOTS",
    "DEFAULT_SKIP_DIRS",
    "DEFAULT_EXTENSIONS",
    "FilechatBaseModel",
    "LLMSettings",
    "RetrySettings",
    "IndexSettings",
    "SearchSettings",
    "SummarySettings",
    "LoggingSettings",
    "FilechatConfig",
]
