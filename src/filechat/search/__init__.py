"""File search: AI shortlist, keyword fallback, and per-file summaries."""

from .local import rank_by_keywords, score_name
from .models import FOLDER_LABEL, SearchOutcome, SearchResult
from .pipeline import SearchPipeline, parse_indices
from .summarizer import ContentSummarizer, Summary, fallback_summary
from .text import normalize_extracted_text, query_keywords

__all__ = [
    "FOLDER_LABEL",
    "SearchOutcome",
    "SearchResult",
    "SearchPipeline",
    "parse_indices",
    "ContentSummarizer",
    "Summary",
    "fallback_summary",
    "rank_by_keywords",
    "score_name",
    "normalize_extracted_text",
    "query_keywords",
]
