"""Content extraction for indexed files."""

from .extractors import ContentExtractor, TextExtractor

__all__ = ["ContentExtractor", "TextExtractor"]
