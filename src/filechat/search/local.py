"""Deterministic keyword scoring used when the language service is unavailable."""

from __future__ import annotations

from typing import Sequence, TypeVar

from .text import query_keywords

T = TypeVar("T")

WHOLE_KEYWORD_POINTS = 10
PREFIX_POINTS = 2
PREFIX_LENGTH = 2


def score_name(keywords: Sequence[str], name: str) -> int:
    """Score ``name`` against lower-case ``keywords``.

    Each keyword found whole in the name earns 10 points; a keyword that is
    not found whole but whose two-character prefix is earns 2.
    """
    lowered = name.lower()
    score = 0
    for keyword in keywords:
        if keyword in lowered:
            score += WHOLE_KEYWORD_POINTS
        elif len(keyword) > PREFIX_LENGTH and keyword[:PREFIX_LENGTH] in lowered:
            score += PREFIX_POINTS
    return score


def rank_by_keywords(
    query: str,
    items: Sequence[T],
    names: Sequence[str],
    *,
    limit: int = 100,
) -> list[tuple[T, int]]:
    """Return ``(item, score)`` pairs with a positive score, best first.

    Ties keep the input order, so identical inputs always rank identically.
    """
    keywords = query_keywords(query)
    scored = [(item, score_name(keywords, name)) for item, name in zip(items, names)]
    matched = [pair for pair in scored if pair[1] > 0]
    matched.sort(key=lambda pair: pair[1], reverse=True)
    return matched[:limit]


__all__ = ["score_name", "rank_by_keywords"]
