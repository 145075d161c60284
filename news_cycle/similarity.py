"""Pluggable similarity strategies for linking related news events.

The engine calls a scorer for every pair formed when an event is registered
against the currently active set. Matching pairs are linked in both
directions and each side accrues a similar-story fatigue penalty.
"""
from __future__ import annotations

from typing import Callable

from .models import NewsEventState

SimilarityScorer = Callable[[NewsEventState, NewsEventState], bool]


def never_similar(candidate: NewsEventState, existing: NewsEventState) -> bool:
    """Default scorer; no comparison is performed."""

    return False


def same_source_similarity(candidate: NewsEventState, existing: NewsEventState) -> bool:
    """Treat events derived from the same source item as related coverage."""

    if not candidate.source_id or not existing.source_id:
        return False
    return candidate.source_id == existing.source_id


__all__ = ["SimilarityScorer", "never_similar", "same_source_similarity"]
