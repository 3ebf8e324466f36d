"""
Pagination - Stable offset/limit slicing over a ranked sequence.
"""

from __future__ import annotations

from collections.abc import Sequence

from .models import Page, ScoredCandidate

__all__ = ["paginate"]


def paginate(
    ranked: Sequence[ScoredCandidate],
    limit: int,
    offset: int,
    max_limit: int,
) -> Page:
    """
    Return the [offset, offset + limit) window of ranked.

    The limit is clamped into [1, max_limit] again here. An offset past the
    end yields an empty page, not an error.
    """
    limit = max(1, min(limit, max_limit))
    offset = max(0, offset)
    total = len(ranked)

    return Page(
        items=list(ranked[offset : offset + limit]),
        total=total,
        limit=limit,
        offset=offset,
        has_next=offset + limit < total,
    )
