"""
Search Contracts - Interfaces for the discovery domain.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from .models import BoundingBox, Candidate, ScoredCandidate, SearchableEntity, SearchFilters, SearchMode


@runtime_checkable
class CatalogStore(Protocol):
    """
    Read contract the engine needs from the listing catalog.

    Implementations may push any of the visibility and filter predicates
    down into their query; the engine re-checks them either way.
    """

    async def find_in_box(
        self,
        box: BoundingBox,
        filters: SearchFilters,
    ) -> list[SearchableEntity]:
        """Return publicly visible entities located inside box."""
        ...

    async def count_visible(self) -> int:
        """Number of publicly visible entities."""
        ...

    async def ping(self) -> bool:
        """Cheap reachability check."""
        ...


@runtime_checkable
class Ranker(Protocol):
    """Contract for candidate ranking implementations."""

    def rank(
        self,
        candidates: Sequence[Candidate],
        mode: SearchMode,
    ) -> list[ScoredCandidate]:
        """Score candidates and return them in a total order."""
        ...
