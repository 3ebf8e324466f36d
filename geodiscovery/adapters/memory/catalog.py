"""
In-Memory Catalog - Latitude-sorted listing store for tests and local runs.

Box lookups bisect on latitude, then scan the latitude band.
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Iterable

from geodiscovery.domains.search.models import BoundingBox, SearchableEntity, SearchFilters

logger = logging.getLogger(__name__)

__all__ = ["InMemoryCatalog"]


class InMemoryCatalog:
    """
    Catalog store held in process memory.

    Example:
        >>> catalog = InMemoryCatalog(entities)
        >>> rows = await catalog.find_in_box(box, SearchFilters())
    """

    def __init__(self, entities: Iterable[SearchableEntity] = ()) -> None:
        self._by_id: dict[str, SearchableEntity] = {}
        self._lat_index: list[tuple[float, str]] = []
        for entity in entities:
            self.add(entity)

    def __len__(self) -> int:
        return len(self._by_id)

    def add(self, entity: SearchableEntity) -> None:
        """Insert or replace a listing."""
        if entity.id in self._by_id:
            self.remove(entity.id)
        self._by_id[entity.id] = entity
        bisect.insort(self._lat_index, (entity.location.latitude, entity.id))

    def remove(self, entity_id: str) -> None:
        entity = self._by_id.pop(entity_id)
        key = (entity.location.latitude, entity_id)
        pos = bisect.bisect_left(self._lat_index, key)
        del self._lat_index[pos]

    async def find_in_box(
        self,
        box: BoundingBox,
        filters: SearchFilters,
    ) -> list[SearchableEntity]:
        """Visible listings inside box matching filters, in identifier order."""
        lo = bisect.bisect_left(self._lat_index, (box.min_lat, ""))
        hi = bisect.bisect_right(self._lat_index, (box.max_lat, "\U0010ffff"))

        matches = []
        for _, entity_id in self._lat_index[lo:hi]:
            entity = self._by_id[entity_id]
            if entity.is_visible and box.contains(entity.location) and filters.matches(entity):
                matches.append(entity)
        matches.sort(key=lambda e: e.id)
        logger.debug("Scanned %d rows in latitude band, matched %d", hi - lo, len(matches))
        return matches

    async def count_visible(self) -> int:
        return sum(1 for entity in self._by_id.values() if entity.is_visible)

    async def ping(self) -> bool:
        return True
