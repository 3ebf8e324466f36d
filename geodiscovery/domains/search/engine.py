"""
Discovery Engine - Radius and map search over the listing catalog.

Pipeline per request:
    locate -> rank -> paginate -> assemble

The engine holds no mutable state; every intermediate structure lives for
one call only, so a single instance serves concurrent requests.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from geodiscovery.config import Settings

from .assembler import SearchEnvelope, assemble_page
from .contracts import CatalogStore, Ranker
from .locator import CandidateLocator
from .models import BoundsQuery, RadiusQuery, SearchMode
from .pagination import paginate
from .ranking import CompositeRanker

logger = logging.getLogger(__name__)

__all__ = ["DiscoveryEngine"]


class DiscoveryEngine:
    """
    Geospatial discovery and ranking.

    Example:
        >>> engine = DiscoveryEngine(catalog)
        >>> query = QueryNormalizer(settings).normalize_radius(params)
        >>> envelope = await engine.search_radius(query)
    """

    def __init__(
        self,
        catalog: CatalogStore,
        ranker: Ranker | None = None,
        settings: Settings | None = None,
    ) -> None:
        """
        Initialize engine.

        Args:
            catalog: Catalog store (SQLite repository or in-memory catalog)
            ranker: Ranking strategy; defaults to CompositeRanker with configured weights
            settings: Settings for limits and timeouts; defaults to Settings()
        """
        self._settings = settings or Settings()
        self._catalog = catalog
        self._ranker = ranker or CompositeRanker(self._settings.ranking)
        self._locator = CandidateLocator(catalog, self._settings.catalog_timeout_seconds)

    async def search_radius(self, query: RadiusQuery) -> SearchEnvelope:
        """
        Entities within the radius, ranked and paginated.

        Raises:
            CatalogUnavailableError: catalog lookup failed or timed out
            RankingInvariantError: corrupt candidate data
        """
        start = time.perf_counter()

        candidates = await self._locator.locate_radius(query)
        ranked = self._ranker.rank(candidates, SearchMode.RADIUS)
        page = paginate(
            ranked,
            limit=query.pagination.limit,
            offset=query.pagination.offset,
            max_limit=self._settings.search_max_limit,
        )

        logger.info(
            "Radius search: center=(%.5f, %.5f) radius_km=%.2f -> total=%d returned=%d (%.1fms)",
            query.center.latitude,
            query.center.longitude,
            query.radius_km,
            page.total,
            len(page.items),
            (time.perf_counter() - start) * 1000,
        )
        return assemble_page(page, include_distance=True)

    async def search_bounds(self, query: BoundsQuery) -> SearchEnvelope:
        """
        Entities inside the map viewport, ranked without a proximity signal.

        Raises:
            CatalogUnavailableError: catalog lookup failed or timed out
        """
        start = time.perf_counter()

        candidates = await self._locator.locate_bounds(query)
        ranked = self._ranker.rank(candidates, SearchMode.BOUNDS)
        page = paginate(
            ranked,
            limit=query.pagination.limit,
            offset=0,
            max_limit=self._settings.map_max_limit,
        )

        b = query.bounds
        logger.info(
            "Bounds search: [%.5f,%.5f]x[%.5f,%.5f] -> total=%d returned=%d (%.1fms)",
            b.min_lat,
            b.max_lat,
            b.min_lon,
            b.max_lon,
            page.total,
            len(page.items),
            (time.perf_counter() - start) * 1000,
        )
        return assemble_page(page, include_distance=False)

    async def check_health(self) -> dict[str, Any]:
        """Report whether the catalog store is reachable."""
        start = time.perf_counter()
        try:
            reachable = await self._catalog.ping()
            visible = await self._catalog.count_visible() if reachable else None
        except Exception as e:
            logger.error("Catalog health check failed: %s", e)
            return {
                "healthy": False,
                "catalog": {
                    "status": "unhealthy",
                    "response_time_ms": None,
                    "error": str(e),
                },
            }

        return {
            "healthy": reachable,
            "catalog": {
                "status": "healthy" if reachable else "unhealthy",
                "response_time_ms": round((time.perf_counter() - start) * 1000, 2),
                "visible_entities": visible,
            },
        }
