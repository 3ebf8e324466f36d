"""
Candidate Locator - Spatial and categorical filtering against the catalog.

Radius mode runs in two phases: a coarse lookup over the bounding envelope of
the search circle (index-backed in the catalog store), then an exact
great-circle check. Bounds mode is a plain rectangle lookup.
"""

from __future__ import annotations

import asyncio
import logging

from geodiscovery.config import CatalogUnavailableError, GeoDiscoveryError

from .contracts import CatalogStore
from .geo import bounding_envelope, haversine_km
from .models import BoundingBox, BoundsQuery, Candidate, RadiusQuery, SearchableEntity, SearchFilters

logger = logging.getLogger(__name__)

__all__ = ["CandidateLocator"]

# Absorbs float noise when a point sits exactly on the radius
DISTANCE_TOLERANCE_KM = 1e-9


class CandidateLocator:
    """
    Finds catalog entities satisfying a query's spatial predicate and filters.

    Example:
        >>> locator = CandidateLocator(catalog, timeout_seconds=5.0)
        >>> candidates = await locator.locate_radius(query)
    """

    def __init__(self, catalog: CatalogStore, timeout_seconds: float = 5.0) -> None:
        """
        Initialize locator.

        Args:
            catalog: Catalog store to read from
            timeout_seconds: Deadline for a single catalog lookup
        """
        self._catalog = catalog
        self._timeout = timeout_seconds

    async def locate_radius(self, query: RadiusQuery) -> list[Candidate]:
        """Entities within query.radius_km of query.center, with distances."""
        envelope = bounding_envelope(query.center, query.radius_km)
        coarse = await self._fetch(envelope, query.filters)

        candidates = []
        for entity in coarse:
            if not _eligible(entity, query.filters):
                continue
            distance = haversine_km(query.center, entity.location)
            if distance <= query.radius_km + DISTANCE_TOLERANCE_KM:
                candidates.append(Candidate(entity=entity, distance_km=distance))

        logger.debug(
            "Radius locate: coarse=%d exact=%d radius_km=%.3f",
            len(coarse),
            len(candidates),
            query.radius_km,
        )
        return candidates

    async def locate_bounds(self, query: BoundsQuery) -> list[Candidate]:
        """Entities inside query.bounds. No distance is attached."""
        rows = await self._fetch(query.bounds, query.filters)
        candidates = [
            Candidate(entity=entity)
            for entity in rows
            if _eligible(entity, query.filters) and query.bounds.contains(entity.location)
        ]
        logger.debug("Bounds locate: fetched=%d kept=%d", len(rows), len(candidates))
        return candidates

    async def _fetch(self, box: BoundingBox, filters: SearchFilters) -> list[SearchableEntity]:
        """
        Time-boxed catalog lookup.

        Cancellation of the calling task propagates into the lookup. Failures
        are surfaced immediately; there is no retry here.
        """
        try:
            return await asyncio.wait_for(
                self._catalog.find_in_box(box, filters),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning("Catalog lookup timed out after %.2fs", self._timeout)
            raise CatalogUnavailableError(
                "Catalog lookup timed out",
                {"timeout_seconds": self._timeout},
            ) from e
        except CatalogUnavailableError:
            raise
        except GeoDiscoveryError as e:
            raise CatalogUnavailableError(e.message, e.details) from e
        except OSError as e:
            raise CatalogUnavailableError(f"Catalog unreachable: {e}") from e


def _eligible(entity: SearchableEntity, filters: SearchFilters) -> bool:
    return entity.is_visible and filters.matches(entity)
