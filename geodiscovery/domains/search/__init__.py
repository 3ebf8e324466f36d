"""
Search Domain - Geospatial discovery and ranking.

This domain handles:
- Query normalization (radius and map-viewport modes)
- Two-phase spatial candidate lookup (bounding envelope, then great-circle check)
- Composite relevance ranking with deterministic tie-breaks
- Pagination and response assembly
"""

from .assembler import PlaceSummary, RadiusPlaceSummary, SearchEnvelope
from .contracts import CatalogStore, Ranker
from .engine import DiscoveryEngine
from .geo import bounding_envelope, destination_point, haversine_km
from .locator import CandidateLocator
from .models import (
    BoundingBox,
    BoundsQuery,
    Candidate,
    Category,
    Cuisine,
    GeoPoint,
    ListingStatus,
    Page,
    Pagination,
    PriceRange,
    RadiusQuery,
    ScoredCandidate,
    SearchableEntity,
    SearchFilters,
    SearchMode,
)
from .normalizer import QueryNormalizer
from .pagination import paginate
from .ranking import CompositeRanker

__all__ = [
    # Contracts
    "CatalogStore",
    "Ranker",
    # Pipeline
    "QueryNormalizer",
    "CandidateLocator",
    "CompositeRanker",
    "DiscoveryEngine",
    "paginate",
    # Geodesy
    "haversine_km",
    "bounding_envelope",
    "destination_point",
    # Models
    "BoundingBox",
    "BoundsQuery",
    "Candidate",
    "Category",
    "Cuisine",
    "GeoPoint",
    "ListingStatus",
    "Page",
    "Pagination",
    "PriceRange",
    "RadiusQuery",
    "ScoredCandidate",
    "SearchableEntity",
    "SearchFilters",
    "SearchMode",
    # Response
    "PlaceSummary",
    "RadiusPlaceSummary",
    "SearchEnvelope",
]
