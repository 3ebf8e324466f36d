"""
Search Routes - Radius search, map-viewport search and search readiness.

Query parameters are received as raw strings and validated by the
QueryNormalizer, so a bad request reports every offending field at once.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from geodiscovery.domains.search import DiscoveryEngine, QueryNormalizer, SearchEnvelope
from geodiscovery.interfaces.api.deps import get_discovery_engine, get_query_normalizer

router = APIRouter()

_FILTER_DOCS = {
    "categories": "Comma-separated categories",
    "cuisines": "Comma-separated cuisines",
    "priceRange": "Price range ($, $$, $$$, $$$$)",
    "minRating": "Minimum rating (1-5)",
}


def _envelope_response(envelope: SearchEnvelope) -> JSONResponse:
    # Dumped here so radius results keep distanceKm on the wire
    return JSONResponse(content=envelope.model_dump(mode="json", by_alias=True))


@router.get(
    "/establishments",
    response_model=SearchEnvelope,
    response_model_by_alias=True,
)
async def search_establishments(
    latitude: str | None = Query(None, description="Center latitude"),
    longitude: str | None = Query(None, description="Center longitude"),
    radius: str | None = Query(None, description="Search radius in km (default 10)"),
    categories: str | None = Query(None, description=_FILTER_DOCS["categories"]),
    cuisines: str | None = Query(None, description=_FILTER_DOCS["cuisines"]),
    price_range: str | None = Query(None, alias="priceRange", description=_FILTER_DOCS["priceRange"]),
    min_rating: str | None = Query(None, alias="minRating", description=_FILTER_DOCS["minRating"]),
    limit: str | None = Query(None, description="Results per page (default 20, max 100)"),
    offset: str | None = Query(None, description="Pagination offset (default 0)"),
    normalizer: QueryNormalizer = Depends(get_query_normalizer),
    engine: DiscoveryEngine = Depends(get_discovery_engine),
):
    """
    Search establishments within a radius of a point.

    Results are ranked by proximity, rating, review volume and promotion,
    and carry `distanceKm`.
    """
    query = normalizer.normalize_radius(
        {
            "latitude": latitude,
            "longitude": longitude,
            "radius": radius,
            "categories": categories,
            "cuisines": cuisines,
            "priceRange": price_range,
            "minRating": min_rating,
            "limit": limit,
            "offset": offset,
        }
    )
    envelope = await engine.search_radius(query)
    return _envelope_response(envelope)


@router.get(
    "/map",
    response_model=SearchEnvelope,
    response_model_by_alias=True,
)
async def search_map(
    min_lat: str | None = Query(None, alias="minLat", description="Southwest latitude"),
    max_lat: str | None = Query(None, alias="maxLat", description="Northeast latitude"),
    min_lon: str | None = Query(None, alias="minLon", description="Southwest longitude"),
    max_lon: str | None = Query(None, alias="maxLon", description="Northeast longitude"),
    categories: str | None = Query(None, description=_FILTER_DOCS["categories"]),
    cuisines: str | None = Query(None, description=_FILTER_DOCS["cuisines"]),
    price_range: str | None = Query(None, alias="priceRange", description=_FILTER_DOCS["priceRange"]),
    min_rating: str | None = Query(None, alias="minRating", description=_FILTER_DOCS["minRating"]),
    limit: str | None = Query(None, description="Results limit (default 100, max 500)"),
    normalizer: QueryNormalizer = Depends(get_query_normalizer),
    engine: DiscoveryEngine = Depends(get_discovery_engine),
):
    """
    Search establishments inside a map viewport.

    Single capped result set; no distance is reported.
    """
    query = normalizer.normalize_bounds(
        {
            "minLat": min_lat,
            "maxLat": max_lat,
            "minLon": min_lon,
            "maxLon": max_lon,
            "categories": categories,
            "cuisines": cuisines,
            "priceRange": price_range,
            "minRating": min_rating,
            "limit": limit,
        }
    )
    envelope = await engine.search_bounds(query)
    return _envelope_response(envelope)


@router.get("/health")
async def search_health(engine: DiscoveryEngine = Depends(get_discovery_engine)) -> JSONResponse:
    """Search readiness: 200 when the catalog answers, 503 otherwise."""
    health = await engine.check_health()
    return JSONResponse(
        status_code=200 if health["healthy"] else 503,
        content={"success": health["healthy"], "data": health},
    )
