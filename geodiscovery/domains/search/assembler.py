"""
Result Assembler - Projects ranked pages into the external response shape.

No filtering or reordering happens here.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, SerializeAsAny
from pydantic.alias_generators import to_camel

from .models import Page, ScoredCandidate

__all__ = [
    "NO_RATING_LABEL",
    "PaginationInfo",
    "PlaceSummary",
    "RadiusPlaceSummary",
    "SearchData",
    "SearchEnvelope",
    "assemble_page",
    "summarize",
]

NO_RATING_LABEL = "no rating yet"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlaceSummary(_CamelModel):
    """External-facing listing summary."""

    id: str
    name: str
    city: str
    address: str
    latitude: float
    longitude: float
    categories: list[str]
    cuisines: list[str]
    price_range: str | None = None
    rating: float | None = None
    rating_display: str
    review_count: int
    is_promoted: bool
    primary_image_url: str | None = None
    average_check_byn: float | None = None
    is_24_hours: bool = False
    score: float


class RadiusPlaceSummary(PlaceSummary):
    """Summary with distance from the query center."""

    distance_km: float


class PaginationInfo(_CamelModel):
    total: int
    limit: int
    offset: int
    has_next: bool


class SearchData(_CamelModel):
    results: list[SerializeAsAny[PlaceSummary]]
    pagination: PaginationInfo


class SearchEnvelope(_CamelModel):
    """Response envelope shared by radius and map searches."""

    success: bool = True
    data: SearchData


def summarize(item: ScoredCandidate, include_distance: bool) -> PlaceSummary:
    """Project one scored candidate."""
    entity = item.entity
    fields = dict(
        id=entity.id,
        name=entity.name,
        city=entity.city,
        address=entity.address,
        latitude=entity.location.latitude,
        longitude=entity.location.longitude,
        categories=sorted(c.value for c in entity.categories),
        cuisines=sorted(c.value for c in entity.cuisines),
        price_range=entity.price_range.value if entity.price_range else None,
        rating=entity.rating,
        rating_display=f"{entity.rating:.1f}" if entity.rating is not None else NO_RATING_LABEL,
        review_count=entity.review_count,
        is_promoted=entity.promotion_weight > 0,
        primary_image_url=entity.primary_image_url,
        average_check_byn=entity.average_check_byn,
        is_24_hours=entity.is_24_hours,
        score=round(item.score, 6),
    )
    if include_distance and item.distance_km is not None:
        return RadiusPlaceSummary(distance_km=round(item.distance_km, 2), **fields)
    return PlaceSummary(**fields)


def assemble_page(page: Page, include_distance: bool) -> SearchEnvelope:
    """Wrap a page in the response envelope, preserving ranked order."""
    return SearchEnvelope(
        data=SearchData(
            results=[summarize(item, include_distance) for item in page.items],
            pagination=PaginationInfo(
                total=page.total,
                limit=page.limit,
                offset=page.offset,
                has_next=page.has_next,
            ),
        )
    )
