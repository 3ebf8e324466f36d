"""
Search Models - Data types for the discovery domain.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, model_validator

MAX_CATEGORIES = 2
MAX_CUISINES = 3
MIN_RATING = 1.0
MAX_RATING = 5.0


class Category(str, Enum):
    """Establishment categories."""

    RESTAURANT = "Ресторан"
    COFFEE_SHOP = "Кофейня"
    FAST_FOOD = "Фаст-фуд"
    BAR = "Бар"
    CONFECTIONERY = "Кондитерская"
    PIZZERIA = "Пиццерия"
    BAKERY = "Пекарня"
    PUB = "Паб"
    CANTEEN = "Столовая"
    HOOKAH = "Кальян"
    BOWLING = "Боулинг"
    KARAOKE = "Караоке"
    BILLIARDS = "Бильярд"


class Cuisine(str, Enum):
    """Cuisine / flavor profiles."""

    NATIONAL = "Народная"
    SIGNATURE = "Авторская"
    ASIAN = "Азиатская"
    AMERICAN = "Американская"
    VEGETARIAN = "Вегетарианская"
    JAPANESE = "Японская"
    GEORGIAN = "Грузинская"
    ITALIAN = "Итальянская"
    MIXED = "Смешанная"
    CONTINENTAL = "Континентальная"
    EUROPEAN = "Европейская"


class PriceRange(str, Enum):
    """Ordinal price tiers."""

    BUDGET = "$"
    MODERATE = "$$"
    EXPENSIVE = "$$$"
    LUXURY = "$$$$"


class ListingStatus(str, Enum):
    """Listing lifecycle states. Only ACTIVE listings are searchable."""

    DRAFT = "draft"
    PENDING = "pending"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    ARCHIVED = "archived"


class SearchMode(str, Enum):
    """Spatial query modes."""

    RADIUS = "radius"
    BOUNDS = "bounds"


class GeoPoint(BaseModel):
    """WGS84 coordinate in decimal degrees."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    model_config = {"frozen": True}


class BoundingBox(BaseModel):
    """Latitude/longitude rectangle (southwest to northeast corner)."""

    min_lat: float = Field(..., ge=-90, le=90)
    max_lat: float = Field(..., ge=-90, le=90)
    min_lon: float = Field(..., ge=-180, le=180)
    max_lon: float = Field(..., ge=-180, le=180)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_orientation(self) -> BoundingBox:
        if self.min_lat >= self.max_lat:
            raise ValueError("min_lat must be less than max_lat")
        if self.min_lon >= self.max_lon:
            raise ValueError("min_lon must be less than max_lon")
        return self

    def contains(self, point: GeoPoint) -> bool:
        """Inclusive containment test."""
        return (
            self.min_lat <= point.latitude <= self.max_lat
            and self.min_lon <= point.longitude <= self.max_lon
        )


class SearchableEntity(BaseModel):
    """Read-optimized projection of a catalog listing."""

    id: str = Field(..., min_length=1)
    name: str
    city: str = ""
    address: str = ""
    location: GeoPoint
    status: ListingStatus = ListingStatus.ACTIVE
    categories: frozenset[Category] = Field(..., min_length=1, max_length=MAX_CATEGORIES)
    cuisines: frozenset[Cuisine] = Field(..., min_length=1, max_length=MAX_CUISINES)
    price_range: PriceRange | None = None
    rating: float | None = Field(default=None, ge=MIN_RATING, le=MAX_RATING)
    review_count: int = Field(default=0, ge=0)
    promotion_weight: int = Field(default=0, ge=0)
    primary_image_url: str | None = None
    average_check_byn: float | None = Field(default=None, ge=0)
    is_24_hours: bool = False

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_rating_signal(self) -> SearchableEntity:
        # rating is undefined exactly when there are no reviews
        if (self.rating is None) != (self.review_count == 0):
            raise ValueError("rating must be set if and only if review_count > 0")
        return self

    @property
    def is_visible(self) -> bool:
        return self.status is ListingStatus.ACTIVE

    @property
    def has_rating(self) -> bool:
        return self.rating is not None


class SearchFilters(BaseModel):
    """Categorical filters. Empty sets mean no constraint on that dimension."""

    categories: frozenset[Category] = frozenset()
    cuisines: frozenset[Cuisine] = frozenset()
    price_range: PriceRange | None = None
    min_rating: float | None = Field(default=None, ge=MIN_RATING, le=MAX_RATING)

    model_config = {"frozen": True}

    def matches(self, entity: SearchableEntity) -> bool:
        """OR within a dimension, AND across dimensions."""
        if self.categories and not (self.categories & entity.categories):
            return False
        if self.cuisines and not (self.cuisines & entity.cuisines):
            return False
        if self.price_range is not None and entity.price_range is not self.price_range:
            return False
        if self.min_rating is not None:
            # listings without reviews never satisfy a rating floor
            if entity.rating is None or entity.rating < self.min_rating:
                return False
        return True


class Pagination(BaseModel):
    """Page window over the ranked sequence."""

    limit: int = Field(default=20, ge=1)
    offset: int = Field(default=0, ge=0)

    model_config = {"frozen": True}


class RadiusQuery(BaseModel):
    """Entities within radius_km of center."""

    center: GeoPoint
    radius_km: float = Field(..., gt=0)
    filters: SearchFilters = Field(default_factory=SearchFilters)
    pagination: Pagination = Field(default_factory=Pagination)

    model_config = {"frozen": True}

    @property
    def mode(self) -> SearchMode:
        return SearchMode.RADIUS


class BoundsQuery(BaseModel):
    """Entities inside a map viewport."""

    bounds: BoundingBox
    filters: SearchFilters = Field(default_factory=SearchFilters)
    pagination: Pagination = Field(default_factory=lambda: Pagination(limit=100))

    model_config = {"frozen": True}

    @property
    def mode(self) -> SearchMode:
        return SearchMode.BOUNDS


SearchQuery = RadiusQuery | BoundsQuery


class Candidate(BaseModel):
    """Entity that passed spatial and categorical filtering."""

    entity: SearchableEntity
    distance_km: float | None = None

    model_config = {"frozen": True}


class SignalBreakdown(BaseModel):
    """Normalized ranking signals, each in [0, 1]."""

    proximity: float = 0.0
    quality: float = 0.0
    popularity: float = 0.0
    promotion: float = 0.0


class ScoredCandidate(BaseModel):
    """Candidate with its composite relevance score."""

    candidate: Candidate
    score: float
    signals: SignalBreakdown = Field(default_factory=SignalBreakdown)

    @property
    def entity(self) -> SearchableEntity:
        return self.candidate.entity

    @property
    def distance_km(self) -> float | None:
        return self.candidate.distance_km


class Page(BaseModel):
    """One slice of the ranked sequence."""

    items: list[ScoredCandidate]
    total: int = Field(..., ge=0)
    limit: int = Field(..., ge=1)
    offset: int = Field(..., ge=0)
    has_next: bool
