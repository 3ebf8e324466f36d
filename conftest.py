"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from geodiscovery.config import Settings
from geodiscovery.domains.search.geo import destination_point
from geodiscovery.domains.search.models import (
    Category,
    Cuisine,
    GeoPoint,
    ListingStatus,
    PriceRange,
    SearchableEntity,
)

# Minsk city center
MINSK = GeoPoint(latitude=53.90, longitude=27.56)


@pytest.fixture
def center() -> GeoPoint:
    return MINSK


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings isolated from the environment and .env files."""
    return Settings(_env_file=None, db_path=tmp_path / "catalog.db", data_dir=tmp_path)


@pytest.fixture
def make_entity() -> Callable[..., SearchableEntity]:
    """
    Factory for listings.

    Pass either location=GeoPoint or (distance_km, bearing) relative to Minsk.
    A rating without review_count implies 10 reviews.
    """

    def _make(
        entity_id: str,
        distance_km: float = 0.0,
        bearing: float = 90.0,
        **overrides: Any,
    ) -> SearchableEntity:
        location = overrides.pop("location", None) or destination_point(MINSK, bearing, distance_km)
        rating = overrides.get("rating")
        if rating is not None and "review_count" not in overrides:
            overrides["review_count"] = 10

        fields: dict[str, Any] = {
            "id": entity_id,
            "name": f"Place {entity_id}",
            "city": "Минск",
            "address": f"ул. Тестовая, {entity_id}",
            "location": location,
            "status": ListingStatus.ACTIVE,
            "categories": {Category.RESTAURANT},
            "cuisines": {Cuisine.EUROPEAN},
            "price_range": PriceRange.MODERATE,
        }
        fields.update(overrides)
        return SearchableEntity(**fields)

    return _make
