"""
Query Normalizer - Turns raw query-string parameters into typed search queries.

Every rejected field is collected before raising, so a caller gets the full
list of problems in one QueryValidationError.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from enum import Enum
from typing import TypeVar

from geodiscovery.config import FieldIssue, QueryValidationError, Settings

from .models import (
    MAX_RATING,
    MIN_RATING,
    BoundingBox,
    BoundsQuery,
    Category,
    Cuisine,
    GeoPoint,
    Pagination,
    PriceRange,
    RadiusQuery,
    SearchFilters,
)

__all__ = ["QueryNormalizer"]

E = TypeVar("E", bound=Enum)

RawParams = Mapping[str, str | None]


class QueryNormalizer:
    """
    Validates raw search parameters.

    Example:
        >>> normalizer = QueryNormalizer(get_settings())
        >>> query = normalizer.normalize_radius({"latitude": "53.9", "longitude": "27.56"})
        >>> query.radius_km
        10.0
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def normalize_radius(self, params: RawParams) -> RadiusQuery:
        """
        Build a radius query.

        Args:
            params: Raw parameters (latitude, longitude, radius, categories,
                cuisines, priceRange, minRating, limit, offset)

        Returns:
            Validated RadiusQuery

        Raises:
            QueryValidationError: listing every offending field
        """
        s = self._settings
        issues: list[FieldIssue] = []

        lat = _parse_float(params, "latitude", issues, required=True)
        lon = _parse_float(params, "longitude", issues, required=True)
        if lat is not None and not -90 <= lat <= 90:
            issues.append(FieldIssue("latitude", "must be between -90 and 90", lat))
            lat = None
        if lon is not None and not -180 <= lon <= 180:
            issues.append(FieldIssue("longitude", "must be between -180 and 180", lon))
            lon = None
        if lat is not None and not s.region_min_lat <= lat <= s.region_max_lat:
            issues.append(
                FieldIssue(
                    "latitude",
                    f"outside operating region [{s.region_min_lat}, {s.region_max_lat}]",
                    lat,
                )
            )
        if lon is not None and not s.region_min_lon <= lon <= s.region_max_lon:
            issues.append(
                FieldIssue(
                    "longitude",
                    f"outside operating region [{s.region_min_lon}, {s.region_max_lon}]",
                    lon,
                )
            )

        radius = _parse_float(params, "radius", issues)
        if radius is None and not _present(params, "radius"):
            radius = s.search_default_radius_km
        elif radius is not None:
            if radius <= 0:
                issues.append(FieldIssue("radius", "must be greater than 0", radius))
            radius = min(radius, s.search_max_radius_km)

        filters = _parse_filters(params, issues)
        limit = _parse_limit(params, issues, s.search_default_limit, s.search_max_limit)
        offset = _parse_offset(params, issues)

        if issues:
            raise QueryValidationError(issues)

        return RadiusQuery(
            center=GeoPoint(latitude=lat, longitude=lon),
            radius_km=radius,
            filters=filters,
            pagination=Pagination(limit=limit, offset=offset),
        )

    def normalize_bounds(self, params: RawParams) -> BoundsQuery:
        """
        Build a map-viewport query.

        Offset is not part of map mode; the result is a single capped page.

        Raises:
            QueryValidationError: listing every offending field
        """
        s = self._settings
        issues: list[FieldIssue] = []

        min_lat = _parse_float(params, "minLat", issues, required=True)
        max_lat = _parse_float(params, "maxLat", issues, required=True)
        min_lon = _parse_float(params, "minLon", issues, required=True)
        max_lon = _parse_float(params, "maxLon", issues, required=True)

        for name, value, limit_abs in (
            ("minLat", min_lat, 90),
            ("maxLat", max_lat, 90),
            ("minLon", min_lon, 180),
            ("maxLon", max_lon, 180),
        ):
            if value is not None and not -limit_abs <= value <= limit_abs:
                issues.append(
                    FieldIssue(name, f"must be between -{limit_abs} and {limit_abs}", value)
                )

        if min_lat is not None and max_lat is not None and min_lat >= max_lat:
            issues.append(FieldIssue("minLat", "must be less than maxLat", min_lat))
        if min_lon is not None and max_lon is not None and min_lon >= max_lon:
            issues.append(FieldIssue("minLon", "must be less than maxLon", min_lon))

        filters = _parse_filters(params, issues)
        limit = _parse_limit(params, issues, s.map_default_limit, s.map_max_limit)

        if issues:
            raise QueryValidationError(issues)

        return BoundsQuery(
            bounds=BoundingBox(min_lat=min_lat, max_lat=max_lat, min_lon=min_lon, max_lon=max_lon),
            filters=filters,
            pagination=Pagination(limit=limit, offset=0),
        )


def _present(params: RawParams, name: str) -> bool:
    raw = params.get(name)
    return raw is not None and raw.strip() != ""


def _parse_float(
    params: RawParams,
    name: str,
    issues: list[FieldIssue],
    required: bool = False,
) -> float | None:
    raw = params.get(name)
    if raw is None or raw.strip() == "":
        if required:
            issues.append(FieldIssue(name, "required", raw))
        return None
    try:
        value = float(raw)
    except ValueError:
        issues.append(FieldIssue(name, "must be a number", raw))
        return None
    if not math.isfinite(value):
        issues.append(FieldIssue(name, "must be a finite number", raw))
        return None
    return value


def _parse_int(params: RawParams, name: str, issues: list[FieldIssue]) -> int | None:
    raw = params.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw.strip())
    except ValueError:
        issues.append(FieldIssue(name, "must be an integer", raw))
        return None


def _parse_tokens(
    params: RawParams,
    name: str,
    vocabulary: type[E],
    issues: list[FieldIssue],
) -> frozenset[E]:
    raw = params.get(name)
    if raw is None:
        return frozenset()

    tokens = [token.strip() for token in raw.split(",")]
    tokens = [token for token in tokens if token]

    known = {member.value: member for member in vocabulary}
    unknown = [token for token in tokens if token not in known]
    if unknown:
        issues.append(FieldIssue(name, f"unknown values: {', '.join(unknown)}", raw))
        return frozenset()
    return frozenset(known[token] for token in tokens)


def _parse_filters(params: RawParams, issues: list[FieldIssue]) -> SearchFilters:
    categories = _parse_tokens(params, "categories", Category, issues)
    cuisines = _parse_tokens(params, "cuisines", Cuisine, issues)

    price_range: PriceRange | None = None
    raw_price = params.get("priceRange")
    if raw_price is not None and raw_price.strip():
        try:
            price_range = PriceRange(raw_price.strip())
        except ValueError:
            allowed = ", ".join(p.value for p in PriceRange)
            issues.append(FieldIssue("priceRange", f"must be one of: {allowed}", raw_price))

    min_rating = _parse_float(params, "minRating", issues)
    if min_rating is not None and not MIN_RATING <= min_rating <= MAX_RATING:
        issues.append(
            FieldIssue("minRating", f"must be between {MIN_RATING:g} and {MAX_RATING:g}", min_rating)
        )
        min_rating = None

    return SearchFilters(
        categories=categories,
        cuisines=cuisines,
        price_range=price_range,
        min_rating=min_rating,
    )


def _parse_limit(
    params: RawParams,
    issues: list[FieldIssue],
    default: int,
    maximum: int,
) -> int:
    limit = _parse_int(params, "limit", issues)
    if limit is None:
        return default
    if limit < 1:
        issues.append(FieldIssue("limit", "must be at least 1", limit))
        return default
    return min(limit, maximum)


def _parse_offset(params: RawParams, issues: list[FieldIssue]) -> int:
    offset = _parse_int(params, "offset", issues)
    if offset is None:
        return 0
    if offset < 0:
        issues.append(FieldIssue("offset", "must be non-negative", offset))
        return 0
    return offset
