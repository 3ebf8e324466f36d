"""
Geodesy - Great-circle distance and bounding envelopes on a spherical earth.

Distance and envelope share one sphere so that the coarse box filter and the
exact radius check agree at the edge of the search radius.
"""

from __future__ import annotations

import math

from .models import BoundingBox, GeoPoint

__all__ = [
    "EARTH_RADIUS_KM",
    "bounding_envelope",
    "destination_point",
    "haversine_km",
]

# IUGG mean earth radius
EARTH_RADIUS_KM = 6371.0088

# Padding for the coarse envelope, in degrees (~1 cm)
_ENVELOPE_PAD_DEG = 1e-7


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points in kilometers."""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlat = lat2 - lat1
    dlon = math.radians(b.longitude - a.longitude)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    # clamp guards against rounding pushing h slightly above 1 for antipodes
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, h)))


def bounding_envelope(center: GeoPoint, radius_km: float) -> BoundingBox:
    """
    Smallest lat/lon box containing every point within radius_km of center.

    Uses the spherical cap bounds: the latitude span is the angular radius,
    the longitude span is asin(sin(r) / cos(lat)). When the cap reaches a
    pole the box widens to the full longitude range.

    Args:
        center: Query center
        radius_km: Search radius in kilometers (must be positive)

    Returns:
        Bounding box clamped to valid coordinate ranges
    """
    if radius_km <= 0:
        raise ValueError("radius_km must be positive")

    angular = radius_km / EARTH_RADIUS_KM
    lat = math.radians(center.latitude)
    lon = math.radians(center.longitude)

    min_lat = lat - angular
    max_lat = lat + angular

    if min_lat > -math.pi / 2 and max_lat < math.pi / 2:
        ratio = math.sin(angular) / math.cos(lat)
        if ratio >= 1.0:
            min_lon, max_lon = -math.pi, math.pi
        else:
            dlon = math.asin(ratio)
            min_lon = lon - dlon
            max_lon = lon + dlon
    else:
        min_lon, max_lon = -math.pi, math.pi

    return BoundingBox(
        min_lat=max(-90.0, math.degrees(min_lat) - _ENVELOPE_PAD_DEG),
        max_lat=min(90.0, math.degrees(max_lat) + _ENVELOPE_PAD_DEG),
        min_lon=max(-180.0, math.degrees(min_lon) - _ENVELOPE_PAD_DEG),
        max_lon=min(180.0, math.degrees(max_lon) + _ENVELOPE_PAD_DEG),
    )


def destination_point(origin: GeoPoint, bearing_deg: float, distance_km: float) -> GeoPoint:
    """Point reached travelling distance_km from origin on the given initial bearing."""
    angular = distance_km / EARTH_RADIUS_KM
    bearing = math.radians(bearing_deg)
    lat1 = math.radians(origin.latitude)
    lon1 = math.radians(origin.longitude)

    lat2 = math.asin(
        math.sin(lat1) * math.cos(angular)
        + math.cos(lat1) * math.sin(angular) * math.cos(bearing)
    )
    lon2 = lon1 + math.atan2(
        math.sin(bearing) * math.sin(angular) * math.cos(lat1),
        math.cos(angular) - math.sin(lat1) * math.sin(lat2),
    )
    lon_deg = (math.degrees(lon2) + 540.0) % 360.0 - 180.0
    return GeoPoint(latitude=math.degrees(lat2), longitude=lon_deg)
