"""
Health Routes - Liveness and API info endpoints.
"""

from typing import Any

from fastapi import APIRouter

from geodiscovery import __version__

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Liveness check. Does not touch the catalog."""
    return {"status": "healthy", "service": "geodiscovery"}


@router.get("/api")
async def api_info() -> dict[str, Any]:
    """API info endpoint."""
    return {
        "name": "GeoDiscovery API",
        "version": __version__,
        "description": "Geospatial discovery and ranking of nearby establishments",
        "docs": "/docs",
    }
