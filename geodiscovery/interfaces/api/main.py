"""
FastAPI Main Application - GeoDiscovery API entry point.

Run with: uvicorn geodiscovery.interfaces.api.main:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from geodiscovery import __version__
from geodiscovery.config import get_settings

from .deps import cleanup_services, init_services
from .middleware import (
    ErrorHandlerMiddleware,
    LatencyMiddleware,
    RateLimitMiddleware,
    RequestIDMiddleware,
)
from .routes import health, search

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logger.info("Starting GeoDiscovery API...")
    logger.info("  Catalog: %s", settings.db_path)
    logger.info(
        "  Region: lat [%s, %s] lon [%s, %s]",
        settings.region_min_lat,
        settings.region_max_lat,
        settings.region_min_lon,
        settings.region_max_lon,
    )

    await init_services()
    logger.info("  Services initialized")

    yield

    logger.info("Shutting down GeoDiscovery API...")
    await cleanup_services()


def create_app() -> FastAPI:
    """Create FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="GeoDiscovery API",
        description="Geospatial discovery and ranking of nearby establishments",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters - last added = outermost)
    app.add_middleware(RateLimitMiddleware, requests_per_minute=settings.api_rate_limit_per_minute)
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(LatencyMiddleware)
    app.add_middleware(RequestIDMiddleware)

    allowed_origins = list(settings.api_cors_origins)
    if settings.api_debug:
        allowed_origins.append(f"http://localhost:{settings.api_port}")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(search.router, prefix="/api/v1/search", tags=["Search"])

    return app


# Create app instance
app = create_app()
