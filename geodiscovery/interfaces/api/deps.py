"""
API Dependencies - Dependency injection for FastAPI routes.

Provides singleton instances of the catalog repository and discovery engine.
"""

from __future__ import annotations

from functools import lru_cache

from geodiscovery.adapters.sqlite import SQLiteCatalogRepository
from geodiscovery.config import get_settings
from geodiscovery.domains.search import DiscoveryEngine, QueryNormalizer


@lru_cache
def get_catalog_repository() -> SQLiteCatalogRepository:
    """Get SQLite catalog repository singleton."""
    settings = get_settings()
    return SQLiteCatalogRepository(settings.db_path)


@lru_cache
def get_discovery_engine() -> DiscoveryEngine:
    """Get discovery engine singleton."""
    return DiscoveryEngine(get_catalog_repository(), settings=get_settings())


def get_query_normalizer() -> QueryNormalizer:
    """Get a query normalizer bound to current settings."""
    return QueryNormalizer(get_settings())


async def init_services() -> None:
    """
    Initialize services on startup.

    This should be called from the FastAPI lifespan handler.
    """
    repo = get_catalog_repository()
    await repo.initialize()


async def cleanup_services() -> None:
    """Cleanup services on shutdown."""
    repo = get_catalog_repository()
    await repo.close()
