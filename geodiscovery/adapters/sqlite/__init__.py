"""SQLite catalog store."""

from .repository import SQLiteCatalogRepository

__all__ = ["SQLiteCatalogRepository"]
