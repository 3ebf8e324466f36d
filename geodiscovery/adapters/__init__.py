"""
Adapters - Catalog store implementations.

All storage access is wrapped here to isolate the search domain from the
backing database.
"""

from .memory import InMemoryCatalog
from .sqlite import SQLiteCatalogRepository

__all__ = [
    "InMemoryCatalog",
    "SQLiteCatalogRepository",
]
