"""In-memory catalog store."""

from .catalog import InMemoryCatalog

__all__ = ["InMemoryCatalog"]
