"""
API Routes.
"""

from . import health, search

__all__ = ["health", "search"]
