"""
Configuration - Application settings and error taxonomy.
"""

from .errors import (
    CatalogUnavailableError,
    ErrorCode,
    FieldIssue,
    GeoDiscoveryError,
    QueryValidationError,
    RankingInvariantError,
    StorageError,
)
from .settings import RankingWeights, Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "RankingWeights",
    "get_settings",
    # Errors
    "ErrorCode",
    "GeoDiscoveryError",
    "FieldIssue",
    "QueryValidationError",
    "CatalogUnavailableError",
    "StorageError",
    "RankingInvariantError",
]
