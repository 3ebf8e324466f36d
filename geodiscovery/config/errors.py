"""
Error Taxonomy - Consistent error codes across the application.

Usage:
    from geodiscovery.config.errors import ErrorCode, GeoDiscoveryError

    raise GeoDiscoveryError(ErrorCode.CATALOG_UNAVAILABLE, "Catalog lookup timed out")
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error responses."""

    # Query errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Catalog/storage errors
    CATALOG_UNAVAILABLE = "CATALOG_UNAVAILABLE"
    STORAGE_READ_FAILED = "STORAGE_READ_FAILED"
    STORAGE_WRITE_FAILED = "STORAGE_WRITE_FAILED"

    # Security errors
    SECURITY_RATE_LIMITED = "SECURITY_RATE_LIMITED"

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    NOT_FOUND = "NOT_FOUND"


class GeoDiscoveryError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class FieldIssue:
    """One rejected query parameter."""

    __slots__ = ("field", "reason", "value")

    def __init__(self, field: str, reason: str, value: Any = None) -> None:
        self.field = field
        self.reason = reason
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "reason": self.reason, "value": self.value}

    def __repr__(self) -> str:
        return f"FieldIssue({self.field!r}, {self.reason!r}, {self.value!r})"


class QueryValidationError(GeoDiscoveryError):
    """Search parameters failed validation; carries every offending field."""

    def __init__(self, issues: list[FieldIssue]) -> None:
        self.issues = list(issues)
        fields = ", ".join(issue.field for issue in self.issues)
        super().__init__(
            ErrorCode.VALIDATION_ERROR,
            f"Invalid search parameters: {fields}",
            {"issues": [issue.to_dict() for issue in self.issues]},
        )

    @property
    def fields(self) -> list[str]:
        return [issue.field for issue in self.issues]


class CatalogUnavailableError(GeoDiscoveryError):
    """Catalog store unreachable or timed out."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.CATALOG_UNAVAILABLE, message, details)


class StorageError(GeoDiscoveryError):
    """Storage/database errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.STORAGE_READ_FAILED,
    ) -> None:
        super().__init__(code, message, details)


class RankingInvariantError(GeoDiscoveryError):
    """Ranking received data that violates an engine invariant."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.INTERNAL_ERROR, message, details)
