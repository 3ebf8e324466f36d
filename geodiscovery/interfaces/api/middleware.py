"""
API Middleware - Request/response processing for the search API.

Provides:
- Request ID propagation (X-Request-ID)
- Response latency header and access log
- GeoDiscoveryError to HTTP status translation with the error envelope
- Per-client fixed-window rate limiting
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from geodiscovery.config.errors import ErrorCode, GeoDiscoveryError

logger = logging.getLogger(__name__)

HEALTH_PATHS = frozenset({"/health", "/api/v1/search/health"})

_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.SECURITY_RATE_LIMITED: 429,
    ErrorCode.CATALOG_UNAVAILABLE: 503,
    ErrorCode.STORAGE_READ_FAILED: 503,
}

# Client-supplied ids are echoed into logs and headers
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def _error_response(
    request: Request,
    status_code: int,
    error: dict[str, Any],
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "request_id": _request_id(request)},
        headers=headers,
    )


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Reuse a well-formed X-Request-ID from the client or mint a new one."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        incoming = request.headers.get("X-Request-ID", "")
        request_id = incoming if _REQUEST_ID_PATTERN.match(incoming) else uuid.uuid4().hex
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class LatencyMiddleware(BaseHTTPMiddleware):
    """Add X-Response-Time-Ms and write one access log line per request."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers["X-Response-Time-Ms"] = f"{elapsed_ms:.2f}"
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s %s status=%d latency_ms=%.2f request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            _request_id(request),
        )
        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Translate GeoDiscoveryError into the JSON error envelope."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            return await call_next(request)
        except GeoDiscoveryError as e:
            status_code = _error_code_to_status(e.code)
            if status_code >= 500:
                logger.error(
                    "%s: %s request_id=%s details=%s",
                    e.code.value,
                    e.message,
                    _request_id(request),
                    e.details,
                )
            else:
                logger.warning(
                    "%s: %s request_id=%s", e.code.value, e.message, _request_id(request)
                )
            return _error_response(request, status_code, e.to_dict())
        except Exception:
            logger.exception("Unhandled error request_id=%s", _request_id(request))
            return _error_response(
                request,
                500,
                {
                    "code": ErrorCode.INTERNAL_ERROR.value,
                    "message": "Internal server error",
                    "details": {},
                },
            )


@dataclass
class _Window:
    index: int = -1
    remaining: int = 0


class FixedWindowLimiter:
    """
    Per-key request budget that refills at each window boundary.

    Example:
        >>> limiter = FixedWindowLimiter(limit=120)
        >>> limiter.acquire("10.0.0.1")
        119
    """

    def __init__(
        self,
        limit: int,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    def acquire(self, key: str) -> int | None:
        """Take one request from the key's budget; None when it is exhausted."""
        index = int(self._clock() // self.window_seconds)
        window = self._windows.setdefault(key, _Window())
        if window.index != index:
            # Keys from past windows are dropped as they roll over
            self._windows = {k: w for k, w in self._windows.items() if w.index == index}
            window.index = index
            window.remaining = self.limit
            self._windows[key] = window
        if window.remaining <= 0:
            return None
        window.remaining -= 1
        return window.remaining

    def retry_after(self) -> int:
        """Seconds until the current window ends."""
        now = self._clock()
        return max(1, int(self.window_seconds - now % self.window_seconds))


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-client-IP rate limiting; health probes are never limited."""

    def __init__(
        self,
        app: ASGIApp,
        requests_per_minute: int = 120,
        exempt_paths: Iterable[str] = HEALTH_PATHS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(app)
        self.limiter = FixedWindowLimiter(requests_per_minute, clock=clock)
        self.exempt_paths = frozenset(exempt_paths)

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.url.path in self.exempt_paths:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        remaining = self.limiter.acquire(client_ip)

        if remaining is None:
            retry_after = self.limiter.retry_after()
            logger.warning("Rate limit exceeded for %s request_id=%s", client_ip, _request_id(request))
            return _error_response(
                request,
                429,
                {
                    "code": ErrorCode.SECURITY_RATE_LIMITED.value,
                    "message": f"Too many requests. Please retry after {retry_after} seconds.",
                    "details": {"retry_after": retry_after},
                },
                headers={"Retry-After": str(retry_after)},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.limiter.limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response


def _error_code_to_status(code: ErrorCode) -> int:
    """Map error codes to HTTP status codes; anything unmapped is a 500."""
    return _STATUS_BY_CODE.get(code, 500)
