"""Tests for API Routes."""

from collections.abc import Callable, Generator
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from geodiscovery.adapters.memory import InMemoryCatalog
from geodiscovery.config import RankingInvariantError, Settings
from geodiscovery.domains.search import DiscoveryEngine, QueryNormalizer
from geodiscovery.domains.search.models import Category, ListingStatus, SearchableEntity

from .deps import get_discovery_engine, get_query_normalizer
from .main import create_app
from .middleware import FixedWindowLimiter, RateLimitMiddleware

EntityFactory = Callable[..., SearchableEntity]

RADIUS_URL = "/api/v1/search/establishments"
MAP_URL = "/api/v1/search/map"
VIEWPORT = {"minLat": "53.85", "maxLat": "53.95", "minLon": "27.45", "maxLon": "27.65"}


@pytest.fixture
def catalog(make_entity: EntityFactory) -> InMemoryCatalog:
    """Catalog with a few listings around Minsk."""
    return InMemoryCatalog(
        [
            make_entity("near", 0.4, rating=4.7, review_count=210, promotion_weight=10),
            make_entity("bar", 1.8, categories={Category.BAR}, rating=4.1),
            make_entity("unrated", 2.6),
            make_entity("hidden", 0.1, status=ListingStatus.PENDING, rating=5.0),
            make_entity("brest", 330.0, bearing=250),
        ]
    )


@pytest.fixture
def app(catalog: InMemoryCatalog, settings: Settings) -> Generator[FastAPI, None, None]:
    """Create an app wired to the in-memory catalog."""
    app = create_app()

    # Override dependencies
    app.dependency_overrides[get_discovery_engine] = lambda: DiscoveryEngine(catalog, settings=settings)
    app.dependency_overrides[get_query_normalizer] = lambda: QueryNormalizer(settings)

    yield app

    # Cleanup
    app.dependency_overrides.clear()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


def _use_catalog(app: FastAPI, settings: Settings, catalog, **engine_kwargs) -> None:
    app.dependency_overrides[get_discovery_engine] = lambda: DiscoveryEngine(
        catalog, settings=settings, **engine_kwargs
    )


def test_health_endpoint(client: TestClient) -> None:
    """Test liveness endpoint."""
    response = client.get("/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "geodiscovery"


def test_api_info(client: TestClient) -> None:
    """Test API info endpoint."""
    response = client.get("/api")
    assert response.status_code == 200
    assert response.json()["name"] == "GeoDiscovery API"


def test_radius_search(client: TestClient) -> None:
    """Test radius search returns ranked results with distances."""
    response = client.get(RADIUS_URL, params={"latitude": "53.90", "longitude": "27.56", "radius": "5"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True

    results = body["data"]["results"]
    assert [r["id"] for r in results] == ["near", "bar", "unrated"]
    assert results[0]["distanceKm"] == pytest.approx(0.4, abs=1e-3)
    assert results[0]["isPromoted"] is True
    assert results[0]["ratingDisplay"] == "4.7"
    assert results[2]["rating"] is None
    assert results[2]["ratingDisplay"] == "no rating yet"
    assert body["data"]["pagination"] == {"total": 3, "limit": 20, "offset": 0, "hasNext": False}


def test_radius_search_filters_and_paging(client: TestClient) -> None:
    """Test filter and pagination parameters reach the engine."""
    filtered = client.get(
        RADIUS_URL,
        params={"latitude": "53.90", "longitude": "27.56", "categories": "Бар,Паб"},
    )
    paged = client.get(
        RADIUS_URL,
        params={"latitude": "53.90", "longitude": "27.56", "limit": "1", "offset": "1"},
    )

    assert [r["id"] for r in filtered.json()["data"]["results"]] == ["bar"]
    page = paged.json()["data"]
    assert [r["id"] for r in page["results"]] == ["bar"]
    assert page["pagination"]["hasNext"] is True


def test_map_search(client: TestClient) -> None:
    """Test map search omits distance."""
    response = client.get(MAP_URL, params=VIEWPORT)

    assert response.status_code == 200
    data = response.json()["data"]
    assert {r["id"] for r in data["results"]} == {"near", "bar", "unrated"}
    assert all("distanceKm" not in r for r in data["results"])
    assert data["pagination"]["limit"] == 100
    assert data["pagination"]["offset"] == 0


def test_empty_result_is_success(client: TestClient) -> None:
    """Test no matches is a normal response."""
    response = client.get(
        RADIUS_URL,
        params={"latitude": "53.90", "longitude": "27.56", "minRating": "4.9"},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["results"] == []
    assert data["pagination"]["total"] == 0


def test_validation_error_lists_fields(client: TestClient) -> None:
    """Test a bad request reports every offending parameter."""
    response = client.get(RADIUS_URL, params={"latitude": "abc", "minRating": "9"})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "VALIDATION_ERROR"
    fields = {issue["field"] for issue in body["error"]["details"]["issues"]}
    assert fields == {"latitude", "longitude", "minRating"}
    assert body["request_id"] == response.headers["x-request-id"]


def test_map_validation_error(client: TestClient) -> None:
    """Test an inverted viewport is rejected."""
    response = client.get(MAP_URL, params={**VIEWPORT, "minLat": "54.0"})

    assert response.status_code == 400
    fields = [issue["field"] for issue in response.json()["error"]["details"]["issues"]]
    assert fields == ["minLat"]


def test_catalog_unavailable(app: FastAPI, client: TestClient, settings: Settings) -> None:
    """Test a failing catalog is a 503, never an empty result."""
    broken = AsyncMock()
    broken.find_in_box.side_effect = OSError("connection refused")
    _use_catalog(app, settings, broken)

    response = client.get(RADIUS_URL, params={"latitude": "53.90", "longitude": "27.56"})

    assert response.status_code == 503
    assert response.json()["error"]["code"] == "CATALOG_UNAVAILABLE"


def test_ranking_failure_is_internal_error(
    app: FastAPI, client: TestClient, catalog: InMemoryCatalog, settings: Settings
) -> None:
    """Test a ranking invariant violation is a 500."""

    class BrokenRanker:
        def rank(self, candidates, mode):
            raise RankingInvariantError("distance missing")

    _use_catalog(app, settings, catalog, ranker=BrokenRanker())

    response = client.get(MAP_URL, params=VIEWPORT)

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "INTERNAL_ERROR"


def test_search_health(client: TestClient) -> None:
    """Test search readiness with a reachable catalog."""
    response = client.get("/api/v1/search/health")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["catalog"]["visible_entities"] == 4


def test_search_health_unavailable(app: FastAPI, client: TestClient, settings: Settings) -> None:
    """Test search readiness reports 503 when the catalog is down."""
    broken = AsyncMock()
    broken.ping.side_effect = OSError("database is locked")
    _use_catalog(app, settings, broken)

    response = client.get("/api/v1/search/health")

    assert response.status_code == 503
    assert response.json()["data"]["healthy"] is False


def test_cors_headers(client: TestClient) -> None:
    """Test CORS preflight for the search endpoint."""
    response = client.options(
        RADIUS_URL,
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "GET"},
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"


def test_request_id_header(client: TestClient) -> None:
    """Test that responses include request ID."""
    response = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["x-request-id"] == "abc-123"


def test_404_for_unknown_routes(client: TestClient) -> None:
    """Test 404 for non-existent routes."""
    response = client.get("/api/v1/search/nonexistent")
    assert response.status_code == 404


def test_rate_limit() -> None:
    """Test requests over the per-minute budget are rejected, health is exempt."""
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, requests_per_minute=2, clock=lambda: 30.0)

    @app.get("/ping")
    async def ping() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    client = TestClient(app)
    statuses = [client.get("/ping").status_code for _ in range(3)]

    assert statuses == [200, 200, 429]
    assert client.get("/ping").headers["retry-after"] == "30"
    assert client.get("/health").status_code == 200


def test_fixed_window_limiter_refills() -> None:
    """Test the budget is per key and refills in the next window."""
    now = [0.0]
    limiter = FixedWindowLimiter(limit=2, window_seconds=60, clock=lambda: now[0])

    assert limiter.acquire("a") == 1
    assert limiter.acquire("a") == 0
    assert limiter.acquire("a") is None
    assert limiter.acquire("b") == 1

    now[0] = 61.0
    assert limiter.acquire("a") == 1


def test_malformed_request_id_is_replaced(client: TestClient) -> None:
    """Test a client id with unsafe characters is not echoed."""
    response = client.get("/health", headers={"X-Request-ID": "bad id\twith spaces"})
    assert response.headers["x-request-id"] != "bad id\twith spaces"
    assert len(response.headers["x-request-id"]) == 32
