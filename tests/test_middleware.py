"""Middleware tests — request ID, rate limiting, error handling."""

import pytest
from httpx import ASGITransport, AsyncClient

from questline.config import get_settings
from questline.main import create_app
from questline.middleware import rate_limit


class _CounterPipeline:
    def __init__(self, store: dict[str, int]) -> None:
        self.store = store
        self.key = ""

    def incr(self, key: str) -> None:
        self.key = key

    def expire(self, key: str, seconds: int) -> None:
        pass

    async def execute(self) -> list[int]:
        self.store[self.key] = self.store.get(self.key, 0) + 1
        return [self.store[self.key], True]


class _CounterRedis:
    """In-memory INCR counter with the pipeline surface the rate limiter uses."""

    def __init__(self) -> None:
        self.store: dict[str, int] = {}

    def pipeline(self) -> _CounterPipeline:
        return _CounterPipeline(self.store)


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient) -> None:
    """Request ID is auto-generated when not provided."""
    response = await client.get("/health")
    assert "x-request-id" in response.headers
    assert len(response.headers["x-request-id"]) == 36  # UUID format


@pytest.mark.asyncio
async def test_request_id_preserved(client: AsyncClient) -> None:
    """Custom request ID is echoed back in response."""
    response = await client.get("/health", headers={"X-Request-Id": "test-abc-123"})
    assert response.headers["x-request-id"] == "test-abc-123"


@pytest.mark.asyncio
async def test_no_rate_limit_without_redis(client: AsyncClient) -> None:
    response = await client.get("/version")
    assert response.status_code == 200
    assert "x-ratelimit-limit" not in response.headers


@pytest.mark.asyncio
async def test_rate_limit_blocks_excess(client: AsyncClient, monkeypatch) -> None:
    """101st request in a window returns 429 with Retry-After header."""
    fake = _CounterRedis()
    monkeypatch.setattr(rate_limit, "get_redis_optional", lambda: fake)

    for _ in range(100):
        response = await client.get("/version")
        assert response.status_code == 200
    assert response.headers["x-ratelimit-remaining"] == "0"

    response = await client.get("/version")
    assert response.status_code == 429
    assert "retry-after" in response.headers
    assert "detail" in response.json()


@pytest.mark.asyncio
async def test_health_exempt_from_rate_limit(client: AsyncClient, monkeypatch) -> None:
    fake = _CounterRedis()
    monkeypatch.setattr(rate_limit, "get_redis_optional", lambda: fake)

    for _ in range(150):
        response = await client.get("/health")
        assert response.status_code == 200
    assert fake.store == {}


@pytest.mark.asyncio
async def test_unknown_route_returns_json_404(client: AsyncClient) -> None:
    response = await client.get("/nonexistent")
    assert response.status_code == 404
    assert "detail" in response.json()


@pytest.mark.asyncio
async def test_rate_limited_response_keeps_request_id(client: AsyncClient, monkeypatch) -> None:
    fake = _CounterRedis()
    monkeypatch.setattr(rate_limit, "get_redis_optional", lambda: fake)
    for _ in range(100):
        await client.get("/version")

    response = await client.get("/version", headers={"X-Request-Id": "limited-1"})
    assert response.status_code == 429
    assert response.headers["x-request-id"] == "limited-1"


@pytest.mark.asyncio
async def test_progress_error_body(client: AsyncClient) -> None:
    response = await client.get("/api/v1/badges/unknown")
    assert response.status_code == 404
    assert response.json() == {"detail": "Badge not found: unknown"}


@pytest.mark.asyncio
async def test_rate_limit_disabled_ignores_redis(monkeypatch) -> None:
    fake = _CounterRedis()
    monkeypatch.setattr(rate_limit, "get_redis_optional", lambda: fake)
    monkeypatch.setattr(get_settings(), "rate_limit_enabled", False)
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as unlimited:
        for _ in range(120):
            response = await unlimited.get("/version")
            assert response.status_code == 200
    assert fake.store == {}
