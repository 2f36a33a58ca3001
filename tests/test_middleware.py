"""Middleware tests: request ID, rate limiting, CORS, error envelope."""

from typing import Any

import pytest
from httpx import AsyncClient

from petnet.middleware import rate_limit


class _FakePipeline:
    def __init__(self, counters: dict[str, int]) -> None:
        self._counters = counters
        self._key = ""

    def incr(self, key: str) -> None:
        self._key = key

    def expire(self, key: str, seconds: int) -> None:
        pass

    async def execute(self) -> list[Any]:
        self._counters[self._key] = self._counters.get(self._key, 0) + 1
        return [self._counters[self._key], True]


class _FakeRedis:
    def __init__(self) -> None:
        self.counters: dict[str, int] = {}

    def pipeline(self) -> _FakePipeline:
        return _FakePipeline(self.counters)


@pytest.fixture
def fake_redis(monkeypatch: pytest.MonkeyPatch) -> _FakeRedis:
    fake = _FakeRedis()
    monkeypatch.setattr(rate_limit, "get_redis", lambda: fake)
    return fake


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient) -> None:
    """Request ID is auto-generated when not provided."""
    response = await client.get("/health")
    assert len(response.headers["x-request-id"]) == 32


@pytest.mark.asyncio
async def test_request_id_preserved(client: AsyncClient) -> None:
    """Custom request ID is echoed back in response."""
    response = await client.get("/health", headers={"X-Request-Id": "test-abc-123"})
    assert response.headers["x-request-id"] == "test-abc-123"


@pytest.mark.asyncio
async def test_request_id_truncated(client: AsyncClient) -> None:
    response = await client.get("/health", headers={"X-Request-Id": "x" * 500})
    assert response.headers["x-request-id"] == "x" * 128


@pytest.mark.asyncio
async def test_no_rate_limit_headers_without_redis(client: AsyncClient) -> None:
    response = await client.get("/version")
    assert response.status_code == 200
    assert "x-ratelimit-limit" not in response.headers


@pytest.mark.asyncio
async def test_rate_limit_headers(client: AsyncClient, fake_redis: _FakeRedis) -> None:
    """Rate limit headers are present on non-exempt endpoints."""
    response = await client.get("/version")
    assert response.headers["x-ratelimit-limit"] == "100"
    assert response.headers["x-ratelimit-remaining"] == "99"


@pytest.mark.asyncio
async def test_rate_limit_blocks_excess(client: AsyncClient, fake_redis: _FakeRedis) -> None:
    """101st request returns 429 with Retry-After header."""
    for _ in range(100):
        await client.get("/version")
    response = await client.get("/version")
    assert response.status_code == 429
    assert "retry-after" in response.headers
    assert response.json()["kind"] == "rate_limited"


@pytest.mark.asyncio
async def test_health_exempt_from_rate_limit(client: AsyncClient, fake_redis: _FakeRedis) -> None:
    for _ in range(150):
        response = await client.get("/health")
        assert response.status_code == 200
    assert fake_redis.counters == {}


@pytest.mark.asyncio
async def test_cors_preflight(client: AsyncClient) -> None:
    """CORS preflight returns access-control-allow-origin for configured origin."""
    response = await client.options(
        "/health",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"


@pytest.mark.asyncio
async def test_404_returns_envelope(client: AsyncClient) -> None:
    """Unknown paths return 404 in the standard error envelope."""
    response = await client.get("/nonexistent-path")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Not Found", "kind": "http_error"}


@pytest.mark.asyncio
async def test_validation_error_envelope(client: AsyncClient) -> None:
    response = await client.get("/api/v1/pets/not-a-number")
    assert response.status_code == 400
    data = response.json()
    assert data["success"] is False
    assert data["kind"] == "invalid_input"
    assert data["errors"][0]["loc"] == ["path", "pet_id"]


@pytest.mark.asyncio
async def test_invalid_input_status_is_uniform(client: AsyncClient, auth_headers) -> None:
    """Schema failures and service-side InvalidInput share one status and kind."""
    headers = auth_headers("user-1")
    from_schema = await client.post("/api/v1/pets", json={"species": "dog"}, headers=headers)
    from_service = await client.post("/api/v1/pets", json={"name": "   ", "species": "dog"}, headers=headers)

    assert from_schema.status_code == from_service.status_code == 400
    assert from_schema.json()["kind"] == from_service.json()["kind"] == "invalid_input"
