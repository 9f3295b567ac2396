"""Tests for rate limiting on the data endpoints."""
from collections.abc import Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient

from core.redis import set_redis_client


@pytest.fixture
def redis_results() -> Generator[AsyncMock]:
    """Install a connected fake Redis; tests set the script results."""
    redis_client = MagicMock()
    redis_client.is_connected = True
    redis_client.sliding_window_sha = "sliding"
    redis_client.fixed_window_sha = "fixed"
    redis_client.evalsha = AsyncMock()
    set_redis_client(redis_client)
    yield redis_client.evalsha
    set_redis_client(None)


async def test_rate_limit_headers_without_redis(client: AsyncClient) -> None:
    """With Redis down requests pass and report the configured limit."""
    response = await client.get("/transactions/")
    assert response.status_code == 200
    assert response.headers["X-RateLimit-Limit"] == "180"
    assert "X-RateLimit-Remaining" in response.headers
    assert "X-RateLimit-Reset" in response.headers


async def test_rate_limit_headers_for_writes(client: AsyncClient) -> None:
    response = await client.post(
        "/transactions/", json={"description": "x", "amount": "1", "type": "expense"},
    )
    assert response.status_code == 201
    assert response.headers["X-RateLimit-Limit"] == "120"


async def test_rate_limit_exceeded_returns_429(
    client: AsyncClient, redis_results: AsyncMock,
) -> None:
    redis_results.side_effect = [[0, 0, 30]]
    response = await client.get("/transactions/")
    assert response.status_code == 429
    assert response.headers["Retry-After"] == "30"
    assert response.headers["X-RateLimit-Limit"] == "180"
    assert response.headers["X-RateLimit-Remaining"] == "0"


async def test_rate_limit_remaining_reported(
    client: AsyncClient, redis_results: AsyncMock,
) -> None:
    redis_results.side_effect = [[1, 41, 0], [1, 3000, 100, 0]]
    response = await client.get("/tags/")
    assert response.status_code == 200
    assert response.headers["X-RateLimit-Remaining"] == "41"


async def test_auth_endpoints_are_not_rate_limited(anon_client: AsyncClient) -> None:
    response = await anon_client.post("/auth/logout")
    assert "X-RateLimit-Limit" not in response.headers


async def test_unauthenticated_requests_are_not_counted(
    anon_client: AsyncClient, redis_results: AsyncMock,
) -> None:
    """The session gate runs before the limiter."""
    assert (await anon_client.get("/transactions/")).status_code == 401
    redis_results.assert_not_called()
