"""Tests for the Redis client wrapper."""
from unittest.mock import AsyncMock, MagicMock, patch

from redis.exceptions import ConnectionError as RedisConnectionError

from core.config import Settings
from core.redis import RedisClient, get_redis_client, set_redis_client


class TestRedisClient:
    """Tests for RedisClient degradation behavior."""

    async def test__connect__disabled_client_stays_disconnected(self) -> None:
        client = RedisClient("redis://localhost:6379", enabled=False)
        await client.connect()
        assert client.is_connected is False
        assert await client.ping() is False
        assert await client.evalsha("sha", 1, "key") is None

    async def test__connect__unreachable_server_is_not_fatal(self) -> None:
        redis = MagicMock()
        redis.ping = AsyncMock(side_effect=RedisConnectionError("refused"))
        with patch("core.redis.Redis", return_value=redis):
            client = RedisClient("redis://localhost:6379")
            await client.connect()
        assert client.is_connected is False
        assert client.sliding_window_sha is None

    async def test__connect__loads_both_scripts(self) -> None:
        redis = MagicMock()
        redis.ping = AsyncMock(return_value=True)
        redis.script_load = AsyncMock(side_effect=["sha-sliding", "sha-fixed"])
        redis.aclose = AsyncMock()
        with patch("core.redis.Redis", return_value=redis):
            client = RedisClient("redis://localhost:6379")
            await client.connect()
        assert client.is_connected is True
        assert client.sliding_window_sha == "sha-sliding"
        assert client.fixed_window_sha == "sha-fixed"

        await client.close()
        assert client.is_connected is False
        redis.aclose.assert_awaited_once()

    async def test__evalsha__returns_none_on_redis_error(self) -> None:
        redis = MagicMock()
        redis.ping = AsyncMock(return_value=True)
        redis.script_load = AsyncMock(return_value="sha")
        redis.evalsha = AsyncMock(side_effect=RedisConnectionError("gone"))
        with patch("core.redis.Redis", return_value=redis):
            client = RedisClient("redis://localhost:6379")
            await client.connect()
        assert await client.evalsha("sha", 1, "key") is None

    def test__from_settings__uses_url_and_enabled_flag(self) -> None:
        settings = Settings(
            _env_file=None,
            database_url="postgresql://test",
            redis_url="redis://cache:6380",
            redis_enabled=False,
        )
        client = RedisClient.from_settings(settings)
        assert client._url == "redis://cache:6380"
        assert client._enabled is False

    def test__global_client__set_and_get(self) -> None:
        client = RedisClient("redis://localhost:6379", enabled=False)
        set_redis_client(client)
        try:
            assert get_redis_client() is client
        finally:
            set_redis_client(None)
        assert get_redis_client() is None
