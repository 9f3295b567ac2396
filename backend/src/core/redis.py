"""Redis client used for rate limiting, with graceful fallback when unavailable."""
import logging
from typing import Any

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from core.config import Settings

logger = logging.getLogger(__name__)

# Per-minute limit: sorted set of request timestamps, trimmed to the window.
# Returns {allowed, remaining, retry_after}.
SLIDING_WINDOW_SCRIPT = """
local key = KEYS[1]
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
local member = ARGV[4]

redis.call('ZREMRANGEBYSCORE', key, 0, now - window)
local used = redis.call('ZCARD', key)

if used >= limit then
    local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
    local retry_after = 0
    if oldest and oldest[2] then
        retry_after = math.ceil((oldest[2] + window) - now)
    end
    return {0, 0, retry_after}
end

redis.call('ZADD', key, now, now .. ':' .. member)
redis.call('EXPIRE', key, window)
return {1, limit - used - 1, 0}
"""

# Daily limit: counter that expires at the end of its window.
# Returns {allowed, remaining, ttl, retry_after}.
FIXED_WINDOW_SCRIPT = """
local key = KEYS[1]
local limit = tonumber(ARGV[1])
local window = tonumber(ARGV[2])

local used = redis.call('INCR', key)
if used == 1 then
    redis.call('EXPIRE', key, window)
end
local ttl = redis.call('TTL', key)

if used > limit then
    return {0, 0, ttl, ttl}
end
return {1, limit - used, ttl, 0}
"""


class RedisClient:
    """Async Redis client with connection pooling; every call degrades to a no-op on failure."""

    def __init__(self, url: str, enabled: bool = True) -> None:
        self._url = url
        self._enabled = enabled
        self._client: Redis | None = None
        self._sliding_window_sha: str | None = None
        self._fixed_window_sha: str | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisClient":
        """Build a client from application settings."""
        return cls(settings.redis_url, enabled=settings.redis_enabled)

    async def connect(self) -> None:
        """Open the pool, verify connectivity, and register the Lua scripts."""
        if not self._enabled:
            logger.info("redis_disabled")
            return
        try:
            client = Redis(connection_pool=ConnectionPool.from_url(self._url, max_connections=10))
            await client.ping()
            self._sliding_window_sha = await client.script_load(SLIDING_WINDOW_SCRIPT)
            self._fixed_window_sha = await client.script_load(FIXED_WINDOW_SCRIPT)
        except RedisError as e:
            logger.warning("redis_connect_failed", extra={"error": str(e)})
            return
        self._client = client
        logger.info("redis_connected")

    async def close(self) -> None:
        """Close the connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("redis_closed")

    @property
    def is_connected(self) -> bool:
        """Check if client is connected."""
        return self._client is not None

    @property
    def sliding_window_sha(self) -> str | None:
        """SHA of the per-minute script, or None if not loaded."""
        return self._sliding_window_sha

    @property
    def fixed_window_sha(self) -> str | None:
        """SHA of the daily script, or None if not loaded."""
        return self._fixed_window_sha

    async def ping(self) -> bool:
        """Check Redis connectivity."""
        if self._client is None:
            return False
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    async def evalsha(self, sha: str, numkeys: int, *args: Any) -> Any:
        """Run a loaded script; returns None if Redis is unavailable."""
        if self._client is None:
            return None
        try:
            return await self._client.evalsha(sha, numkeys, *args)
        except RedisError as e:
            logger.warning("redis_evalsha_failed", extra={"error": str(e)})
            return None


# Process-wide client, set during application startup
class _RedisState:
    """Container for global Redis client state."""

    client: RedisClient | None = None


_state = _RedisState()


def get_redis_client() -> RedisClient | None:
    """Get the global Redis client instance."""
    return _state.client


def set_redis_client(client: RedisClient | None) -> None:
    """Set the global Redis client instance."""
    _state.client = client
