"""Redis-based per-user rate limiter for the data endpoints."""
import logging
import time
import uuid

from core.rate_limit_config import (
    RATE_LIMITS,
    OperationType,
    RateLimitExceededError,
    RateLimitResult,
    get_operation_type,
)
from core.redis import get_redis_client

logger = logging.getLogger(__name__)

__all__ = [
    "OperationType",
    "RateLimitExceededError",
    "RateLimitResult",
    "RedisRateLimiter",
    "get_operation_type",
    "rate_limiter",
]


def _allow_all(limit: int) -> RateLimitResult:
    return RateLimitResult(allowed=True, limit=limit, remaining=limit, reset=0, retry_after=0)


class RedisRateLimiter:
    """Redis-based rate limiter with sliding window (per-minute) and fixed window (daily)."""

    async def check(self, user_id: int, operation_type: OperationType) -> RateLimitResult:
        """
        Check if request is allowed and return full rate limit info.

        Returns RateLimitResult with allowed status and header values.
        Falls back to allowing requests if Redis is unavailable.
        """
        config = RATE_LIMITS[operation_type]

        redis_client = get_redis_client()
        if redis_client is None or not redis_client.is_connected:
            # Redis unavailable - fail open
            return _allow_all(config.requests_per_minute)

        now = int(time.time())

        # Check minute limit (sliding window for precision)
        minute_key = f"rate:{user_id}:{operation_type.value}:min"
        minute_result = await self._check_sliding_window(
            minute_key, config.requests_per_minute, 60, now,
        )
        if not minute_result.allowed:
            logger.warning(
                "rate_limit_exceeded",
                extra={
                    "user_id": user_id,
                    "operation": operation_type.value,
                    "limit_type": "per_minute",
                },
            )
            return minute_result

        # Check daily limit (fixed window - simpler, lower memory)
        day_key = f"rate:{user_id}:daily"
        day_result = await self._check_fixed_window(
            day_key, config.requests_per_day, 86400, now,
        )
        if not day_result.allowed:
            logger.warning(
                "rate_limit_exceeded",
                extra={
                    "user_id": user_id,
                    "operation": operation_type.value,
                    "limit_type": "daily",
                },
            )
            return day_result

        # Both passed - return the per-minute result (more relevant for headers)
        return minute_result

    async def _check_sliding_window(
        self, key: str, max_requests: int, window_seconds: int, now: int,
    ) -> RateLimitResult:
        """Sliding window check using a Redis sorted set."""
        redis_client = get_redis_client()
        if redis_client is None or redis_client.sliding_window_sha is None:
            return _allow_all(max_requests)

        result = await redis_client.evalsha(
            redis_client.sliding_window_sha,
            1,  # number of keys
            key,
            now,
            window_seconds,
            max_requests,
            str(uuid.uuid4()),  # unique request ID
        )
        if result is None:
            return _allow_all(max_requests)

        allowed, remaining, retry_after = result
        return RateLimitResult(
            allowed=bool(allowed),
            limit=max_requests,
            remaining=max(0, remaining),
            reset=now + window_seconds,
            retry_after=max(0, retry_after) if not allowed else 0,
        )

    async def _check_fixed_window(
        self, key: str, max_requests: int, window_seconds: int, now: int,
    ) -> RateLimitResult:
        """Fixed window check using a Lua script for atomicity."""
        redis_client = get_redis_client()
        if redis_client is None or redis_client.fixed_window_sha is None:
            return _allow_all(max_requests)

        result = await redis_client.evalsha(
            redis_client.fixed_window_sha,
            1,  # number of keys
            key,
            max_requests,
            window_seconds,
        )
        if result is None:
            return _allow_all(max_requests)

        allowed, remaining, ttl, retry_after = result
        return RateLimitResult(
            allowed=bool(allowed),
            limit=max_requests,
            remaining=max(0, remaining),
            reset=now + ttl if ttl > 0 else now + window_seconds,
            retry_after=max(0, retry_after) if not allowed else 0,
        )


# Global rate limiter instance
rate_limiter = RedisRateLimiter()
