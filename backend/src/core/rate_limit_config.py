"""
Rate limiting configuration and types.

This module contains the policy configuration for rate limiting - the "what" limits
to apply, separate from the "how" (enforcement logic in rate_limiter.py).

To adjust rate limits, modify RATE_LIMITS below.
"""
from dataclasses import dataclass
from enum import Enum


class OperationType(Enum):
    """Operation type for rate limiting."""

    READ = "read"
    WRITE = "write"


@dataclass
class RateLimitConfig:
    """Rate limit configuration for an operation type."""

    requests_per_minute: int
    requests_per_day: int


@dataclass
class RateLimitResult:
    """Result of a rate limit check with all info needed for headers."""

    allowed: bool
    limit: int  # Max requests in current window
    remaining: int  # Requests remaining in current window
    reset: int  # Unix timestamp when window resets
    retry_after: int  # Seconds until retry allowed (0 if allowed)


class RateLimitExceededError(Exception):
    """Raised when rate limit is exceeded."""

    def __init__(self, result: RateLimitResult) -> None:
        self.result = result
        super().__init__("Rate limit exceeded")


# Reads and writes share one daily pool per user.
RATE_LIMITS: dict[OperationType, RateLimitConfig] = {
    OperationType.READ: RateLimitConfig(requests_per_minute=180, requests_per_day=4000),
    OperationType.WRITE: RateLimitConfig(requests_per_minute=120, requests_per_day=4000),
}


def get_operation_type(method: str) -> OperationType:
    """Determine operation type from the HTTP method."""
    if method in ("GET", "HEAD", "OPTIONS"):
        return OperationType.READ
    return OperationType.WRITE
