"""FastAPI dependencies for injection."""
from fastapi import Depends, Request

from core.auth import (
    AuthenticatedIdentity,
    get_current_identity,
    get_current_user,
    get_current_user_id,
    get_token_codec,
    get_user_store,
)
from core.config import get_settings
from core.rate_limiter import (
    RateLimitExceededError,
    RateLimitResult,
    get_operation_type,
    rate_limiter,
)
from db.session import get_async_session
from services.oauth import OAuthProviders


def get_oauth_providers(request: Request) -> OAuthProviders:
    """Return the OAuth provider registry built at application startup."""
    return request.app.state.oauth


async def check_rate_limit(
    request: Request,
    identity: AuthenticatedIdentity = Depends(get_current_identity),
) -> RateLimitResult:
    """
    Dependency that enforces per-user rate limits.

    Stores result in request.state for middleware to add headers.
    Raises RateLimitExceededError for 429 responses (handled by exception handler).
    """
    operation_type = get_operation_type(request.method)

    result = await rate_limiter.check(identity.user_id, operation_type)

    if not result.allowed:
        raise RateLimitExceededError(result)

    # Store result in request.state for the rate limit headers middleware
    request.state.rate_limit_info = {
        "limit": result.limit,
        "remaining": result.remaining,
        "reset": result.reset,
    }

    return result


__all__ = [
    "check_rate_limit",
    "get_async_session",
    "get_current_identity",
    "get_current_user",
    "get_current_user_id",
    "get_oauth_providers",
    "get_settings",
    "get_token_codec",
    "get_user_store",
]
