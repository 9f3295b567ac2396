"""FastAPI application entry point."""
import logging
import secrets
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from api.routers import auth, categories, health, tags, transactions
from core.auth import AuthenticationError, UserLookupError
from core.config import Settings, get_settings
from core.keys import ConfigurationError, KeyProvider
from core.rate_limit_config import RateLimitExceededError
from core.redis import RedisClient, set_redis_client
from core.tokens import TokenCodec
from services.oauth import OAuthProviders

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Connect to Redis on startup and close it on shutdown."""
    redis_client = RedisClient.from_settings(app.state.settings)
    await redis_client.connect()
    set_redis_client(redis_client)
    try:
        yield
    finally:
        await redis_client.close()
        set_redis_client(None)


async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    """401 for requests without a usable session."""
    return JSONResponse(
        status_code=401,
        content={"error": "unauthorized", "message": exc.message},
    )


async def user_lookup_error_handler(request: Request, exc: UserLookupError) -> JSONResponse:
    """500 when the user store fails, distinct from an authentication failure."""
    return JSONResponse(
        status_code=500,
        content={"error": "database_error", "message": "Failed to load user"},
    )


async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    """500 when the token key is misconfigured."""
    logger.error("token_key_misconfigured", extra={"error": str(exc)})
    return JSONResponse(
        status_code=500,
        content={"error": "configuration_error", "message": "Server is misconfigured"},
    )


def _rate_limit_headers(info: dict) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(info["limit"]),
        "X-RateLimit-Remaining": str(info["remaining"]),
        "X-RateLimit-Reset": str(info["reset"]),
    }


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceededError,
) -> JSONResponse:
    """429 with Retry-After and rate limit headers."""
    result = exc.result
    headers = _rate_limit_headers(
        {"limit": result.limit, "remaining": result.remaining, "reset": result.reset},
    )
    headers["Retry-After"] = str(result.retry_after)
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded. Please try again later."},
        headers=headers,
    )


async def add_rate_limit_headers(
    request: Request, call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Copy the rate limit result stored by `check_rate_limit` onto the response."""
    response = await call_next(request)
    info = getattr(request.state, "rate_limit_info", None)
    if info:
        response.headers.update(_rate_limit_headers(info))
    return response


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application with its token codec, OAuth registry and routers."""
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(
        title="BudgetCtl API",
        description="Personal finance API: transactions, categories and tags.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.token_codec = TokenCodec(KeyProvider(settings.auth_token_key))
    app.state.oauth = OAuthProviders(settings)

    app.middleware("http")(add_rate_limit_headers)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret or secrets.token_urlsafe(32),
        same_site="lax",
        https_only=settings.is_production,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    app.add_exception_handler(UserLookupError, user_lookup_error_handler)
    app.add_exception_handler(ConfigurationError, configuration_error_handler)
    app.add_exception_handler(RateLimitExceededError, rate_limit_exceeded_handler)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(transactions.router)
    app.include_router(categories.router)
    app.include_router(tags.router)

    return app


app = create_app()
