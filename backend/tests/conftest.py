"""Shared fixtures: in-memory database, app instance and authenticated clients."""
import os

# Settings are read at import time by db.session, so configure before importing app code.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("APP_ENV", "development")

from collections.abc import AsyncGenerator, Callable, Coroutine  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from api.main import create_app  # noqa: E402
from core.config import Settings, get_settings  # noqa: E402
from core.cookies import SESSION_COOKIE_NAME  # noqa: E402
from core.redis import set_redis_client  # noqa: E402
from db.session import get_async_session  # noqa: E402
from models import Base, User  # noqa: E402
from models.user import OAUTH_PASSWORD_SENTINEL  # noqa: E402

TEST_TOKEN_KEY = "0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"


@pytest.fixture
def settings() -> Settings:
    """Settings for tests - fixed token key, no Redis, no .env file."""
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        app_env="development",
        auth_token_key=TEST_TOKEN_KEY,
        session_secret="test-session-secret",
        redis_enabled=False,
    )


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """A fresh in-memory database with all tables, shared across connections."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test database."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(autouse=True)
def no_redis() -> None:
    """Rate limiting fails open unless a test installs a client."""
    set_redis_client(None)


@pytest.fixture
def app(settings: Settings, session_factory: async_sessionmaker[AsyncSession]) -> FastAPI:
    """Application wired to the test database and settings."""
    application = create_app(settings)

    async def override_get_async_session() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_async_session] = override_get_async_session
    application.dependency_overrides[get_settings] = lambda: settings
    return application


@pytest.fixture
def create_user(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Coroutine[Any, Any, User]]:
    """Factory that inserts a user and returns it."""

    async def _create_user(email: str = "test@example.com", **fields: Any) -> User:
        async with session_factory() as session:
            user = User(
                email=email,
                password_hash=fields.pop("password_hash", OAUTH_PASSWORD_SENTINEL),
                **fields,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _create_user


@pytest.fixture
async def user(create_user: Callable[..., Coroutine[Any, Any, User]]) -> User:
    """The default authenticated user."""
    return await create_user("test@example.com", name="Test User")


@pytest.fixture
async def anon_client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Client without a session cookie."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def client(app: FastAPI, user: User) -> AsyncGenerator[AsyncClient]:
    """Client logged in as `user`."""
    token = app.state.token_codec.issue(user.id)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies={SESSION_COOKIE_NAME: token},
    ) as ac:
        yield ac


@pytest.fixture
async def other_client(
    app: FastAPI, create_user: Callable[..., Coroutine[Any, Any, User]],
) -> AsyncGenerator[AsyncClient]:
    """Client logged in as a second, unrelated user."""
    other = await create_user("other@example.com", name="Other User")
    token = app.state.token_codec.issue(other.id)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies={SESSION_COOKIE_NAME: token},
    ) as ac:
        yield ac
