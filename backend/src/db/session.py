"""Async SQLAlchemy engine and the per-request session dependency."""
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import get_settings


def _engine_options(database_url: str) -> dict[str, Any]:
    # SQLite has no server connection to go stale
    if database_url.startswith("sqlite"):
        return {}
    return {"pool_pre_ping": True}


def build_engine(database_url: str) -> AsyncEngine:
    """Create the async engine for `database_url`."""
    return create_async_engine(database_url, echo=False, **_engine_options(database_url))


engine = build_engine(get_settings().database_url)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """
    Yield a session for one request.

    Commits when the handler returns normally and rolls back if it raises, so a
    handler that fails part-way never leaves a partial transaction or tag set.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
