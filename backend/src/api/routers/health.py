"""Service status endpoint: database reachability and connection pool usage."""
import asyncio
import logging
from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import Pool, QueuePool

from core.redis import get_redis_client
from db.session import get_async_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

DB_PING_TIMEOUT = 2.0


class PoolStatus(BaseModel):
    """Connection pool counters. Empty for pools that do not track them (SQLite)."""

    size: int | None = None
    checked_in: int | None = None
    checked_out: int | None = None
    overflow: int | None = None


class DatabaseStatus(BaseModel):
    status: Literal["up", "down"]
    message: str | None = None
    error: str | None = None
    pool: PoolStatus


class StatusResponse(BaseModel):
    """Overall status; `rate_limiter` is informational and never makes the service down."""

    status: Literal["up", "down"]
    database: DatabaseStatus
    rate_limiter: Literal["enforcing", "open"]


def pool_status(pool: Pool | None) -> PoolStatus:
    """Read the counters of a queue-based pool."""
    if not isinstance(pool, QueuePool):
        return PoolStatus()
    return PoolStatus(
        size=pool.size(),
        checked_in=pool.checkedin(),
        checked_out=pool.checkedout(),
        overflow=pool.overflow(),
    )


async def database_status(db: AsyncSession) -> DatabaseStatus:
    """Ping the database with a short timeout and attach pool counters."""
    pool = pool_status(getattr(db.bind, "pool", None))
    try:
        await asyncio.wait_for(db.execute(text("SELECT 1")), timeout=DB_PING_TIMEOUT)
    except (SQLAlchemyError, OSError, TimeoutError) as e:
        logger.warning("database_ping_failed", extra={"error": str(e)})
        return DatabaseStatus(status="down", error=str(e) or type(e).__name__, pool=pool)
    return DatabaseStatus(status="up", message="It's healthy", pool=pool)


async def rate_limiter_mode() -> Literal["enforcing", "open"]:
    redis_client = get_redis_client()
    if redis_client is not None and await redis_client.ping():
        return "enforcing"
    return "open"


@router.get("/health", response_model=StatusResponse)
async def health_check(db: AsyncSession = Depends(get_async_session)) -> StatusResponse:
    """Report database reachability, pool usage and whether rate limits are enforced."""
    database = await database_status(db)
    return StatusResponse(
        status=database.status,
        database=database,
        rate_limiter=await rate_limiter_mode(),
    )
