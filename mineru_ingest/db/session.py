"""
Database session management.

Flow:
  1. The extract route depends on get_db().
  2. get_db() opens a session inside a transaction and yields it.
  3. After the route completes the transaction commits; if the route raises
     it is rolled back and the connection returns to the pool.

The engine is built on first use, so importing this module never requires
a database driver or a reachable database.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from mineru_ingest.core.config import settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Engine + session factory
# ---------------------------------------------------------------------------

@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    return create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,          # detect stale connections before use
        pool_recycle=3600,           # recycle connections every hour
        echo=settings.db_echo_sql,   # log SQL in dev; disable in prod
    )


@lru_cache(maxsize=1)
def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False keeps returned rows usable after commit
    return async_sessionmaker(
        bind=get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# ---------------------------------------------------------------------------
# FastAPI dependency
# ---------------------------------------------------------------------------

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that yields a transactional session.

    Usage in a route:
        @router.post("/archives/{document_id}/extract")
        async def extract(db: AsyncSession = Depends(get_db)): ...
    """
    async with get_sessionmaker()() as session:
        async with session.begin():
            yield session
            # Transaction commits on context exit; an exception rolls it back


# ---------------------------------------------------------------------------
# Lifecycle helpers
# ---------------------------------------------------------------------------

async def check_db_health() -> dict:
    """Ping the database; used by the /ready endpoint."""
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "ok"}
    except Exception as exc:
        logger.error("DB health check failed: %s", exc)
        return {"status": "error", "detail": str(exc)}


async def dispose_engine() -> None:
    """Close pooled connections on shutdown, if an engine was ever built."""
    if get_engine.cache_info().currsize:
        await get_engine().dispose()
        get_engine.cache_clear()
        get_sessionmaker.cache_clear()
