"""
Database Module

Async SQLAlchemy engine, session factory and the declarative Base.

- engine:            shared async engine (asyncpg in production)
- AsyncSessionLocal: session factory used by requests and workers
- get_db:            FastAPI dependency yielding a session per request
"""

import logging
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.core.config import settings

logger = logging.getLogger(__name__)


# ============================================================
# Engine
# ============================================================

def _engine_kwargs() -> dict:
    kwargs = {"echo": settings.SQLALCHEMY_ECHO, "pool_pre_ping": True}
    if settings.DATABASE_URL.startswith("sqlite"):
        return kwargs
    if settings.DB_POOL_MIN_SIZE is not None:
        kwargs["pool_size"] = settings.DB_POOL_MIN_SIZE
    if settings.DB_POOL_MAX_SIZE is not None:
        kwargs["max_overflow"] = max(
            settings.DB_POOL_MAX_SIZE - (settings.DB_POOL_MIN_SIZE or 5), 0
        )
    return kwargs


engine = create_async_engine(settings.DATABASE_URL, **_engine_kwargs())

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


# ============================================================
# FastAPI Dependency
# ============================================================

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a database session for the duration of a request.

    Usage:
        @router.get("/")
        async def endpoint(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


# ============================================================
# Health Check
# ============================================================

async def check_db_connection() -> bool:
    """Return True if the database answers a trivial query."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
