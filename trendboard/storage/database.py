"""
Database connection and session management.

This module provides:
- Async SQLAlchemy engine configuration
- Session factory for dependency injection
- Connection pool management
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from trendboard.core.config import settings

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


# =============================================================================
# Engine Configuration
# =============================================================================


def create_engine() -> AsyncEngine:
    """
    Create async SQLAlchemy engine.

    Uses connection pooling outside development, NullPool in development
    so that reloads never hold stale connections.
    """
    engine_kwargs: dict[str, object] = {
        "echo": settings.SQL_ECHO,
        "pool_pre_ping": True,
    }
    if settings.is_development:
        engine_kwargs["poolclass"] = NullPool
    else:
        engine_kwargs["pool_size"] = settings.DATABASE_POOL_SIZE
        engine_kwargs["max_overflow"] = settings.DATABASE_MAX_OVERFLOW
        engine_kwargs["pool_timeout"] = settings.DATABASE_POOL_TIMEOUT_SECONDS

    return create_async_engine(settings.DATABASE_URL, **engine_kwargs)


# Create engine instance
engine = create_engine()

# Create session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


# =============================================================================
# Session Dependency
# =============================================================================


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting database sessions.

    Usage:
        @router.get("/trends")
        async def list_trends(session: AsyncSession = Depends(get_session)):
            result = await session.scalars(select(Trend))
            return result.all()

    Sessions are automatically committed on success and rolled back on error.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
