"""
Shared FastAPI dependencies.

Resolves the forwarded user and the shared outbound HTTP client for routes.
"""

from __future__ import annotations

import httpx
import structlog
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from trendboard.storage.database import get_session
from trendboard.storage.models import User

logger = structlog.get_logger(__name__)


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Return the process-wide outbound HTTP client created at startup."""
    return request.app.state.http_client


async def _load_user(session: AsyncSession, email: str | None) -> User | None:
    if not email:
        return None
    # Stored addresses may carry mixed case; the middleware lowercases the header.
    return await session.scalar(select(User).where(func.lower(User.email) == email.lower()))


async def get_optional_user(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> User | None:
    """Resolve the forwarded user, or None for anonymous requests."""
    return await _load_user(session, getattr(request.state, "user_email", None))


async def get_current_user(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the forwarded user; 401 when absent or unknown."""
    user = await _load_user(session, getattr(request.state, "user_email", None))
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Allow only admins through; everyone else gets 401."""
    if not user.is_admin:
        logger.info("Admin access denied", user_email=user.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return user
