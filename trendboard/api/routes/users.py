"""
Admin user listing and subscription management.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trendboard.api.deps import require_admin
from trendboard.api.serialization import CamelModel
from trendboard.core.subscriptions import extend_subscription, is_subscribed
from trendboard.storage.database import get_session
from trendboard.storage.models import User

logger = structlog.get_logger(__name__)

router = APIRouter()


class UserSummary(CamelModel):
    """User as shown to admins; OAuth tokens are never exposed."""

    id: UUID
    email: str
    name: str | None = None
    is_admin: bool
    subscribed_until: datetime | None = None
    is_subscribed: bool
    created_at: datetime | None = None


class SubscriptionExtendRequest(CamelModel):
    """Number of whole months to add to a user's subscription."""

    months: int = Field(..., ge=1, le=120)


def _to_summary(user: User) -> UserSummary:
    return UserSummary(
        id=user.id,
        email=user.email,
        name=user.name,
        is_admin=user.is_admin,
        subscribed_until=user.subscribed_until,
        is_subscribed=is_subscribed(user),
        created_at=user.created_at,
    )


@router.get("", response_model=list[UserSummary])
async def list_users(
    session: AsyncSession = Depends(get_session),
    _admin: User = Depends(require_admin),
) -> list[UserSummary]:
    """List users, newest first."""
    users = (await session.scalars(select(User).order_by(User.created_at.desc()))).all()
    return [_to_summary(user) for user in users]


@router.patch("/{user_id}/subscription", response_model=UserSummary)
async def extend_user_subscription(
    user_id: UUID,
    payload: SubscriptionExtendRequest,
    session: AsyncSession = Depends(get_session),
    admin: User = Depends(require_admin),
) -> UserSummary:
    """Extend a user's subscription by whole calendar months."""
    user = await session.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User '{user_id}' not found",
        )

    new_end = extend_subscription(user, payload.months)
    await session.flush()

    logger.info(
        "Subscription extended",
        user_id=str(user_id),
        months=payload.months,
        subscribed_until=new_end.isoformat(),
        admin_email=admin.email,
    )
    return _to_summary(user)
