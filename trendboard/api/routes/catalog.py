"""
Public catalog listings.

Subscribers see everything with analytics. Everyone else sees the newest
few items without analytics.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from trendboard.api.deps import get_optional_user
from trendboard.api.routes.categories import load_category_tree
from trendboard.api.serialization import CategoryNode, ColorOut, TrendOut, color_out, trend_out
from trendboard.core.config import settings
from trendboard.core.subscriptions import is_subscribed
from trendboard.storage.database import get_session
from trendboard.storage.models import ColorTrend, Trend, User

router = APIRouter()


@router.get("/trends", response_model=list[TrendOut])
async def browse_trends(
    session: AsyncSession = Depends(get_session),
    user: User | None = Depends(get_optional_user),
) -> list[TrendOut]:
    """List trends, newest first."""
    subscribed = is_subscribed(user)
    query = select(Trend).options(selectinload(Trend.analytics)).order_by(Trend.created_at.desc())
    if not subscribed:
        query = query.limit(settings.FREE_TIER_ITEM_LIMIT)
    trends = (await session.scalars(query)).all()
    return [trend_out(trend, include_analytics=subscribed) for trend in trends]


@router.get("/colors", response_model=list[ColorOut])
async def browse_colors(
    session: AsyncSession = Depends(get_session),
    user: User | None = Depends(get_optional_user),
) -> list[ColorOut]:
    """List color trends, newest first."""
    subscribed = is_subscribed(user)
    query = (
        select(ColorTrend)
        .options(selectinload(ColorTrend.analytics))
        .order_by(ColorTrend.created_at.desc())
    )
    if not subscribed:
        query = query.limit(settings.FREE_TIER_ITEM_LIMIT)
    colors = (await session.scalars(query)).all()
    return [color_out(color, include_analytics=subscribed) for color in colors]


@router.get("/categories", response_model=list[CategoryNode])
async def browse_categories(
    session: AsyncSession = Depends(get_session),
) -> list[CategoryNode]:
    """Return the public category tree without trends."""
    return await load_category_tree(session, include_trends=False)
