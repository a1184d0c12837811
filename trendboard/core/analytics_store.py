"""
Writes of analytics rows owned by a trend or a color trend.
"""

from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from trendboard.ingestion.sheets_client import SheetSeries
from trendboard.storage.models import Analytics


def _owner_filter(trend_id: UUID | None, color_id: UUID | None):
    if (trend_id is None) == (color_id is None):
        msg = "analytics must be owned by exactly one of trend_id or color_id"
        raise ValueError(msg)
    if trend_id is not None:
        return Analytics.trend_id == trend_id
    return Analytics.color_id == color_id


async def delete_analytics(
    session: AsyncSession,
    *,
    trend_id: UUID | None = None,
    color_id: UUID | None = None,
) -> None:
    """Delete the analytics row of one owner, if any."""
    await session.execute(delete(Analytics).where(_owner_filter(trend_id, color_id)))


async def replace_analytics(
    session: AsyncSession,
    series: SheetSeries,
    *,
    trend_id: UUID | None = None,
    color_id: UUID | None = None,
) -> Analytics:
    """Replace an owner's analytics wholesale with a parsed spreadsheet series."""
    await delete_analytics(session, trend_id=trend_id, color_id=color_id)
    analytics = Analytics(
        id=uuid4(),
        trend_id=trend_id,
        color_id=color_id,
        dates=list(series.dates),
        values=list(series.values),
        age_segments=list(series.age_segments) or None,
    )
    session.add(analytics)
    await session.flush()
    return analytics
