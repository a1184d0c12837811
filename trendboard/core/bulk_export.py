"""
Bulk export of the catalog into a portable document.

Database ids never leave the system: categories reference their parent by
slug and trends reference their category by slug. Analytics dates are
truncated to UTC calendar days.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import UTC, date, datetime
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from trendboard.core.bulk_payloads import (
    AgeSegment,
    AnalyticsDocument,
    BulkDocument,
    CategoryDocument,
    ColorDocument,
    TrendDocument,
)
from trendboard.storage.models import Analytics, Category, ColorTrend, Trend

logger = structlog.get_logger(__name__)


def to_utc_day(value: datetime) -> date:
    """Truncate a timestamp to its UTC calendar day."""
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    return value.date()


def analytics_to_document(analytics: Analytics | None) -> AnalyticsDocument | None:
    if analytics is None:
        return None
    segments = None
    if analytics.age_segments is not None:
        segments = [
            AgeSegment(name=str(item["name"]), value=float(item["value"]))
            for item in analytics.age_segments
        ]
    return AnalyticsDocument(
        dates=[to_utc_day(value) for value in analytics.dates],
        values=[float(value) for value in analytics.values],
        age_segments=segments,
    )


def category_to_document(
    category: Category,
    slug_by_id: Mapping[UUID, str],
) -> CategoryDocument:
    parent_slug = slug_by_id.get(category.parent_id) if category.parent_id else None
    return CategoryDocument(
        name=category.name,
        slug=category.slug,
        description=category.description or "",
        image_url=category.image_url or "",
        parent_slug=parent_slug,
    )


def trend_to_document(trend: Trend, slug_by_id: Mapping[UUID, str]) -> TrendDocument:
    category_slug = slug_by_id.get(trend.category_id, "") if trend.category_id else ""
    return TrendDocument(
        title=trend.title,
        description=trend.description or "",
        type=trend.type,
        image_urls=list(trend.image_urls or []),
        main_image_index=trend.main_image_index,
        category_slug=category_slug,
        analytics=analytics_to_document(trend.analytics),
    )


def color_to_document(color: ColorTrend) -> ColorDocument:
    return ColorDocument(
        name=color.name,
        hex=color.hex,
        image_url=color.image_url or "",
        popularity=color.popularity,
        palette1=color.palette1,
        palette2=color.palette2,
        palette3=color.palette3,
        palette4=color.palette4,
        palette5=color.palette5,
        analytics=analytics_to_document(color.analytics),
    )


def build_export_document(
    categories: Sequence[Category],
    trends: Sequence[Trend],
    colors: Sequence[ColorTrend],
) -> BulkDocument:
    """Flatten loaded ORM rows into the export document."""
    slug_by_id = {category.id: category.slug for category in categories}
    return BulkDocument(
        categories=[category_to_document(category, slug_by_id) for category in categories],
        trends=[trend_to_document(trend, slug_by_id) for trend in trends],
        colors=[color_to_document(color) for color in colors],
    )


async def export_all(session: AsyncSession) -> BulkDocument:
    """Read every category, trend and color, oldest first, and export them."""
    categories = (
        await session.scalars(select(Category).order_by(Category.created_at.asc()))
    ).all()
    trends = (
        await session.scalars(
            select(Trend)
            .options(selectinload(Trend.analytics))
            .order_by(Trend.created_at.asc())
        )
    ).all()
    colors = (
        await session.scalars(
            select(ColorTrend)
            .options(selectinload(ColorTrend.analytics))
            .order_by(ColorTrend.created_at.asc())
        )
    ).all()

    document = build_export_document(categories, trends, colors)
    logger.info("Bulk export built", **document.stats().as_dict())
    return document
