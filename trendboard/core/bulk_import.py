"""
Bulk import of a catalog document.

Categories are written parents-first after the slug graph has been checked
for dangling parents and cycles, so a rejected document writes nothing.
Trends resolve their category by slug and fall back to orphaned when the
slug is unknown. Colors are matched by name.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from uuid import UUID, uuid4

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trendboard.core.bulk_payloads import (
    AnalyticsDocument,
    BulkDocument,
    BulkStats,
    CategoryDocument,
    ColorDocument,
    TrendDocument,
    as_utc_midnight,
)
from trendboard.core.bulk_transaction import bulk_transaction
from trendboard.core.observability import BULK_IMPORTED_ROWS_TOTAL, record_bulk_stats
from trendboard.storage.models import Analytics, Category, ColorTrend, Trend

logger = structlog.get_logger(__name__)


class ImportValidationError(ValueError):
    """Raised when an import document is structurally inconsistent."""


class DanglingParentError(ImportValidationError):
    """Raised when a category references a parent slug that cannot be resolved."""


class ImportCycleError(ImportValidationError):
    """Raised when imported parent links would form a cycle."""


# =============================================================================
# Category Ordering
# =============================================================================


def order_categories(
    documents: Sequence[CategoryDocument],
    existing_parents: Mapping[str, str | None],
) -> list[CategoryDocument]:
    """
    Return `documents` ordered so that every in-batch parent precedes its children.

    `existing_parents` maps each stored category slug to its stored parent
    slug. Batch entries override stored ones, and the merged graph must be
    acyclic.

    Raises:
        ImportValidationError: a slug appears twice in the batch
        DanglingParentError: a parent slug is neither stored nor in the batch
        ImportCycleError: the merged parent graph contains a cycle
    """
    batch: dict[str, CategoryDocument] = {}
    for document in documents:
        if document.slug in batch:
            msg = f"Duplicate category slug '{document.slug}' in import"
            raise ImportValidationError(msg)
        batch[document.slug] = document

    merged: dict[str, str | None] = dict(existing_parents)
    merged.update({slug: document.parent_slug or None for slug, document in batch.items()})

    for slug, document in batch.items():
        if document.parent_slug and document.parent_slug not in merged:
            msg = f"Category '{slug}' references unknown parent '{document.parent_slug}'"
            raise DanglingParentError(msg)

    current: str | None
    for slug in batch:
        seen = {slug}
        current = merged.get(slug)
        while current is not None:
            if current in seen:
                msg = f"Circular parent reference involving category '{slug}'"
                raise ImportCycleError(msg)
            seen.add(current)
            current = merged.get(current)

    ordered: list[CategoryDocument] = []
    placed: set[str] = set()
    for slug in batch:
        chain: list[str] = []
        current = slug
        while current is not None and current in batch and current not in placed:
            chain.append(current)
            current = batch[current].parent_slug or None
        for pending in reversed(chain):
            placed.add(pending)
            ordered.append(batch[pending])
    return ordered


# =============================================================================
# Row Writers
# =============================================================================


def _apply_analytics(analytics: Analytics, document: AnalyticsDocument) -> None:
    analytics.dates = [as_utc_midnight(day) for day in document.dates]
    analytics.values = list(document.values)
    analytics.age_segments = (
        [segment.model_dump() for segment in document.age_segments]
        if document.age_segments is not None
        else None
    )


async def _upsert_analytics(
    session: AsyncSession,
    document: AnalyticsDocument,
    *,
    trend_id: UUID | None = None,
    color_id: UUID | None = None,
) -> None:
    owner_column = Analytics.trend_id if trend_id is not None else Analytics.color_id
    owner_id = trend_id if trend_id is not None else color_id
    # Pending owners and analytics must be visible to the lookup below.
    await session.flush()
    analytics = await session.scalar(select(Analytics).where(owner_column == owner_id))
    if analytics is None:
        analytics = Analytics(id=uuid4(), trend_id=trend_id, color_id=color_id)
        session.add(analytics)
    _apply_analytics(analytics, document)


async def _import_categories(
    session: AsyncSession,
    documents: Sequence[CategoryDocument],
) -> dict[str, Category]:
    stored = list((await session.scalars(select(Category))).all())
    by_slug = {category.slug: category for category in stored}
    slug_by_id = {category.id: category.slug for category in stored}
    existing_parents = {
        category.slug: slug_by_id.get(category.parent_id) if category.parent_id else None
        for category in stored
    }

    for document in order_categories(documents, existing_parents):
        parent_id = by_slug[document.parent_slug].id if document.parent_slug else None
        category = by_slug.get(document.slug)
        if category is None:
            category = Category(id=uuid4(), slug=document.slug)
            session.add(category)
            by_slug[document.slug] = category
        category.name = document.name
        category.description = document.description or None
        category.image_url = document.image_url or None
        category.parent_id = parent_id
    await session.flush()
    return by_slug


async def _import_trend(
    session: AsyncSession,
    document: TrendDocument,
    categories: Mapping[str, Category],
    written: dict[tuple[str, UUID | None], Trend],
) -> None:
    category = categories.get(document.category_slug) if document.category_slug else None
    category_id = category.id if category is not None else None
    if document.category_slug and category is None:
        logger.info(
            "Importing trend as orphaned; category slug not found",
            title=document.title,
            category_slug=document.category_slug,
        )

    key = (document.title, category_id)
    trend = written.get(key)
    if trend is None:
        category_clause = (
            Trend.category_id == category_id
            if category_id is not None
            else Trend.category_id.is_(None)
        )
        trend = await session.scalar(
            select(Trend).where(Trend.title == document.title, category_clause).limit(1)
        )
    if trend is None:
        trend = Trend(id=uuid4(), title=document.title, category_id=category_id)
        session.add(trend)
    written[key] = trend
    trend.description = document.description
    trend.type = document.type
    trend.image_urls = list(document.image_urls)
    trend.main_image_index = document.main_image_index

    if document.analytics is not None:
        await _upsert_analytics(session, document.analytics, trend_id=trend.id)


async def _import_color(
    session: AsyncSession,
    document: ColorDocument,
    written: dict[str, ColorTrend],
) -> None:
    color = written.get(document.name)
    if color is None:
        color = await session.scalar(
            select(ColorTrend).where(ColorTrend.name == document.name).limit(1)
        )
    if color is None:
        color = ColorTrend(id=uuid4(), name=document.name)
        session.add(color)
    written[document.name] = color
    color.hex = document.hex
    color.image_url = document.image_url
    color.popularity = document.popularity
    color.palette1 = document.palette1
    color.palette2 = document.palette2
    color.palette3 = document.palette3
    color.palette4 = document.palette4
    color.palette5 = document.palette5

    if document.analytics is not None:
        await _upsert_analytics(session, document.analytics, color_id=color.id)


# =============================================================================
# Entry Point
# =============================================================================


async def import_all(
    session: AsyncSession,
    document: BulkDocument,
    *,
    timeout_seconds: float | None = None,
) -> BulkStats:
    """
    Import a validated document and return per-entity counts of rows written.

    Raises:
        ImportValidationError: dangling parent, cycle or duplicate slug
        BulkOperationInProgressError: another bulk operation holds the lock
        BulkTimeoutError: the transaction budget was exceeded
    """
    logger.info("Starting bulk import", **document.stats().as_dict())
    async with bulk_transaction(session, operation="import", timeout_seconds=timeout_seconds):
        categories = await _import_categories(session, document.categories)
        trends: dict[tuple[str, UUID | None], Trend] = {}
        for trend_document in document.trends:
            await _import_trend(session, trend_document, categories, trends)
        colors: dict[str, ColorTrend] = {}
        for color_document in document.colors:
            await _import_color(session, color_document, colors)
        await session.flush()

    stats = document.stats()
    record_bulk_stats(
        BULK_IMPORTED_ROWS_TOTAL,
        categories=stats.categories,
        trends=stats.trends,
        colors=stats.colors,
    )
    logger.info("Bulk import finished", **stats.as_dict())
    return stats
