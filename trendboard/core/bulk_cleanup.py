"""
Bulk cleanup of catalog entities.

Deletes categories, then trends, then colors according to the requested
selectors, all inside one bulk transaction. Within an entity group every
selector contributes to a single id set, so overlapping selectors delete
and count each row once.

Deleting categories never deletes trends: their `category_id` is set to
NULL by the foreign key and they become orphaned.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from trendboard.core.bulk_payloads import (
    BulkStats,
    CategoryCleanupOptions,
    CleanupOptions,
    ColorCleanupOptions,
    TrendCleanupOptions,
)
from trendboard.core.bulk_transaction import bulk_transaction
from trendboard.core.observability import BULK_DELETED_ROWS_TOTAL, record_bulk_stats
from trendboard.core.orphan_scanner import (
    find_category_ids_by_slug,
    find_orphaned_category_ids,
    find_trend_ids_for_cleanup,
    find_unused_color_ids,
)
from trendboard.storage.models import Category, ColorTrend, Trend

logger = structlog.get_logger(__name__)


async def _delete_all(session: AsyncSession, model: type) -> int:
    result = await session.execute(
        delete(model).execution_options(synchronize_session=False),
    )
    return int(result.rowcount or 0)


async def _delete_ids(session: AsyncSession, model: type, ids: Iterable[UUID]) -> int:
    id_list = list(ids)
    if not id_list:
        return 0
    result = await session.execute(
        delete(model)
        .where(model.id.in_(id_list))
        .execution_options(synchronize_session=False),
    )
    return int(result.rowcount or 0)


async def cleanup_categories(session: AsyncSession, options: CategoryCleanupOptions) -> int:
    if options.all:
        return await _delete_all(session, Category)

    ids = await find_category_ids_by_slug(session, options.slugs)
    if options.orphaned:
        ids |= await find_orphaned_category_ids(session)
    return await _delete_ids(session, Category, ids)


async def cleanup_trends(session: AsyncSession, options: TrendCleanupOptions) -> int:
    if options.all:
        return await _delete_all(session, Trend)

    ids = await find_trend_ids_for_cleanup(
        session,
        titles=options.titles,
        orphaned=options.orphaned,
        older_than=options.older_than,
    )
    return await _delete_ids(session, Trend, ids)


async def cleanup_colors(session: AsyncSession, options: ColorCleanupOptions) -> int:
    if options.all:
        return await _delete_all(session, ColorTrend)

    ids = await find_unused_color_ids(session, names=options.names, unused=options.unused)
    return await _delete_ids(session, ColorTrend, ids)


async def run_cleanup(
    session: AsyncSession,
    options: CleanupOptions,
    *,
    timeout_seconds: float | None = None,
) -> BulkStats:
    """
    Execute a bulk cleanup and return the number of rows deleted per entity.

    Raises:
        BulkOperationInProgressError: another bulk operation holds the lock
        BulkTimeoutError: the transaction budget was exceeded
    """
    logger.info(
        "Starting bulk cleanup",
        options=options.model_dump(mode="json", by_alias=True, exclude_none=True),
    )
    stats = BulkStats()
    async with bulk_transaction(session, operation="cleanup", timeout_seconds=timeout_seconds):
        if options.categories is not None:
            stats.categories = await cleanup_categories(session, options.categories)
        if options.trends is not None:
            stats.trends = await cleanup_trends(session, options.trends)
        if options.colors is not None:
            stats.colors = await cleanup_colors(session, options.colors)

    record_bulk_stats(
        BULK_DELETED_ROWS_TOTAL,
        categories=stats.categories,
        trends=stats.trends,
        colors=stats.colors,
    )
    logger.info("Bulk cleanup finished", **stats.as_dict())
    return stats
