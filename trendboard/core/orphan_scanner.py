"""
Selection of cleanup candidates.

Each finder returns a set of primary keys. Sets from several predicates are
unioned so that a row matched twice is only deleted (and counted) once.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from trendboard.storage.models import Analytics, Category, ColorTrend, Trend


async def _ids(session: AsyncSession, query) -> set[UUID]:
    result = await session.scalars(query)
    return set(result.all())


async def find_category_ids_by_slug(
    session: AsyncSession,
    slugs: Sequence[str],
) -> set[UUID]:
    """Return ids of categories whose slug is in `slugs`."""
    if not slugs:
        return set()
    return await _ids(session, select(Category.id).where(Category.slug.in_(list(slugs))))


async def find_orphaned_category_ids(session: AsyncSession) -> set[UUID]:
    """Return root categories with no children and no trends."""
    child = aliased(Category)
    query = select(Category.id).where(
        Category.parent_id.is_(None),
        ~exists().where(child.parent_id == Category.id),
        ~exists().where(Trend.category_id == Category.id),
    )
    return await _ids(session, query)


async def find_trend_ids_for_cleanup(
    session: AsyncSession,
    *,
    titles: Sequence[str] | None = None,
    orphaned: bool = False,
    older_than: datetime | None = None,
) -> set[UUID]:
    """
    Return the union of trends matching any enabled selector.

    Selectors:
        titles: exact title match
        orphaned: trends without a category
        older_than: trends created strictly before the cutoff
    """
    candidates: set[UUID] = set()
    if titles:
        candidates |= await _ids(session, select(Trend.id).where(Trend.title.in_(list(titles))))
    if orphaned:
        candidates |= await _ids(session, select(Trend.id).where(Trend.category_id.is_(None)))
    if older_than is not None:
        candidates |= await _ids(session, select(Trend.id).where(Trend.created_at < older_than))
    return candidates


async def find_unused_color_ids(
    session: AsyncSession,
    *,
    names: Sequence[str] | None = None,
    unused: bool = False,
) -> set[UUID]:
    """Return the union of colors matched by name and colors without analytics."""
    candidates: set[UUID] = set()
    if names:
        candidates |= await _ids(
            session,
            select(ColorTrend.id).where(ColorTrend.name.in_(list(names))),
        )
    if unused:
        candidates |= await _ids(
            session,
            select(ColorTrend.id).where(
                ~exists().where(Analytics.color_id == ColorTrend.id),
            ),
        )
    return candidates
