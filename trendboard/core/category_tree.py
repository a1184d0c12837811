"""
Category hierarchy validation.

Categories form a forest through `parent_id`. Reparenting must never let a
category become its own ancestor.
"""

from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trendboard.storage.models import Category

logger = structlog.get_logger(__name__)


class CategoryCycleError(ValueError):
    """Raised when a parent assignment would create a cycle in the category tree."""


async def would_create_cycle(
    session: AsyncSession,
    category_id: UUID,
    proposed_parent_id: UUID | None,
) -> bool:
    """
    Return True when making `proposed_parent_id` the parent of `category_id`
    would close a loop.

    Walks the ancestor chain one point lookup at a time. A repeated id means
    the stored tree already contains a cycle, which is reported as True too.
    """
    if proposed_parent_id is None:
        return False
    if proposed_parent_id == category_id:
        return True

    visited: set[UUID] = set()
    current_id: UUID | None = proposed_parent_id
    while current_id is not None:
        if current_id == category_id:
            return True
        if current_id in visited:
            logger.warning(
                "Existing cycle detected in category tree",
                category_id=str(category_id),
                repeated_id=str(current_id),
            )
            return True
        visited.add(current_id)
        current_id = await session.scalar(
            select(Category.parent_id).where(Category.id == current_id)
        )
    return False


async def ensure_acyclic_parent(
    session: AsyncSession,
    category_id: UUID,
    proposed_parent_id: UUID | None,
) -> None:
    """Raise CategoryCycleError if the parent assignment would create a cycle."""
    if await would_create_cycle(session, category_id, proposed_parent_id):
        logger.info(
            "Rejected category parent assignment",
            category_id=str(category_id),
            proposed_parent_id=str(proposed_parent_id),
        )
        msg = "Circular reference detected: a category cannot be its own ancestor"
        raise CategoryCycleError(msg)
