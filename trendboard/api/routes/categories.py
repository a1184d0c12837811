"""
Admin category management.

Categories form a tree; the update path rejects parent assignments that
would create a cycle and the delete path only removes leaf categories with
no trends.
"""

from __future__ import annotations

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import Field
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from trendboard.api.deps import require_admin
from trendboard.api.serialization import CamelModel, CategoryNode, build_category_tree
from trendboard.core.category_tree import CategoryCycleError, ensure_acyclic_parent
from trendboard.storage.database import get_session
from trendboard.storage.models import Category, Trend, User

logger = structlog.get_logger(__name__)

router = APIRouter()


# =============================================================================
# Request Models
# =============================================================================


class CategoryCreate(CamelModel):
    """Request body for creating a category."""

    name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    image_url: str | None = None
    parent_id: UUID | None = None


class CategoryUpdate(CategoryCreate):
    """Request body for updating a category; the id travels in the body."""

    id: UUID


# =============================================================================
# Helpers
# =============================================================================


async def load_category_tree(
    session: AsyncSession,
    *,
    include_trends: bool,
    max_depth: int | None = None,
) -> list[CategoryNode]:
    categories = (await session.scalars(select(Category).order_by(Category.name))).all()
    trends = None
    if include_trends:
        trends = (
            await session.scalars(
                select(Trend)
                .options(selectinload(Trend.analytics))
                .order_by(Trend.created_at.desc())
            )
        ).all()
    return build_category_tree(categories, trends, max_depth=max_depth)


async def _ensure_unique_slug(
    session: AsyncSession,
    slug: str,
    *,
    exclude_id: UUID | None = None,
) -> None:
    query = select(Category.id).where(Category.slug == slug)
    if exclude_id is not None:
        query = query.where(Category.id != exclude_id)
    if await session.scalar(query) is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Category with this slug already exists",
        )


async def _ensure_parent_exists(session: AsyncSession, parent_id: UUID | None) -> None:
    if parent_id is None:
        return
    if await session.get(Category, parent_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Parent category '{parent_id}' not found",
        )


def _node_for(category: Category) -> CategoryNode:
    return CategoryNode(
        id=category.id,
        name=category.name,
        slug=category.slug,
        description=category.description,
        image_url=category.image_url,
        parent_id=category.parent_id,
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.get("", response_model=list[CategoryNode])
async def list_categories(
    session: AsyncSession = Depends(get_session),
    _admin: User = Depends(require_admin),
) -> list[CategoryNode]:
    """Return root categories with nested children and their trends."""
    return await load_category_tree(session, include_trends=True)


@router.get("/list", response_model=list[CategoryNode])
async def list_category_options(
    session: AsyncSession = Depends(get_session),
    _admin: User = Depends(require_admin),
) -> list[CategoryNode]:
    """Return a lightweight three-level tree without trends, for pickers."""
    return await load_category_tree(session, include_trends=False, max_depth=3)


@router.post("", response_model=CategoryNode, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreate,
    session: AsyncSession = Depends(get_session),
    _admin: User = Depends(require_admin),
) -> CategoryNode:
    """Create a category under an optional parent."""
    await _ensure_unique_slug(session, payload.slug)
    await _ensure_parent_exists(session, payload.parent_id)

    category = Category(
        name=payload.name,
        slug=payload.slug,
        description=payload.description,
        image_url=payload.image_url,
        parent_id=payload.parent_id,
    )
    session.add(category)
    await session.flush()

    logger.info("Category created", category_id=str(category.id), slug=category.slug)
    return _node_for(category)


@router.put("", response_model=CategoryNode)
async def update_category(
    payload: CategoryUpdate,
    session: AsyncSession = Depends(get_session),
    _admin: User = Depends(require_admin),
) -> CategoryNode:
    """
    Replace a category's fields.

    Reparenting is validated against the stored tree first; a cycle leaves
    the category untouched.
    """
    category = await session.get(Category, payload.id)
    if category is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Category '{payload.id}' not found",
        )

    await _ensure_unique_slug(session, payload.slug, exclude_id=category.id)
    if payload.parent_id != category.parent_id:
        await _ensure_parent_exists(session, payload.parent_id)
        try:
            await ensure_acyclic_parent(session, category.id, payload.parent_id)
        except CategoryCycleError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(exc),
            ) from exc

    category.name = payload.name
    category.slug = payload.slug
    category.description = payload.description
    category.image_url = payload.image_url
    category.parent_id = payload.parent_id
    await session.flush()

    logger.info("Category updated", category_id=str(category.id))
    return _node_for(category)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: UUID = Query(..., alias="id"),
    session: AsyncSession = Depends(get_session),
    _admin: User = Depends(require_admin),
) -> None:
    """Delete a category that has neither children nor trends."""
    category = await session.get(Category, category_id)
    if category is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Category '{category_id}' not found",
        )

    child_count = await session.scalar(
        select(func.count()).select_from(Category).where(Category.parent_id == category_id)
    )
    trend_count = await session.scalar(
        select(func.count()).select_from(Trend).where(Trend.category_id == category_id)
    )
    if child_count or trend_count:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete category with subcategories or trends",
        )

    await session.delete(category)
    await session.flush()
    logger.info("Category deleted", category_id=str(category_id))
