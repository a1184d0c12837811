"""
Admin trend management.
"""

from __future__ import annotations

from uuid import UUID

import httpx
import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import Field, model_validator
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from trendboard.api.deps import get_http_client, require_admin
from trendboard.api.routes.sheets import SpreadsheetImportRequest, fetch_spreadsheet_series
from trendboard.api.serialization import CamelModel, TrendOut, analytics_out, trend_out
from trendboard.core.analytics_store import delete_analytics, replace_analytics
from trendboard.ingestion.image_probe import ImageUnreachableError, verify_image_urls
from trendboard.storage.database import get_session
from trendboard.storage.models import Category, Trend, User

logger = structlog.get_logger(__name__)

router = APIRouter()


# =============================================================================
# Request Models
# =============================================================================


class TrendFields(CamelModel):
    """Editable trend fields."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    type: str = Field(..., min_length=1, max_length=100)
    image_urls: list[str] = Field(..., min_length=1)
    main_image_index: int = Field(default=0, ge=0)
    category_id: UUID | None = None

    @model_validator(mode="after")
    def _check_main_image(self) -> TrendFields:
        if self.main_image_index >= len(self.image_urls):
            msg = "mainImageIndex must point into imageUrls"
            raise ValueError(msg)
        return self


class TrendCreate(TrendFields):
    """Request body for creating a trend, optionally seeded from a spreadsheet."""

    spreadsheet_url: str | None = None


# =============================================================================
# Helpers
# =============================================================================


async def _ensure_category_exists(session: AsyncSession, category_id: UUID | None) -> None:
    if category_id is None:
        return
    if await session.get(Category, category_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Category '{category_id}' not found",
        )


async def _get_trend_or_404(session: AsyncSession, trend_id: UUID) -> Trend:
    trend = await session.get(Trend, trend_id, options=[selectinload(Trend.analytics)])
    if trend is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Trend '{trend_id}' not found",
        )
    return trend


# =============================================================================
# Endpoints
# =============================================================================


@router.get("", response_model=list[TrendOut])
async def list_trends(
    session: AsyncSession = Depends(get_session),
    _admin: User = Depends(require_admin),
) -> list[TrendOut]:
    """List all trends with analytics, newest first."""
    trends = (
        await session.scalars(
            select(Trend)
            .options(selectinload(Trend.analytics))
            .order_by(Trend.created_at.desc())
        )
    ).all()
    return [trend_out(trend) for trend in trends]


@router.post("", response_model=TrendOut, status_code=status.HTTP_201_CREATED)
async def create_trend(
    payload: TrendCreate,
    session: AsyncSession = Depends(get_session),
    http_client: httpx.AsyncClient = Depends(get_http_client),
    admin: User = Depends(require_admin),
) -> TrendOut:
    """
    Create a trend.

    Every image must be reachable. When `spreadsheetUrl` is given, the
    spreadsheet is read before anything is written.
    """
    await _ensure_category_exists(session, payload.category_id)
    try:
        await verify_image_urls(http_client, payload.image_urls)
    except ImageUnreachableError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    series = None
    if payload.spreadsheet_url:
        series = await fetch_spreadsheet_series(
            http_client,
            admin,
            payload.spreadsheet_url,
            owner="trend",
        )

    trend = Trend(
        title=payload.title,
        description=payload.description,
        type=payload.type,
        image_urls=list(payload.image_urls),
        main_image_index=payload.main_image_index,
        category_id=payload.category_id,
    )
    session.add(trend)
    await session.flush()

    analytics = None
    if series is not None:
        analytics = await replace_analytics(session, series, trend_id=trend.id)

    logger.info(
        "Trend created",
        trend_id=str(trend.id),
        images=len(trend.image_urls),
        with_analytics=analytics is not None,
    )
    result = trend_out(trend, include_analytics=False)
    result.analytics = analytics_out(analytics)
    return result


@router.put("/{trend_id}", response_model=TrendOut)
async def update_trend(
    trend_id: UUID,
    payload: TrendFields,
    session: AsyncSession = Depends(get_session),
    _admin: User = Depends(require_admin),
) -> TrendOut:
    """Replace a trend's editable fields."""
    trend = await _get_trend_or_404(session, trend_id)
    await _ensure_category_exists(session, payload.category_id)

    trend.title = payload.title
    trend.description = payload.description
    trend.type = payload.type
    trend.image_urls = list(payload.image_urls)
    trend.main_image_index = payload.main_image_index
    trend.category_id = payload.category_id
    await session.flush()

    logger.info("Trend updated", trend_id=str(trend_id))
    return trend_out(trend)


@router.delete("/{trend_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_trend(
    trend_id: UUID,
    session: AsyncSession = Depends(get_session),
    _admin: User = Depends(require_admin),
) -> None:
    """Delete a trend and its analytics."""
    trend = await session.get(Trend, trend_id)
    if trend is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Trend '{trend_id}' not found",
        )

    await delete_analytics(session, trend_id=trend_id)
    await session.delete(trend)
    await session.flush()
    logger.info("Trend deleted", trend_id=str(trend_id))


@router.post("/{trend_id}/spreadsheet", response_model=TrendOut)
async def import_trend_spreadsheet(
    trend_id: UUID,
    payload: SpreadsheetImportRequest,
    session: AsyncSession = Depends(get_session),
    http_client: httpx.AsyncClient = Depends(get_http_client),
    admin: User = Depends(require_admin),
) -> TrendOut:
    """Replace a trend's analytics with the contents of a spreadsheet."""
    trend = await _get_trend_or_404(session, trend_id)
    series = await fetch_spreadsheet_series(
        http_client,
        admin,
        payload.spreadsheet_url,
        owner="trend",
    )
    analytics = await replace_analytics(session, series, trend_id=trend.id)

    logger.info("Trend analytics replaced", trend_id=str(trend_id), points=len(series.dates))
    result = trend_out(trend, include_analytics=False)
    result.analytics = analytics_out(analytics)
    return result
