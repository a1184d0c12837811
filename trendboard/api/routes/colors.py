"""
Admin color trend management.
"""

from __future__ import annotations

from uuid import UUID

import httpx
import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ConfigDict, Field, field_validator
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from trendboard.api.deps import get_http_client, require_admin
from trendboard.api.routes.sheets import SpreadsheetImportRequest, fetch_spreadsheet_series
from trendboard.api.serialization import CamelModel, ColorOut, analytics_out, color_out
from trendboard.core.analytics_store import delete_analytics, replace_analytics
from trendboard.core.bulk_payloads import validate_hex_color
from trendboard.ingestion.image_probe import ImageUnreachableError, verify_image_urls
from trendboard.storage.database import get_session
from trendboard.storage.models import ColorTrend, User

logger = structlog.get_logger(__name__)

router = APIRouter()


# =============================================================================
# Request Models
# =============================================================================


class ColorFields(CamelModel):
    """Editable color trend fields."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Butter Yellow",
                "hex": "#F3E5AB",
                "imageUrl": "https://cdn.example.com/colors/butter.jpg",
                "popularity": 72,
                "palette1": "#FFF8DC",
            }
        }
    )

    name: str = Field(..., min_length=1, max_length=255)
    hex: str
    image_url: str = Field(..., min_length=1)
    popularity: int = Field(..., ge=0, le=100)
    palette1: str | None = None
    palette2: str | None = None
    palette3: str | None = None
    palette4: str | None = None
    palette5: str | None = None

    @field_validator("hex")
    @classmethod
    def _check_hex(cls, value: str) -> str:
        return validate_hex_color(value)

    @field_validator("palette1", "palette2", "palette3", "palette4", "palette5")
    @classmethod
    def _check_palette(cls, value: str | None) -> str | None:
        if not value:
            return None
        return validate_hex_color(value, field_name="palette")


# =============================================================================
# Helpers
# =============================================================================


def _apply_fields(color: ColorTrend, payload: ColorFields) -> None:
    color.name = payload.name
    color.hex = payload.hex
    color.image_url = payload.image_url
    color.popularity = payload.popularity
    color.palette1 = payload.palette1
    color.palette2 = payload.palette2
    color.palette3 = payload.palette3
    color.palette4 = payload.palette4
    color.palette5 = payload.palette5


async def _get_color_or_404(session: AsyncSession, color_id: UUID) -> ColorTrend:
    color = await session.get(ColorTrend, color_id, options=[selectinload(ColorTrend.analytics)])
    if color is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Color trend '{color_id}' not found",
        )
    return color


# =============================================================================
# Endpoints
# =============================================================================


@router.get("", response_model=list[ColorOut])
async def list_colors(
    session: AsyncSession = Depends(get_session),
    _admin: User = Depends(require_admin),
) -> list[ColorOut]:
    """List all color trends with analytics, newest first."""
    colors = (
        await session.scalars(
            select(ColorTrend)
            .options(selectinload(ColorTrend.analytics))
            .order_by(ColorTrend.created_at.desc())
        )
    ).all()
    return [color_out(color) for color in colors]


@router.post("", response_model=ColorOut, status_code=status.HTTP_201_CREATED)
async def create_color(
    payload: ColorFields,
    session: AsyncSession = Depends(get_session),
    http_client: httpx.AsyncClient = Depends(get_http_client),
    _admin: User = Depends(require_admin),
) -> ColorOut:
    """Create a color trend after checking that its image is reachable."""
    try:
        await verify_image_urls(http_client, [payload.image_url])
    except ImageUnreachableError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    color = ColorTrend()
    _apply_fields(color, payload)
    session.add(color)
    await session.flush()

    logger.info("Color trend created", color_id=str(color.id), hex=color.hex)
    return color_out(color, include_analytics=False)


@router.put("/{color_id}", response_model=ColorOut)
async def update_color(
    color_id: UUID,
    payload: ColorFields,
    session: AsyncSession = Depends(get_session),
    _admin: User = Depends(require_admin),
) -> ColorOut:
    """Replace a color trend's editable fields."""
    color = await _get_color_or_404(session, color_id)
    _apply_fields(color, payload)
    await session.flush()

    logger.info("Color trend updated", color_id=str(color_id))
    return color_out(color)


@router.delete("/{color_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_color(
    color_id: UUID,
    session: AsyncSession = Depends(get_session),
    _admin: User = Depends(require_admin),
) -> None:
    """Delete a color trend and its analytics."""
    color = await session.get(ColorTrend, color_id)
    if color is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Color trend '{color_id}' not found",
        )

    await delete_analytics(session, color_id=color_id)
    await session.delete(color)
    await session.flush()
    logger.info("Color trend deleted", color_id=str(color_id))


@router.post("/{color_id}/spreadsheet", response_model=ColorOut)
async def import_color_spreadsheet(
    color_id: UUID,
    payload: SpreadsheetImportRequest,
    session: AsyncSession = Depends(get_session),
    http_client: httpx.AsyncClient = Depends(get_http_client),
    admin: User = Depends(require_admin),
) -> ColorOut:
    """Replace a color trend's analytics wholesale with a spreadsheet's contents."""
    color = await _get_color_or_404(session, color_id)
    series = await fetch_spreadsheet_series(
        http_client,
        admin,
        payload.spreadsheet_url,
        owner="color",
    )
    analytics = await replace_analytics(session, series, color_id=color.id)

    logger.info("Color analytics replaced", color_id=str(color_id), points=len(series.dates))
    result = color_out(color, include_analytics=False)
    result.analytics = analytics_out(analytics)
    return result
