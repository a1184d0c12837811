"""
Google Sheets connection status and the shared spreadsheet import helper.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

import httpx
import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from trendboard.api.deps import get_current_user
from trendboard.api.serialization import CamelModel
from trendboard.core.observability import record_spreadsheet_import
from trendboard.ingestion.sheets_client import SheetsClient, SheetSeries, SpreadsheetError
from trendboard.storage.models import User

logger = structlog.get_logger(__name__)

router = APIRouter()


class SheetsStatus(CamelModel):
    """Whether the current user holds a usable Sheets token."""

    has_access: bool
    expires_at: datetime | None = None


class SpreadsheetImportRequest(CamelModel):
    """Request body for (re)loading analytics from a spreadsheet."""

    spreadsheet_url: str


async def fetch_spreadsheet_series(
    http_client: httpx.AsyncClient,
    user: User,
    spreadsheet_url: str,
    *,
    owner: Literal["trend", "color"],
) -> SheetSeries:
    """Fetch and parse a spreadsheet; any adapter failure becomes a 400."""
    try:
        client = SheetsClient.for_user(http_client, user)
        series = await client.fetch_and_parse(spreadsheet_url)
    except SpreadsheetError as exc:
        record_spreadsheet_import(owner=owner, outcome="error")
        logger.warning(
            "Spreadsheet import failed",
            owner=owner,
            user_email=user.email,
            error=str(exc),
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Failed to import spreadsheet data: {exc}",
        ) from exc
    record_spreadsheet_import(owner=owner, outcome="success")
    return series


@router.get("/status", response_model=SheetsStatus)
async def sheets_status(user: User = Depends(get_current_user)) -> SheetsStatus:
    """Report whether the current user can read spreadsheets right now."""
    expires_at = user.sheets_token_expiry
    has_access = bool(
        user.sheets_access_token
        and expires_at is not None
        and expires_at > datetime.now(tz=UTC)
    )
    return SheetsStatus(has_access=has_access, expires_at=expires_at)
