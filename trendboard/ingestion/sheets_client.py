"""
Google Sheets analytics adapter.

Reads the first sheet of a spreadsheet through the Sheets REST API using the
admin's stored OAuth access token and turns its rows into a time series plus
an age-segment breakdown.

Expected columns (no header row is assumed; rows that fail parsing are
skipped):
    A: date in DD.MM.YYYY
    B: trend value
    C: age segment name
    D: age segment percent
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from trendboard.core.config import settings

if TYPE_CHECKING:
    from trendboard.storage.models import User

logger = structlog.get_logger(__name__)

_SPREADSHEET_ID_RE = re.compile(r"/d/([a-zA-Z0-9-_]+)")
_SHEET_DATE_FORMAT = "%d.%m.%Y"


class SpreadsheetError(ValueError):
    """Raised when a spreadsheet cannot be fetched or holds no usable data."""


class SheetsAccessError(SpreadsheetError):
    """Raised when the stored Google Sheets token is missing or expired."""


@dataclass(slots=True)
class SheetSeries:
    """Parsed spreadsheet contents."""

    dates: list[datetime] = field(default_factory=list)
    values: list[float] = field(default_factory=list)
    age_segments: list[dict[str, Any]] = field(default_factory=list)


# =============================================================================
# Token and URL Helpers
# =============================================================================


def resolve_sheets_token(user: User, *, now: datetime | None = None) -> str:
    """Return the user's Sheets access token or raise SheetsAccessError."""
    current = now or datetime.now(tz=UTC)
    if not user.sheets_access_token:
        msg = "Google Sheets access not granted. Please reconnect your Google account."
        raise SheetsAccessError(msg)
    if user.sheets_token_expiry is None or user.sheets_token_expiry <= current:
        msg = "Google Sheets access has expired. Please reconnect your Google account."
        raise SheetsAccessError(msg)
    return user.sheets_access_token


def extract_spreadsheet_id(spreadsheet_url: str) -> str:
    match = _SPREADSHEET_ID_RE.search(spreadsheet_url)
    if match is None:
        msg = "Invalid Google Sheets URL"
        raise SpreadsheetError(msg)
    return match.group(1)


# =============================================================================
# Row Parsing
# =============================================================================


def _cell(row: Sequence[Any], index: int) -> str:
    if index >= len(row) or row[index] is None:
        return ""
    return str(row[index]).strip()


def _parse_number(raw_value: str) -> float | None:
    cleaned = raw_value.rstrip("%").strip().replace(",", ".")
    if not cleaned:
        return None
    try:
        number = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def _parse_sheet_date(raw_value: str) -> datetime | None:
    try:
        parsed = datetime.strptime(raw_value, _SHEET_DATE_FORMAT)
    except ValueError:
        return None
    return parsed.replace(tzinfo=UTC)


def parse_sheet_rows(rows: Sequence[Sequence[Any]]) -> SheetSeries:
    """
    Parse raw sheet rows tolerantly.

    The date/value pair and the segment/percent pair of a row are judged
    independently, so one row may feed the series, the segments, both or
    neither.
    """
    series = SheetSeries()
    for row in rows:
        day = _parse_sheet_date(_cell(row, 0))
        value = _parse_number(_cell(row, 1))
        if day is not None and value is not None:
            series.dates.append(day)
            series.values.append(value)

        segment_name = _cell(row, 2)
        percent = _parse_number(_cell(row, 3))
        if segment_name and percent is not None:
            series.age_segments.append({"name": segment_name, "value": percent})
    return series


# =============================================================================
# Client
# =============================================================================


class SheetsClient:
    """Fetches spreadsheet values on behalf of one admin."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        access_token: str,
        *,
        api_base: str | None = None,
        value_range: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.http_client = http_client
        self.access_token = access_token
        self.api_base = (api_base or settings.GOOGLE_SHEETS_API_BASE).rstrip("/")
        self.value_range = value_range or settings.SHEETS_VALUE_RANGE
        self.timeout_seconds = timeout_seconds or settings.SHEETS_REQUEST_TIMEOUT_SECONDS

    @classmethod
    def for_user(cls, http_client: httpx.AsyncClient, user: User) -> SheetsClient:
        return cls(http_client, resolve_sheets_token(user))

    async def fetch_rows(self, spreadsheet_id: str) -> list[list[Any]]:
        url = f"{self.api_base}/spreadsheets/{spreadsheet_id}/values/{self.value_range}"
        try:
            response = await self.http_client.get(
                url,
                headers={"Authorization": f"Bearer {self.access_token}"},
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            logger.warning(
                "Spreadsheet fetch rejected",
                spreadsheet_id=spreadsheet_id,
                status_code=status_code,
            )
            if status_code == 401:
                msg = "Google Sheets access has expired. Please reconnect your Google account."
                raise SheetsAccessError(msg) from exc
            msg = f"Failed to fetch spreadsheet data: HTTP {status_code}"
            raise SpreadsheetError(msg) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning(
                "Spreadsheet fetch failed",
                spreadsheet_id=spreadsheet_id,
                error=str(exc),
            )
            msg = f"Failed to fetch spreadsheet data: {exc.__class__.__name__}"
            raise SpreadsheetError(msg) from exc
        except ValueError as exc:
            msg = "Failed to fetch spreadsheet data: response is not JSON"
            raise SpreadsheetError(msg) from exc

        if not isinstance(payload, dict):
            msg = "Failed to fetch spreadsheet data: unexpected response payload"
            raise SpreadsheetError(msg)
        rows = payload.get("values") or []
        return [row for row in rows if isinstance(row, list)]

    async def fetch_and_parse(self, spreadsheet_url: str) -> SheetSeries:
        """Fetch the spreadsheet behind `spreadsheet_url` and parse its rows."""
        spreadsheet_id = extract_spreadsheet_id(spreadsheet_url)
        rows = await self.fetch_rows(spreadsheet_id)
        series = parse_sheet_rows(rows)
        if not series.dates:
            msg = "No valid data found in spreadsheet"
            raise SpreadsheetError(msg)
        logger.info(
            "Spreadsheet parsed",
            spreadsheet_id=spreadsheet_id,
            rows=len(rows),
            points=len(series.dates),
            age_segments=len(series.age_segments),
        )
        return series
