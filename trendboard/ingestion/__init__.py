"""Outbound adapters: image reachability and Google Sheets analytics."""

from trendboard.ingestion.image_probe import ImageUnreachableError, verify_image_urls
from trendboard.ingestion.sheets_client import (
    SheetsAccessError,
    SheetsClient,
    SheetSeries,
    SpreadsheetError,
    extract_spreadsheet_id,
    parse_sheet_rows,
    resolve_sheets_token,
)

__all__ = [
    "ImageUnreachableError",
    "SheetSeries",
    "SheetsAccessError",
    "SheetsClient",
    "SpreadsheetError",
    "extract_spreadsheet_id",
    "parse_sheet_rows",
    "resolve_sheets_token",
    "verify_image_urls",
]
