from __future__ import annotations

from unittest.mock import AsyncMock
from uuid import uuid4

import httpx
import pytest
from fastapi import HTTPException
from pydantic import ValidationError

import trendboard.api.routes.colors as colors_module
from trendboard.api.routes.colors import ColorFields
from trendboard.api.routes.sheets import SpreadsheetImportRequest
from trendboard.storage.models import ColorTrend

pytestmark = pytest.mark.unit

IMAGE_URL = "https://cdn.example/colors/butter.jpg"


def _fields(**overrides) -> ColorFields:
    values = {
        "name": "Butter Yellow",
        "hex": "#F3E5AB",
        "imageUrl": IMAGE_URL,
        "popularity": 72,
    }
    values.update(overrides)
    return ColorFields.model_validate(values)


def test_color_fields_validate_hex_and_popularity() -> None:
    assert _fields(palette1="#FFF", palette2="").palette2 is None

    with pytest.raises(ValidationError, match="Invalid hex color format"):
        _fields(hex="#GGGGGG")
    with pytest.raises(ValidationError):
        _fields(popularity=101)
    with pytest.raises(ValidationError, match="Invalid palette color format"):
        _fields(palette4="12345")


@pytest.mark.asyncio
async def test_create_color_checks_image_and_returns_row(
    flushing_db_session,
    mock_http_client,
    admin_user,
    monkeypatch,
) -> None:
    verify = AsyncMock()
    monkeypatch.setattr(colors_module, "verify_image_urls", verify)

    result = await colors_module.create_color(
        _fields(palette1="#FFF8DC"),
        session=flushing_db_session,
        http_client=mock_http_client,
        _admin=admin_user,
    )

    verify.assert_awaited_once_with(mock_http_client, [IMAGE_URL])
    assert result.hex == "#F3E5AB"
    assert result.palette1 == "#FFF8DC"
    assert result.analytics is None


@pytest.mark.asyncio
async def test_update_missing_color_returns_404(mock_db_session, admin_user) -> None:
    mock_db_session.get.return_value = None

    with pytest.raises(HTTPException) as exc_info:
        await colors_module.update_color(
            uuid4(),
            _fields(),
            session=mock_db_session,
            _admin=admin_user,
        )

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_import_color_spreadsheet_reads_sheet_and_replaces_analytics(
    flushing_db_session,
    mock_http_client,
    admin_user,
    sample_sheet_rows,
) -> None:
    color = ColorTrend(
        id=uuid4(),
        name="Butter Yellow",
        hex="#F3E5AB",
        image_url=IMAGE_URL,
        popularity=72,
    )
    flushing_db_session.get.return_value = color
    mock_http_client.get.return_value = httpx.Response(
        200,
        json={"values": sample_sheet_rows},
        request=httpx.Request("GET", "https://sheets.googleapis.com/v4/spreadsheets/abc"),
    )

    result = await colors_module.import_color_spreadsheet(
        color.id,
        SpreadsheetImportRequest(
            spreadsheet_url="https://docs.google.com/spreadsheets/d/abc/edit",
        ),
        session=flushing_db_session,
        http_client=mock_http_client,
        admin=admin_user,
    )

    assert result.analytics is not None
    assert result.analytics.values == [70.0, 72.5]
    assert len(result.analytics.age_segments or []) == 3


@pytest.mark.asyncio
async def test_import_color_spreadsheet_rejects_invalid_url(
    mock_db_session,
    mock_http_client,
    admin_user,
) -> None:
    mock_db_session.get.return_value = ColorTrend(id=uuid4(), name="Butter", hex="#FFF")

    with pytest.raises(HTTPException) as exc_info:
        await colors_module.import_color_spreadsheet(
            uuid4(),
            SpreadsheetImportRequest(spreadsheet_url="https://example.com/sheet"),
            session=mock_db_session,
            http_client=mock_http_client,
            admin=admin_user,
        )

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "Failed to import spreadsheet data: Invalid Google Sheets URL"
    mock_db_session.add.assert_not_called()
