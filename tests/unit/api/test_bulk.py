from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest
from fastapi import HTTPException
from fastapi.responses import JSONResponse

import trendboard.api.routes.bulk as bulk_module
from trendboard.core.bulk_import import DanglingParentError
from trendboard.core.bulk_payloads import (
    BulkDocument,
    BulkStats,
    CategoryCleanupOptions,
    CleanupOptions,
)
from trendboard.core.bulk_transaction import BulkOperationInProgressError, BulkTimeoutError

pytestmark = pytest.mark.unit


@pytest.mark.asyncio
async def test_bulk_cleanup_returns_stats(mock_db_session, admin_user, monkeypatch) -> None:
    run_cleanup = AsyncMock(return_value=BulkStats(categories=1, trends=2, colors=3))
    monkeypatch.setattr(bulk_module, "run_cleanup", run_cleanup)
    options = CleanupOptions(categories=CategoryCleanupOptions(orphaned=True))

    result = await bulk_module.bulk_cleanup(options, session=mock_db_session, admin=admin_user)

    assert result == {
        "success": True,
        "error": None,
        "stats": {"categories": 1, "trends": 2, "colors": 3},
    }
    run_cleanup.assert_awaited_once_with(mock_db_session, options)


@pytest.mark.asyncio
async def test_bulk_cleanup_conflict_returns_409(mock_db_session, admin_user, monkeypatch) -> None:
    monkeypatch.setattr(
        bulk_module,
        "run_cleanup",
        AsyncMock(side_effect=BulkOperationInProgressError("busy")),
    )

    with pytest.raises(HTTPException) as exc_info:
        await bulk_module.bulk_cleanup(CleanupOptions(), session=mock_db_session, admin=admin_user)

    assert exc_info.value.status_code == 409


@pytest.mark.asyncio
async def test_bulk_cleanup_failure_rolls_back_with_error_envelope(
    mock_db_session,
    admin_user,
    monkeypatch,
) -> None:
    monkeypatch.setattr(
        bulk_module,
        "run_cleanup",
        AsyncMock(side_effect=BulkTimeoutError("Bulk cleanup exceeded the 10s transaction budget")),
    )

    result = await bulk_module.bulk_cleanup(
        CleanupOptions(),
        session=mock_db_session,
        admin=admin_user,
    )

    assert isinstance(result, JSONResponse)
    assert result.status_code == 500
    assert json.loads(result.body) == {
        "success": False,
        "error": "Bulk cleanup exceeded the 10s transaction budget",
        "stats": None,
    }
    mock_db_session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_bulk_export_wraps_document(mock_db_session, admin_user, monkeypatch) -> None:
    document = BulkDocument.model_validate(
        {
            "categories": [{"name": "Women", "slug": "women"}],
            "colors": [{"name": "Butter", "hex": "#F5E1A4"}],
        }
    )
    monkeypatch.setattr(bulk_module, "export_all", AsyncMock(return_value=document))

    result = await bulk_module.bulk_export(session=mock_db_session, admin=admin_user)

    assert result["success"] is True
    assert result["stats"] == {"categories": 1, "trends": 0, "colors": 1}
    assert result["data"]["categories"][0]["parentSlug"] is None
    assert result["data"]["colors"][0]["imageUrl"] == ""


@pytest.mark.asyncio
async def test_bulk_import_rejects_inconsistent_document(
    mock_db_session,
    admin_user,
    monkeypatch,
) -> None:
    monkeypatch.setattr(
        bulk_module,
        "import_all",
        AsyncMock(side_effect=DanglingParentError("Category 'a' references unknown parent 'b'")),
    )

    with pytest.raises(HTTPException) as exc_info:
        await bulk_module.bulk_import(BulkDocument(), session=mock_db_session, admin=admin_user)

    assert exc_info.value.status_code == 400
    assert "unknown parent" in exc_info.value.detail


@pytest.mark.asyncio
async def test_bulk_import_returns_counts(mock_db_session, admin_user, monkeypatch) -> None:
    monkeypatch.setattr(
        bulk_module,
        "import_all",
        AsyncMock(return_value=BulkStats(categories=2, trends=0, colors=0)),
    )

    result = await bulk_module.bulk_import(BulkDocument(), session=mock_db_session, admin=admin_user)

    assert result["stats"] == {"categories": 2, "trends": 0, "colors": 0}
