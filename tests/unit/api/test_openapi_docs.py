from __future__ import annotations

from collections.abc import AsyncIterator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

import trendboard.api.routes.bulk as bulk_module
from trendboard.api.deps import require_admin
from trendboard.api.main import create_app
from trendboard.core.bulk_payloads import BulkStats
from trendboard.storage.database import get_session

pytestmark = pytest.mark.unit

ADMIN_HEADERS = {"X-User-Email": "admin@trendboard.test"}


@pytest.fixture
def client(mock_db_session, admin_user) -> TestClient:
    app = create_app()

    async def _session() -> AsyncIterator:
        yield mock_db_session

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[require_admin] = lambda: admin_user
    return TestClient(app)


def test_docs_and_openapi_routes_are_exposed() -> None:
    app = create_app()

    assert app.docs_url == "/docs"
    assert app.redoc_url == "/redoc"
    assert app.openapi_url == "/openapi.json"


def test_bulk_and_catalog_routes_are_registered() -> None:
    paths = create_app().openapi()["paths"]

    assert "/api/v1/admin/bulk-cleanup" in paths
    assert "/api/v1/admin/bulk-export" in paths
    assert "/api/v1/admin/bulk-import" in paths
    assert "/api/v1/admin/categories/list" in paths
    assert "/api/v1/admin/trends/{trend_id}/spreadsheet" in paths
    assert "/api/v1/admin/users/{user_id}/subscription" in paths
    assert "/api/v1/sheets/status" in paths
    assert "/api/v1/trends" in paths


def test_admin_route_without_identity_returns_401(client: TestClient) -> None:
    response = client.post("/api/v1/admin/bulk-cleanup", json={})

    assert response.status_code == 401


def test_schema_violation_returns_400_with_details(client: TestClient) -> None:
    response = client.post(
        "/api/v1/admin/bulk-import",
        json={"colors": [{"name": "Bad", "hex": "#GGGGGG"}]},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Validation failed"
    assert body["details"]


def test_bulk_cleanup_over_http(client: TestClient, monkeypatch) -> None:
    run_cleanup = AsyncMock(return_value=BulkStats(categories=0, trends=5, colors=0))
    monkeypatch.setattr(bulk_module, "run_cleanup", run_cleanup)

    response = client.post(
        "/api/v1/admin/bulk-cleanup",
        json={"trends": {"orphaned": True, "olderThan": "2023-01-01"}},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "error": None,
        "stats": {"categories": 0, "trends": 5, "colors": 0},
    }
    options = run_cleanup.await_args.args[1]
    assert options.trends.orphaned is True
    assert options.categories is None
