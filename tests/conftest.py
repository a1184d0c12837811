"""
Pytest configuration and shared fixtures.

This module provides:
- Mock fixtures for unit tests
- Sample catalog rows
- Marker registration
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from httpx import AsyncClient

from trendboard.storage.models import User

# =============================================================================
# Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """Create a mock database session for unit tests."""
    session = AsyncMock()
    session.add = MagicMock()
    session.delete = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.execute = AsyncMock()
    session.scalar = AsyncMock()
    session.scalars = AsyncMock()
    session.get = AsyncMock()
    # Dialect without advisory locks, so bulk operations skip the lock query.
    session.get_bind = MagicMock(
        return_value=SimpleNamespace(dialect=SimpleNamespace(name="sqlite")),
    )

    @asynccontextmanager
    async def _nested_transaction() -> AsyncIterator[None]:
        yield

    session.begin_nested = MagicMock(side_effect=lambda: _nested_transaction())
    return session


@pytest.fixture
def flushing_db_session(mock_db_session: AsyncMock) -> AsyncMock:
    """Mock session whose flush assigns primary keys to added rows."""

    async def _flush(*_args, **_kwargs) -> None:
        for call in mock_db_session.add.call_args_list:
            row = call.args[0]
            if getattr(row, "id", None) is None:
                row.id = uuid4()

    mock_db_session.flush.side_effect = _flush
    return mock_db_session


@pytest.fixture
def mock_http_client() -> AsyncMock:
    """Create a mock HTTP client for unit tests."""
    return AsyncMock(spec=AsyncClient)


# =============================================================================
# Sample Data Fixtures
# =============================================================================


@pytest.fixture
def admin_user() -> User:
    """Admin with a valid Google Sheets token."""
    return User(
        id=uuid4(),
        email="admin@trendboard.test",
        is_admin=True,
        sheets_access_token="ya29.token",
        sheets_token_expiry=datetime.now(tz=UTC) + timedelta(hours=1),
    )


@pytest.fixture
def regular_user() -> User:
    """Non-admin without a subscription."""
    return User(
        id=uuid4(),
        email="reader@trendboard.test",
        is_admin=False,
        subscribed_until=None,
    )


@pytest.fixture
def sample_sheet_rows() -> list[list[str]]:
    """Spreadsheet rows in the A:D layout."""
    return [
        ["Date", "Value", "Segment", "Percent"],
        ["01.02.2024", "70", "18-24", "40"],
        ["02.02.2024", "72.5", "25-34", "35%"],
        ["bad-date", "50", "", ""],
        ["03.02.2024", "n/a", "35-44", "25"],
    ]


# =============================================================================
# Integration Test Markers
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers",
        "unit: Unit tests (fast, no external dependencies)",
    )
    config.addinivalue_line(
        "markers",
        "integration: Integration tests (require a PostgreSQL test database)",
    )
    config.addinivalue_line(
        "markers",
        "slow: Slow tests",
    )
