from __future__ import annotations

from datetime import UTC, datetime
from types import SimpleNamespace
from uuid import uuid4

import pytest

from trendboard.core.orphan_scanner import (
    find_category_ids_by_slug,
    find_orphaned_category_ids,
    find_trend_ids_for_cleanup,
    find_unused_color_ids,
)

pytestmark = pytest.mark.unit


def _ids_result(*ids):
    return SimpleNamespace(all=lambda: list(ids))


@pytest.mark.asyncio
async def test_no_selectors_issue_no_queries(mock_db_session) -> None:
    assert await find_category_ids_by_slug(mock_db_session, []) == set()
    assert await find_trend_ids_for_cleanup(mock_db_session) == set()
    assert await find_unused_color_ids(mock_db_session) == set()
    mock_db_session.scalars.assert_not_awaited()


@pytest.mark.asyncio
async def test_orphaned_categories_query_requires_root_without_children_or_trends(
    mock_db_session,
) -> None:
    orphan = uuid4()
    mock_db_session.scalars.return_value = _ids_result(orphan)

    result = await find_orphaned_category_ids(mock_db_session)

    assert result == {orphan}
    sql = str(mock_db_session.scalars.await_args.args[0])
    assert "categories.parent_id IS NULL" in sql
    assert sql.count("EXISTS") == 2
    assert "trends.category_id" in sql


@pytest.mark.asyncio
async def test_trend_selectors_are_unioned(mock_db_session) -> None:
    a, b, c = uuid4(), uuid4(), uuid4()
    mock_db_session.scalars.side_effect = [
        _ids_result(a),
        _ids_result(a, b),
        _ids_result(c),
    ]

    result = await find_trend_ids_for_cleanup(
        mock_db_session,
        titles=["Quiet luxury"],
        orphaned=True,
        older_than=datetime(2023, 1, 1, tzinfo=UTC),
    )

    assert result == {a, b, c}
    assert mock_db_session.scalars.await_count == 3


@pytest.mark.asyncio
async def test_unused_colors_have_no_analytics(mock_db_session) -> None:
    unused = uuid4()
    mock_db_session.scalars.return_value = _ids_result(unused)

    result = await find_unused_color_ids(mock_db_session, unused=True)

    assert result == {unused}
    sql = str(mock_db_session.scalars.await_args.args[0])
    assert "analytics.color_id = color_trends.id" in sql
