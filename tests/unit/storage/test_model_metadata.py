from __future__ import annotations

import pytest

from trendboard.storage.models import Analytics, Base, Category, ColorTrend, Trend

pytestmark = pytest.mark.unit


def _constraint_names(table) -> set[str]:
    return {constraint.name for constraint in table.constraints if constraint.name}


def test_metadata_registers_catalog_and_user_tables() -> None:
    assert set(Base.metadata.tables) == {
        "categories",
        "trends",
        "color_trends",
        "analytics",
        "users",
    }


def test_category_and_trend_foreign_keys_set_null_on_delete() -> None:
    parent_fk = next(iter(Category.__table__.c.parent_id.foreign_keys))
    trend_fk = next(iter(Trend.__table__.c.category_id.foreign_keys))

    assert parent_fk.ondelete == "SET NULL"
    assert trend_fk.ondelete == "SET NULL"


def test_analytics_has_exclusive_unique_owners() -> None:
    table = Analytics.__table__

    assert table.c.trend_id.unique is True
    assert table.c.color_id.unique is True
    assert {"check_single_owner", "check_parallel_series"} <= _constraint_names(table)
    for column in (table.c.trend_id, table.c.color_id):
        assert next(iter(column.foreign_keys)).ondelete == "CASCADE"


def test_color_trend_checks_popularity_and_hex() -> None:
    names = _constraint_names(ColorTrend.__table__)

    assert "check_popularity_range" in names
    assert "check_hex_format" in names
