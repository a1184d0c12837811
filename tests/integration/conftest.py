from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass

import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.engine import make_url

from trendboard.core.config import settings
from trendboard.storage.database import async_session_maker
from trendboard.storage.models import Base

_LOCAL_DB_HOSTS = {"localhost", "127.0.0.1", "::1"}


@dataclass(frozen=True, slots=True)
class TruncateTarget:
    rendered_url: str
    database: str | None
    host: str | None


def _is_test_database(database_name: str | None) -> bool:
    if not database_name:
        return False
    normalized = database_name.strip().lower()
    return normalized.endswith("_test") or normalized.startswith("test_") or normalized == "test"


def _resolve_truncate_target() -> TruncateTarget:
    parsed = make_url(settings.DATABASE_URL_SYNC.strip() or settings.DATABASE_URL.strip())
    return TruncateTarget(
        rendered_url=parsed.render_as_string(hide_password=True),
        database=parsed.database,
        host=parsed.host,
    )


def _assert_safe_truncate_target() -> TruncateTarget:
    target = _resolve_truncate_target()
    if not _is_test_database(target.database) and not settings.INTEGRATION_DB_TRUNCATE_ALLOWED:
        msg = (
            "Refusing to truncate catalog tables on a non-test database. "
            f"Resolved target={target.rendered_url} (database={target.database!r}). "
            "Use a *_test database or set INTEGRATION_DB_TRUNCATE_ALLOWED=true."
        )
        raise RuntimeError(msg)

    host = (target.host or "").strip().lower()
    if host and host not in _LOCAL_DB_HOSTS and not settings.INTEGRATION_DB_TRUNCATE_ALLOW_REMOTE:
        msg = (
            "Refusing to truncate catalog tables on a remote host. "
            f"Resolved target={target.rendered_url} (host={target.host!r}). "
            "Use a local database or set INTEGRATION_DB_TRUNCATE_ALLOW_REMOTE=true."
        )
        raise RuntimeError(msg)

    return target


async def _truncate_catalog_tables() -> None:
    _assert_safe_truncate_target()
    table_names = ", ".join(f'"{table.name}"' for table in Base.metadata.sorted_tables)
    async with async_session_maker() as session:
        await session.execute(text(f"TRUNCATE TABLE {table_names} CASCADE"))
        await session.commit()


@pytest_asyncio.fixture(autouse=True)
async def reset_catalog_tables() -> AsyncIterator[None]:
    await _truncate_catalog_tables()
    yield
    await _truncate_catalog_tables()
