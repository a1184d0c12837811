"""
Transaction envelope shared by bulk cleanup and bulk import.

A bulk operation runs inside one savepoint with a fixed time budget and
holds a PostgreSQL advisory lock so that two admins cannot mutate the
catalog in bulk at the same time.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from trendboard.core.config import settings
from trendboard.core.observability import record_bulk_failure

logger = structlog.get_logger(__name__)


class BulkOperationInProgressError(RuntimeError):
    """Raised when another bulk operation currently holds the bulk lock."""


class BulkTimeoutError(RuntimeError):
    """Raised when a bulk transaction exceeds its time budget."""


async def acquire_bulk_lock(session: AsyncSession) -> None:
    """
    Take the transaction-scoped bulk advisory lock.

    The lock is released automatically when the surrounding transaction
    ends. Dialects without advisory locks skip this step.
    """
    dialect_name = session.get_bind().dialect.name
    if dialect_name != "postgresql":
        logger.debug("Advisory lock unsupported, skipping", dialect=dialect_name)
        return

    acquired = await session.scalar(
        select(func.pg_try_advisory_xact_lock(settings.BULK_LOCK_KEY))
    )
    if not acquired:
        msg = "Another bulk operation is in progress; try again shortly"
        raise BulkOperationInProgressError(msg)


@asynccontextmanager
async def bulk_transaction(
    session: AsyncSession,
    *,
    operation: str,
    timeout_seconds: float | None = None,
) -> AsyncIterator[None]:
    """
    Run the enclosed block atomically under the bulk time budget.

    Any exception (including the timeout) rolls back every write made in
    the block and is re-raised.
    """
    budget = (
        timeout_seconds
        if timeout_seconds is not None
        else settings.BULK_TRANSACTION_TIMEOUT_SECONDS
    )
    try:
        async with asyncio.timeout(budget):
            async with session.begin_nested():
                await acquire_bulk_lock(session)
                yield
    except TimeoutError as exc:
        record_bulk_failure(operation)
        logger.error("Bulk transaction timed out", operation=operation, budget_seconds=budget)
        msg = f"Bulk {operation} exceeded the {budget:g}s transaction budget"
        raise BulkTimeoutError(msg) from exc
    except Exception:
        record_bulk_failure(operation)
        raise
