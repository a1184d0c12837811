"""
Health check endpoints.

Provides endpoints for monitoring application health,
including database connectivity checks.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import Any

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from trendboard.storage.database import get_session

logger = structlog.get_logger(__name__)

router = APIRouter()

API_VERSION = "1.0.0"


# =============================================================================
# Response Models
# =============================================================================


class HealthStatus(BaseModel):
    """Health check response."""

    status: str
    timestamp: str
    version: str
    checks: dict[str, Any]


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/health", response_model=HealthStatus)
async def health_check(
    session: AsyncSession = Depends(get_session),
) -> HealthStatus:
    """
    Check application health.

    Returns:
        HealthStatus with the database check and overall status
    """
    db_check = await check_database(session)
    overall_status = "healthy" if db_check["status"] == "healthy" else "unhealthy"

    return HealthStatus(
        status=overall_status,
        timestamp=datetime.now(tz=UTC).isoformat(),
        version=API_VERSION,
        checks={"database": db_check},
    )


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    """
    Kubernetes liveness probe.

    Simple check that the application is running.
    Does not check dependencies.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(
    session: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    """
    Kubernetes readiness probe.

    Checks if the application is ready to receive traffic.
    """
    try:
        await session.execute(text("SELECT 1"))
        return {"status": "ready"}
    except Exception as e:
        logger.warning("Readiness check failed", error=str(e))
        return {"status": "not_ready", "reason": str(e)}


# =============================================================================
# Health Check Functions
# =============================================================================


async def check_database(session: AsyncSession) -> dict[str, Any]:
    """Check database connectivity and latency."""
    try:
        start = time.perf_counter()
        await session.execute(text("SELECT 1"))
        latency = (time.perf_counter() - start) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(latency, 2),
        }
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        return {
            "status": "unhealthy",
            "message": str(e),
        }
