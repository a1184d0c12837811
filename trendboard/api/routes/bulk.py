"""
Bulk catalog operations for admins.

Cleanup, export and import share one response envelope:
`{success, error, stats}` plus `data` for export.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from trendboard.api.deps import require_admin
from trendboard.core.bulk_cleanup import run_cleanup
from trendboard.core.bulk_export import export_all
from trendboard.core.bulk_import import ImportValidationError, import_all
from trendboard.core.bulk_payloads import BulkDocument, CleanupOptions
from trendboard.core.bulk_transaction import BulkOperationInProgressError
from trendboard.storage.database import get_session
from trendboard.storage.models import User

logger = structlog.get_logger(__name__)

router = APIRouter()


def _failure_response(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": message, "stats": None},
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/bulk-cleanup", response_model=None)
async def bulk_cleanup(
    options: CleanupOptions,
    session: AsyncSession = Depends(get_session),
    admin: User = Depends(require_admin),
) -> dict[str, Any] | JSONResponse:
    """
    Delete categories, trends and colors in one transaction.

    Returns the number of rows deleted per entity type.
    """
    try:
        stats = await run_cleanup(session, options)
    except BulkOperationInProgressError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except Exception as exc:
        await session.rollback()
        logger.error(
            "Bulk cleanup failed",
            admin_email=admin.email,
            error=str(exc),
            exc_info=True,
        )
        return _failure_response(str(exc) or exc.__class__.__name__)

    logger.info("Bulk cleanup completed", admin_email=admin.email, **stats.as_dict())
    return {"success": True, "error": None, "stats": stats.as_dict()}


@router.get("/bulk-export", response_model=None)
async def bulk_export(
    session: AsyncSession = Depends(get_session),
    admin: User = Depends(require_admin),
) -> dict[str, Any] | JSONResponse:
    """Export the whole catalog with slug references and day-precision dates."""
    try:
        document = await export_all(session)
    except Exception as exc:
        logger.error(
            "Bulk export failed",
            admin_email=admin.email,
            error=str(exc),
            exc_info=True,
        )
        return _failure_response(str(exc) or exc.__class__.__name__)

    return {
        "success": True,
        "error": None,
        "data": document.model_dump(mode="json", by_alias=True),
        "stats": document.stats().as_dict(),
    }


@router.post("/bulk-import", response_model=None)
async def bulk_import(
    document: BulkDocument,
    session: AsyncSession = Depends(get_session),
    admin: User = Depends(require_admin),
) -> dict[str, Any] | JSONResponse:
    """
    Import an export document.

    Categories upsert by slug, trends by title within their category and
    colors by name.
    """
    try:
        stats = await import_all(session, document)
    except ImportValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except BulkOperationInProgressError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except Exception as exc:
        await session.rollback()
        logger.error(
            "Bulk import failed",
            admin_email=admin.email,
            error=str(exc),
            exc_info=True,
        )
        return _failure_response(str(exc) or exc.__class__.__name__)

    logger.info("Bulk import completed", admin_email=admin.email, **stats.as_dict())
    return {"success": True, "error": None, "stats": stats.as_dict()}
