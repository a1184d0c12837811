"""
FastAPI Application for the Trendboard catalog service.

This module creates and configures the FastAPI application,
including middleware, error handlers, and route registration.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from trendboard.api.middleware.auth import UserIdentityMiddleware
from trendboard.api.routes import (
    bulk,
    catalog,
    categories,
    colors,
    health,
    metrics,
    sheets,
    trends,
    users,
)
from trendboard.core.config import settings
from trendboard.core.logging_setup import configure_logging
from trendboard.storage.database import async_session_maker, engine

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = structlog.get_logger(__name__)

API_VERSION = "1.0.0"

OPENAPI_TAGS = [
    {
        "name": "Health",
        "description": "Liveness/readiness and dependency health checks.",
    },
    {
        "name": "Bulk",
        "description": "Catalog-wide cleanup, export and import for admins.",
    },
    {
        "name": "Categories",
        "description": "Category tree management.",
    },
    {
        "name": "Trends",
        "description": "Trend CRUD and spreadsheet-backed analytics.",
    },
    {
        "name": "Colors",
        "description": "Color trend CRUD and spreadsheet-backed analytics.",
    },
    {
        "name": "Users",
        "description": "User listing and subscription extension.",
    },
    {
        "name": "Sheets",
        "description": "Google Sheets connection status for the current user.",
    },
    {
        "name": "Catalog",
        "description": "Subscription-gated public listings.",
    },
]


# =============================================================================
# Lifespan Management
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Manage application lifespan events.

    Startup:
    - Verify database connectivity
    - Open the shared outbound HTTP client

    Shutdown:
    - Close the HTTP client
    - Dispose database connections
    """
    logger.info(
        "Starting Trendboard API",
        environment=settings.ENVIRONMENT,
        api_version=API_VERSION,
    )

    try:
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))
        logger.info("Database connection verified")
    except Exception as e:
        logger.error("Database connection failed", error=str(e))
        raise

    app.state.http_client = httpx.AsyncClient()

    yield

    logger.info("Shutting down application")
    await app.state.http_client.aclose()
    await engine.dispose()


# =============================================================================
# Application Factory
# =============================================================================


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    configure_logging()

    app = FastAPI(
        title="Trendboard",
        description=(
            "Content management and analytics API for fashion trends.\n\n"
            "Identity header:\n"
            f"- `{settings.AUTH_USER_HEADER}`: signed-in user's email, set by the auth proxy."
        ),
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
    )

    app.add_middleware(UserIdentityMiddleware)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register exception handlers
    register_exception_handlers(app)

    # Register routes
    register_routes(app)

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers."""

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        _request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Report schema violations as 400 with itemized field errors."""
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "Validation failed",
                "details": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle uncaught exceptions."""
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
            },
        )


def register_routes(app: FastAPI) -> None:
    """Register API route handlers."""

    # Health check (no prefix)
    app.include_router(health.router, tags=["Health"])
    app.include_router(metrics.router, tags=["Health"])

    # API v1 routes
    api_v1_prefix = "/api/v1"
    admin_prefix = f"{api_v1_prefix}/admin"

    app.include_router(
        bulk.router,
        prefix=admin_prefix,
        tags=["Bulk"],
    )

    app.include_router(
        categories.router,
        prefix=f"{admin_prefix}/categories",
        tags=["Categories"],
    )

    app.include_router(
        trends.router,
        prefix=f"{admin_prefix}/trends",
        tags=["Trends"],
    )

    app.include_router(
        colors.router,
        prefix=f"{admin_prefix}/colors",
        tags=["Colors"],
    )

    app.include_router(
        users.router,
        prefix=f"{admin_prefix}/users",
        tags=["Users"],
    )

    app.include_router(
        sheets.router,
        prefix=f"{api_v1_prefix}/sheets",
        tags=["Sheets"],
    )

    app.include_router(
        catalog.router,
        prefix=api_v1_prefix,
        tags=["Catalog"],
    )


# =============================================================================
# Application Instance
# =============================================================================

app = create_app()


# =============================================================================
# Development Server
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "trendboard.api.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.API_RELOAD,
    )
