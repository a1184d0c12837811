"""
Identity middleware.

Sign-in happens in an upstream auth proxy, which forwards the signed-in
user's email in a trusted header. This middleware only normalizes that
header onto `request.state` and rejects anonymous calls to protected
prefixes before any route code runs.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from http import HTTPStatus
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from trendboard.core.config import settings


class UserIdentityMiddleware(BaseHTTPMiddleware):
    """Attach the forwarded user email and guard protected prefixes."""

    def __init__(
        self,
        app: Any,
        *,
        header_name: str | None = None,
        protected_prefixes: tuple[str, ...] = (
            "/api/v1/admin",
            "/api/v1/sheets",
        ),
    ) -> None:
        super().__init__(app)
        self._header_name = header_name or settings.AUTH_USER_HEADER
        self._protected_prefixes = protected_prefixes

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        email = request.headers.get(self._header_name, "").strip().lower()
        request.state.user_email = email or None

        path = request.url.path
        if email or not any(path.startswith(prefix) for prefix in self._protected_prefixes):
            return await call_next(request)

        return self._error_response(
            status_code=HTTPStatus.UNAUTHORIZED,
            message="Unauthorized",
        )

    @staticmethod
    def _error_response(*, status_code: HTTPStatus, message: str) -> JSONResponse:
        return JSONResponse(
            status_code=int(status_code),
            content={
                "success": False,
                "error": message,
            },
        )
