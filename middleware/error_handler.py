"""Exception handlers rendering errors in the API's JSON envelope."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from services.errors import (
    InvalidSearchTermError,
    SessionNotReadyError,
    UpstreamError,
    ZapGroupsError,
)

LOGGER = logging.getLogger(__name__)

GENERIC_ERROR = "Internal server error"


def _envelope(status_code: int, message: str, error: str | None = None, headers=None) -> JSONResponse:
    content = {"success": False, "message": message, "data": None}
    if error is not None:
        content["error"] = error
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_error_handlers(app: FastAPI, development: bool = False) -> None:
    """Attach handlers to ``app``.

    Args:
        app: Application to configure.
        development: When True, 500 responses include the exception text.
    """

    def _server_error(detail: str) -> JSONResponse:
        return _envelope(500, GENERIC_ERROR, detail if development else "Something went wrong")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code >= 500:
            LOGGER.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
            return _server_error(str(exc.detail))
        return _envelope(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _envelope(400, "Invalid data", str(exc))

    @app.exception_handler(SessionNotReadyError)
    async def not_ready_handler(request: Request, exc: SessionNotReadyError):
        return _envelope(400, str(exc))

    @app.exception_handler(InvalidSearchTermError)
    async def invalid_search_handler(request: Request, exc: InvalidSearchTermError):
        return _envelope(400, str(exc))

    @app.exception_handler(UpstreamError)
    async def upstream_handler(request: Request, exc: UpstreamError):
        LOGGER.error("%s %s failed upstream: %s (%r)", request.method, request.url.path, exc, exc.cause)
        return _server_error(str(exc))

    @app.exception_handler(ZapGroupsError)
    async def service_error_handler(request: Request, exc: ZapGroupsError):
        LOGGER.error("%s %s failed: %s", request.method, request.url.path, exc)
        return _server_error(str(exc))
