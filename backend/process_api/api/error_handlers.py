"""Error Handlers — global exception handlers for the process API.

Invariants:
    - ProcessApiError → {"error": public_message} with the error's HTTP status
    - Router HTTP errors (404, 405) → {"error": "<reason phrase>"}, headers kept (Allow)
    - Exception (catch-all) → 500 {"error": "internal"}, never leaks internal details

Design Decisions:
    - Three-layer handler: domain (ProcessApiError), router (HTTPException), catch-all
    - Extracted from main.py to keep the app factory small
"""

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from process_api.core.errors import ProcessApiError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_domain_error_handler(app)
    _register_http_error_handler(app)
    _register_generic_error_handler(app)


def _register_domain_error_handler(app: FastAPI) -> None:
    """Register process-api domain error handler."""

    @app.exception_handler(ProcessApiError)
    async def domain_error_handler(request: Request, exc: ProcessApiError):
        logger.error(
            f"ProcessApiError: {exc.message}",
            extra={"error": exc.code, "path": request.url.path},
        )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_http_error_handler(app: FastAPI) -> None:
    """Register router-level HTTP error handler (unknown path, wrong method)."""

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        logger.debug(
            f"HTTP {exc.status_code} on {request.method} {request.url.path}",
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": _reason_phrase(exc.status_code)},
            headers=getattr(exc, "headers", None),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all that never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "internal"},
        )


def _reason_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase.lower()
    except ValueError:
        return "error"
