"""Exception handlers rendering every failure as the same JSON error body.

    {"error": {"code": ..., "message": ..., "request_id": ..., "details": {...}}}

``AppError`` subclasses declare their own HTTP status; anything else is an
unexpected failure and becomes a generic 500 with no internals exposed.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.errors import AppError, RateLimitedError
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)


def status_code_for(exc: AppError) -> int:
    return exc.status_code


def error_body(code: str, message: str, details: dict | None = None) -> dict:
    error = {"code": code, "message": message, "request_id": get_request_id()}
    if details:
        error["details"] = details
    return {"error": error}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render a domain error with its declared status.

    Client errors are logged at info level; 5xx (upstream or store trouble)
    at warning, since they point at a dependency rather than the caller.
    """
    status_code = status_code_for(exc)
    level = logging.WARNING if status_code >= 500 else logging.INFO
    logger.log(
        level,
        "http.app_error",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "request_path": request.url.path,
        },
    )

    return JSONResponse(
        status_code=status_code,
        content=error_body(exc.code, exc.message, exc.details),
        headers=exc.headers if isinstance(exc, RateLimitedError) else None,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: log everything, reveal nothing."""
    logger.error(
        "http.unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "request_path": request.url.path,
            "request_method": request.method,
        },
        exc_info=exc,
    )

    return JSONResponse(
        status_code=500,
        content=error_body(
            "internal_server_error",
            "An unexpected error occurred. Please try again later.",
        ),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
