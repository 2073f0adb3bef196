"""
Exception handlers for FastAPI applications that use sessions.

A StoreError raised while fetching or committing a session becomes a
structured 503 response; anything unexpected becomes a generic 500 that
does not leak internal details. Every error body carries the request ID
so it can be matched with the service logs.
"""

import logging
import uuid
from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from errors.codes import ErrorCode
from errors.exceptions import AppException

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


class ErrorResponse(BaseModel):
    """Structured error response body."""
    error_code: str
    message: str
    details: Optional[dict[str, Any]] = None
    request_id: str


def get_request_id(request: Request) -> str:
    """Request ID set by RequestIDMiddleware, or a fresh UUID without it."""
    request_id = getattr(request.state, "request_id", None)
    return request_id if request_id is not None else str(uuid.uuid4())


def _error_response(
    request: Request,
    status_code: int,
    error_code: ErrorCode,
    message: str,
    details: Optional[dict[str, Any]] = None,
) -> JSONResponse:
    body = ErrorResponse(
        error_code=error_code.value,
        message=message,
        details=details,
        request_id=get_request_id(request),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def handle_app_exception(request: Request, exc: AppException) -> JSONResponse:
    """
    Convert an AppException into a structured JSON error response.

    The response uses the exception's status code and exposes its
    ``details``, which only ever hold operation names and error types.
    """
    logger.warning(
        "Session error: %s",
        exc.message,
        extra={"extra_data": {
            "error_code": exc.error_code.value,
            "status_code": exc.status_code,
            "details": exc.details,
            "path": request.url.path,
            "method": request.method,
        }},
    )
    return _error_response(request, exc.status_code, exc.error_code, exc.message, exc.details)


async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    """Log an unexpected exception and return a generic 500 response."""
    logger.error(
        "Unexpected error occurred",
        extra={"extra_data": {
            "error_code": ErrorCode.INTERNAL_ERROR.value,
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
        }},
        exc_info=exc,
    )
    return _error_response(request, 500, ErrorCode.INTERNAL_ERROR, GENERIC_ERROR_MESSAGE)


def register_exception_handlers(app) -> None:
    """Register the session error handlers on a FastAPI application."""
    app.add_exception_handler(AppException, handle_app_exception)
    app.add_exception_handler(Exception, handle_unexpected_exception)
