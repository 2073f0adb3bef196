"""
Request ID middleware for log correlation.

Takes the request ID from the X-Request-ID header or generates one, makes
it available to log records and error responses, and echoes it back.
"""

import uuid
from contextvars import ContextVar
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Read by telemetry.JSONFormatter for every log record.
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that tags each request with an ID.

    The ID is stored in ``request.state.request_id`` for error handlers,
    in ``request_id_var`` for logging, and in the X-Request-ID response
    header.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            request_id_var.reset(token)


def get_request_id() -> str:
    """Return the current request ID, or ``""`` outside a request."""
    return request_id_var.get()
