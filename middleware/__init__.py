"""
Middleware components.

Request correlation and per-request session management for FastAPI
applications.
"""

from middleware.request_id import RequestIDMiddleware, get_request_id, request_id_var
from middleware.session import SessionMiddleware, default_commit_retry, get_session

__all__ = [
    "RequestIDMiddleware",
    "get_request_id",
    "request_id_var",
    "SessionMiddleware",
    "default_commit_retry",
    "get_session",
]
