"""
Error handling module for the session service.

This module provides structured error handling with:
- ErrorCode enum for standardized error codes
- AppException and the session-specific exception classes
- Error response models for consistent API responses
- Exception handlers for FastAPI integration
"""

from errors.codes import ErrorCode
from errors.exceptions import (
    AppException,
    NotFetchedError,
    ReservedKeyError,
    StoreError,
    StoreNotInitializedError,
)
from errors.handlers import (
    ErrorResponse,
    handle_app_exception,
    handle_unexpected_exception,
    register_exception_handlers,
)

__all__ = [
    "ErrorCode",
    "AppException",
    "NotFetchedError",
    "ReservedKeyError",
    "StoreError",
    "StoreNotInitializedError",
    "ErrorResponse",
    "handle_app_exception",
    "handle_unexpected_exception",
    "register_exception_handlers",
]
