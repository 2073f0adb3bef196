"""
Error code catalog for the session service.

This module defines the error codes raised by the session layer and its
stores, together with the HTTP status code each one maps to when it
escapes a request handler.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """
    Enumeration of all error codes used by the session layer.

    Each error code maps to a specific HTTP status code:
    - Client errors (4xx): the request tried to write a managed key
    - Sequencing errors (5xx): the caller used a session before fetching it
    - Store errors (5xx): the backing store is unusable or failing
    - Internal errors (5xx): anything else
    """

    # Client errors
    SESSION_RESERVED_KEY = "SESSION_RESERVED_KEY"
    """Caller tried to set _createdAt or _updatedAt (HTTP 400)"""

    # Sequencing errors
    SESSION_NOT_FETCHED = "SESSION_NOT_FETCHED"
    """Session mutated before fetch() was called (HTTP 500)"""

    # Store errors
    STORE_NOT_INITIALIZED = "STORE_NOT_INITIALIZED"
    """Store used without a backing cache (HTTP 503)"""

    SESSION_STORE_UNAVAILABLE = "SESSION_STORE_UNAVAILABLE"
    """Redis or memory store read/write failed (HTTP 503)"""

    # Internal errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    """Unexpected server error (HTTP 500)"""


# Mapping of error codes to their default HTTP status codes
ERROR_CODE_STATUS_MAP: dict[ErrorCode, int] = {
    ErrorCode.SESSION_RESERVED_KEY: 400,
    ErrorCode.SESSION_NOT_FETCHED: 500,
    ErrorCode.STORE_NOT_INITIALIZED: 503,
    ErrorCode.SESSION_STORE_UNAVAILABLE: 503,
    ErrorCode.INTERNAL_ERROR: 500,
}


def get_default_status_code(error_code: ErrorCode) -> int:
    """
    Get the default HTTP status code for an error code.

    Args:
        error_code: The error code to look up

    Returns:
        The default HTTP status code for the error code
    """
    return ERROR_CODE_STATUS_MAP.get(error_code, 500)
