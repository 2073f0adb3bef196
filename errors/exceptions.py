"""
Exception classes for the session service.

AppException carries a structured error code and HTTP status. The
session-specific subclasses let callers tell a forgotten fetch() apart
from a failing store with a plain ``except`` clause.
"""

from typing import Any, Optional

from errors.codes import ErrorCode, get_default_status_code


class AppException(Exception):
    """
    Base class for session errors that map onto an HTTP response.

    Attributes:
        error_code: Stable machine-readable code.
        message: Human-readable description, safe to show to clients.
        status_code: HTTP status; defaults to the code's entry in
            ERROR_CODE_STATUS_MAP.
        details: Extra context such as the failing store operation.
    """

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None
    ):
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.status_code = status_code or get_default_status_code(error_code)
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"error_code": self.error_code.value, "message": self.message}
        if self.details is not None:
            data["details"] = self.details
        return data

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(error_code={self.error_code.value!r}, "
            f"message={self.message!r}, status_code={self.status_code}, "
            f"details={self.details!r})"
        )


class NotFetchedError(AppException):
    """Raised when a session is mutated before fetch() has succeeded."""

    def __init__(
        self,
        message: str = "Session has not been fetched",
        details: Optional[dict[str, Any]] = None
    ):
        super().__init__(
            error_code=ErrorCode.SESSION_NOT_FETCHED,
            message=message,
            details=details
        )


class ReservedKeyError(AppException):
    """Raised when a caller tries to write a key the session manages itself."""

    def __init__(self, keys: list[str]):
        self.keys = sorted(keys)
        super().__init__(
            error_code=ErrorCode.SESSION_RESERVED_KEY,
            message=f"{', '.join(self.keys)} cannot be set by callers",
            details={"keys": self.keys}
        )


class StoreNotInitializedError(AppException):
    """Raised by a store whose backing cache was never built or was released."""

    def __init__(
        self,
        message: str = "Session store is not initialized",
        details: Optional[dict[str, Any]] = None
    ):
        super().__init__(
            error_code=ErrorCode.STORE_NOT_INITIALIZED,
            message=message,
            details=details
        )


class StoreError(AppException):
    """
    Raised when a store read, write or delete fails.

    The backend exception is chained as ``__cause__`` so callers that
    need the original error can still get at it.
    """

    def __init__(
        self,
        message: str = "Session store unavailable",
        details: Optional[dict[str, Any]] = None
    ):
        super().__init__(
            error_code=ErrorCode.SESSION_STORE_UNAVAILABLE,
            message=message,
            details=details
        )
