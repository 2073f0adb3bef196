"""
Retry with exponential backoff.

Session.commit() never retries on its own; a failed commit leaves the
session modified so calling it again is safe. retry_async() is how
callers such as SessionMiddleware do that.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """
    Retry behaviour.

    Attributes:
        max_attempts: Total number of calls, including the first.
        initial_delay: Seconds to wait after the first failure.
        exponential_base: Multiplier applied to the delay per attempt.
        max_delay: Upper bound for the delay, or None for no bound.
        retryable_exceptions: Exceptions that trigger another attempt.
            Anything else propagates immediately.
    """
    max_attempts: int = 3
    initial_delay: float = 1.0
    exponential_base: float = 2.0
    max_delay: Optional[float] = None
    retryable_exceptions: Tuple[Type[Exception], ...] = field(
        default_factory=lambda: (Exception,)
    )


class RetryExhaustedException(Exception):
    """Raised when every attempt failed. Wraps the last failure."""

    def __init__(
        self,
        message: str,
        attempts: int,
        last_exception: Exception,
        operation_name: Optional[str] = None
    ):
        self.attempts = attempts
        self.last_exception = last_exception
        self.operation_name = operation_name
        super().__init__(message)


def calculate_delay(
    attempt: int,
    initial_delay: float,
    exponential_base: float,
    max_delay: Optional[float] = None
) -> float:
    """
    Delay before the retry following ``attempt`` (0-indexed).

    ``initial_delay * exponential_base ** attempt``, capped at ``max_delay``.
    """
    delay = initial_delay * (exponential_base ** attempt)
    if max_delay is not None:
        delay = min(delay, max_delay)
    return delay


async def retry_async(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    config: Optional[RetryConfig] = None,
    operation_name: Optional[str] = None,
    **kwargs: Any
) -> T:
    """
    Await ``func(*args, **kwargs)`` until it succeeds or attempts run out.

    Example:
        await retry_async(
            session.commit,
            config=RetryConfig(max_attempts=3, initial_delay=0.05),
            operation_name="session.commit",
        )

    Raises:
        RetryExhaustedException: When every attempt raised a retryable
            exception.
    """
    cfg = config or RetryConfig()
    op_name = operation_name or getattr(func, "__name__", "operation")
    attempts = max(cfg.max_attempts, 1)

    for attempt in range(attempts):
        try:
            return await func(*args, **kwargs)
        except cfg.retryable_exceptions as e:
            if attempt == attempts - 1:
                logger.error(
                    "Operation '%s' failed after %d attempt(s): %s",
                    op_name,
                    attempts,
                    e,
                    extra={"extra_data": {
                        "operation": op_name,
                        "attempts": attempts,
                        "error_type": type(e).__name__,
                    }},
                )
                raise RetryExhaustedException(
                    f"Operation '{op_name}' failed after {attempts} attempts",
                    attempts=attempts,
                    last_exception=e,
                    operation_name=op_name
                ) from e

            delay = calculate_delay(
                attempt, cfg.initial_delay, cfg.exponential_base, cfg.max_delay
            )
            logger.warning(
                "Attempt %d/%d of '%s' failed with %s, retrying in %.2fs",
                attempt + 1,
                attempts,
                op_name,
                type(e).__name__,
                delay,
                extra={"extra_data": {
                    "operation": op_name,
                    "attempt": attempt + 1,
                    "delay_seconds": delay,
                }},
            )
            await asyncio.sleep(delay)

    # Unreachable: the loop either returns or raises.
    raise AssertionError("retry loop exited without a result")
