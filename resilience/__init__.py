"""
Resilience helpers.

Retry with exponential backoff, used to retry session commits.
"""

from resilience.retry import (
    RetryConfig,
    RetryExhaustedException,
    calculate_delay,
    retry_async,
)

__all__ = [
    "RetryConfig",
    "RetryExhaustedException",
    "calculate_delay",
    "retry_async",
]
