"""
Async infrastructure - Retry executor and backoff helpers.
"""

from .retry import RetryCallback, RetryConfig, make_retryable, with_retry
from .retry_utils import (
    RETRYABLE_STATUS_CODES,
    calculate_delay,
    get_retry_after,
    is_retryable_error,
)


__all__ = [
    "RETRYABLE_STATUS_CODES",
    "RetryCallback",
    "RetryConfig",
    "calculate_delay",
    "get_retry_after",
    "is_retryable_error",
    "make_retryable",
    "with_retry",
]
