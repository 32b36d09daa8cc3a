"""
Retry utilities - Backoff calculation and error classification.

Shared by the retry executor and the HTTP clients.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Callable, Mapping
from typing import Any


# HTTP status codes that indicate a transient failure
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

# Lower-cased message fragments that indicate a transient failure
RETRYABLE_MESSAGE_FRAGMENTS = (
    "rate limit",
    "429",
    "timeout",
    "timed out",
    "500",
    "502",
    "503",
    "504",
    "econnreset",
    "econnrefused",
    "network",
    "socket",
    "temporarily unavailable",
    "try again",
)


def calculate_delay(
    attempt: int,
    initial_delay: float = 1.0,
    max_delay: float = 10.0,
    backoff_factor: float = 2.0,
    jitter: float = 0.1,
    retry_after: float | None = None,
    rng: Callable[[], float] = random.random,
) -> float:
    """
    Calculate the delay before the next attempt.

    The exponential delay ``initial_delay * backoff_factor ** attempt`` is
    capped at ``max_delay``, then up to ``jitter`` of it is added on top.
    A server-provided ``retry_after`` takes precedence over the backoff.

    Args:
        attempt: Zero-based index of the attempt that just failed
        initial_delay: Delay after the first failure, in seconds
        max_delay: Upper bound on the backoff before jitter
        backoff_factor: Multiplier applied per attempt
        jitter: Fraction of the delay added at random (0.1 = up to 10%)
        retry_after: Seconds requested by the server, if any
        rng: Source of uniform randoms in [0, 1)

    Returns:
        Delay in seconds
    """
    if retry_after is not None and retry_after > 0:
        return float(retry_after)

    delay = min(initial_delay * (backoff_factor**attempt), max_delay)
    if jitter > 0:
        delay += delay * jitter * rng()
    return delay


def get_retry_after(response: Any) -> float | None:
    """
    Read the Retry-After header from a response.

    Returns:
        Seconds to wait, or None if the header is missing or not numeric
    """
    headers: Mapping[str, str] | None = getattr(response, "headers", None)
    if not headers:
        return None

    value = headers.get("Retry-After")
    if value is None:
        return None

    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def is_retryable_error(error: BaseException) -> bool:
    """
    Default classifier for the retry executor.

    Order of precedence:
    1. An explicit ``retryable`` attribute on the exception
    2. An HTTP status code in ``status_code`` or ``status``
    3. Timeout and connection exception types
    4. Known transient fragments in the message
    """
    retryable = getattr(error, "retryable", None)
    if retryable is not None:
        return bool(retryable)

    for attr in ("status_code", "status"):
        status = getattr(error, attr, None)
        if isinstance(status, int) and not isinstance(status, bool):
            return status in RETRYABLE_STATUS_CODES

    if isinstance(error, (asyncio.TimeoutError, TimeoutError, ConnectionError)):
        return True

    message = str(error).lower()
    return any(fragment in message for fragment in RETRYABLE_MESSAGE_FRAGMENTS)
