"""
Retry executor - Run a coroutine factory with exponential backoff.

The executor is stateless: every call to ``with_retry`` is independent and
nothing is shared between calls.

Example:
    >>> async def fetch():
    ...     return await client.complete(system, prompt, options)
    >>>
    >>> text = await with_retry(fetch, max_retries=3, base_delay=1.0)
"""

from __future__ import annotations

import asyncio
import functools
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from .retry_utils import calculate_delay, is_retryable_error


T = TypeVar("T")

RetryCallback = Callable[[int, BaseException, float], None]

logger = logging.getLogger("RetryExecutor")


@dataclass(frozen=True)
class RetryConfig:
    """Retry policy for a class of operations."""

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    jitter: float = 0.1

    def as_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``with_retry``."""
        return {
            "max_retries": self.max_retries,
            "base_delay": self.base_delay,
            "max_delay": self.max_delay,
            "jitter": self.jitter,
        }


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 10.0,
    jitter: float = 0.1,
    is_retryable: Callable[[BaseException], bool] = is_retryable_error,
    on_retry: RetryCallback | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    rng: Callable[[], float] = random.random,
) -> T:
    """
    Run ``operation`` until it succeeds or retries are exhausted.

    At most ``max_retries + 1`` attempts are made. A failure on the last
    attempt, or one the classifier rejects, is re-raised unchanged and
    without sleeping.

    Args:
        operation: Zero-argument callable returning a fresh awaitable per attempt
        max_retries: Retries after the first attempt
        base_delay: Delay after the first failure, in seconds
        max_delay: Upper bound on the backoff before jitter
        jitter: Fraction of the delay added at random
        is_retryable: Classifier deciding whether an error is transient
        on_retry: Called as ``on_retry(retry_number, error, delay)`` before sleeping
        sleep: Awaitable sleep function
        rng: Source of uniform randoms in [0, 1)

    Returns:
        The operation's result
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            if attempt >= max_retries or not is_retryable(e):
                raise

            delay = calculate_delay(
                attempt,
                initial_delay=base_delay,
                max_delay=max_delay,
                jitter=jitter,
                retry_after=getattr(e, "retry_after", None),
                rng=rng,
            )

            logger.warning(
                f"Attempt {attempt + 1}/{max_retries + 1} failed: {e}; retrying in {delay:.2f}s"
            )
            if on_retry is not None:
                on_retry(attempt + 1, e, delay)

            await sleep(delay)
            attempt += 1


def make_retryable(
    config: RetryConfig | None = None,
    *,
    is_retryable: Callable[[BaseException], bool] = is_retryable_error,
    on_retry: RetryCallback | None = None,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator factory wrapping an async function in ``with_retry``.

    Example:
        >>> @make_retryable(RetryConfig(max_retries=2))
        ... async def list_teams():
        ...     ...
    """
    retry_config = config or RetryConfig()

    def decorator(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            return await with_retry(
                lambda: fn(*args, **kwargs),
                is_retryable=is_retryable,
                on_retry=on_retry,
                **retry_config.as_kwargs(),
            )

        return wrapper

    return decorator
