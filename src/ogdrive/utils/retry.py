"""
Bounded retry with backoff for async network calls.

The download ladder and the relay both wait ``attempt x step`` between
tries (LINEAR); EXPONENTIAL with full jitter is the default otherwise.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

T = TypeVar("T")

RetryListener = Callable[[int, Exception, float], None]


class BackoffStrategy(str, Enum):
    EXPONENTIAL = "exponential"
    LINEAR = "linear"


@dataclass
class RetryConfig:
    """
    How many times to try and how long to wait in between.

    ``retryable_errors`` filters by type; ``should_retry`` can still veto
    a matching instance, e.g. a confirmed not-found raised as a
    DownloadError.

    Example:
        ```python
        ladder_rung = RetryConfig(
            max_attempts=3,
            base_delay_ms=2000,
            backoff=BackoffStrategy.LINEAR,
            jitter=False,
            retryable_errors=(DownloadError,),
            should_retry=lambda e: e.is_retryable,
        )
        ```
    """

    max_attempts: int = 3
    """Total tries, the first one included."""

    base_delay_ms: int = 1000
    """Linear step, or the first exponential delay."""

    max_delay_ms: int = 30000
    """Upper bound on any single wait."""

    jitter: bool = True
    """Draw the wait uniformly from [0, delay]."""

    multiplier: float = 2.0
    """Growth factor for EXPONENTIAL backoff."""

    backoff: BackoffStrategy = BackoffStrategy.EXPONENTIAL

    retryable_errors: Tuple[Type[Exception], ...] = (Exception,)

    should_retry: Optional[Callable[[Exception], bool]] = None


def calculate_delay(retry_number: int, config: RetryConfig) -> float:
    """
    Seconds to wait before retry ``retry_number`` (0 for the first retry).

    LINEAR waits ``(n + 1) x base``; EXPONENTIAL waits ``base x multiplier**n``.
    Both are capped at ``max_delay_ms`` before jitter is applied.
    """
    if config.backoff is BackoffStrategy.LINEAR:
        wait_ms = config.base_delay_ms * (retry_number + 1)
    else:
        wait_ms = config.base_delay_ms * config.multiplier ** retry_number
    wait_ms = min(wait_ms, config.max_delay_ms)
    if config.jitter:
        wait_ms = random.uniform(0, wait_ms)
    return wait_ms / 1000


def _is_retryable(error: Exception, config: RetryConfig) -> bool:
    if not isinstance(error, config.retryable_errors):
        return False
    return config.should_retry is None or config.should_retry(error)


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    config: Optional[RetryConfig] = None,
    on_retry: Optional[RetryListener] = None,
) -> T:
    """
    Await ``fn()`` until it succeeds or the attempt budget runs out.

    Args:
        fn: Zero-argument coroutine factory, called once per attempt
        config: Retry policy (defaults to RetryConfig())
        on_retry: Called as ``on_retry(retry_number, error, delay_s)``
            before each wait; retry numbers start at 1

    Returns:
        The first successful result

    Raises:
        The first non-retryable error, or the last error once
        ``max_attempts`` tries have failed
    """
    config = config or RetryConfig()
    attempts = max(config.max_attempts, 1)

    for attempt in range(attempts):
        try:
            return await fn()
        except Exception as e:
            if not _is_retryable(e, config) or attempt == attempts - 1:
                raise
            delay = calculate_delay(attempt, config)
            if on_retry is not None:
                on_retry(attempt + 1, e, delay)
            await asyncio.sleep(delay)

    raise AssertionError("unreachable")
