"""Retry executor with exponential backoff and jitter.

Backoff strategy:
  delay = min(base * 2^(attempt-1) + jitter, max_delay)
  jitter = random(0, 1s)

The executor knows nothing about the operation it wraps. Callers narrow
what gets retried with ``retry_on``; anything else propagates at once.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from brandpulse.core.metrics import RETRY_ATTEMPTS

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_RETRY_DELAY = 10.0  # seconds
MAX_JITTER = 1.0  # seconds


def calculate_backoff(
    attempt: int,
    base_delay: float,
    max_delay: float = MAX_RETRY_DELAY,
    max_jitter: float = MAX_JITTER,
) -> float:
    """Delay in seconds before the attempt following ``attempt`` (1-based)."""
    exponential = base_delay * (2 ** max(attempt - 1, 0))
    jitter = random.uniform(0, max_jitter)
    return min(exponential + jitter, max_delay)


class RetryExecutor:
    """Runs an async operation up to ``max_attempts`` times.

    Usage:
        executor = RetryExecutor(max_attempts=3, base_delay=2.0)
        text = await executor.execute(lambda: client.complete(...), label="q1:generate")
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 2.0,
        max_delay: float = MAX_RETRY_DELAY,
        retry_on: tuple[type[BaseException], ...] = (Exception,),
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.retry_on = retry_on
        self._sleep = sleep

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        label: str = "operation",
        max_attempts: int | None = None,
        base_delay: float | None = None,
    ) -> T:
        attempts = max_attempts if max_attempts is not None else self.max_attempts
        base = base_delay if base_delay is not None else self.base_delay

        for attempt in range(1, attempts + 1):
            logger.debug("[%s] attempt %d/%d", label, attempt, attempts)
            try:
                result = await operation()
            except self.retry_on as e:
                if attempt >= attempts:
                    logger.warning("[%s] failed after %d attempts: %s", label, attempts, e)
                    raise
                delay = calculate_backoff(attempt, base, self.max_delay)
                RETRY_ATTEMPTS.labels(label=label.rsplit(":", 1)[-1]).inc()
                logger.info(
                    "[%s] attempt %d/%d failed (%s: %s), retrying in %.1fs",
                    label,
                    attempt,
                    attempts,
                    type(e).__name__,
                    e,
                    delay,
                )
                await self._sleep(delay)
            else:
                if attempt > 1:
                    logger.info("[%s] succeeded on attempt %d/%d", label, attempt, attempts)
                return result

        raise AssertionError("unreachable")  # loop always returns or raises
