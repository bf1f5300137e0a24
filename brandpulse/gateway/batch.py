"""Concurrency-bounded batch runners.

Both runners share one contract:
  - results come back in input order (slots assigned by index)
  - ``on_progress(completed, total)`` fires after every item, monotonically
  - a processor exception propagates to the caller; callers that need
    partial-failure tolerance catch inside the processor

WindowBatchRunner starts ``limit`` items together and waits for the whole
window to settle before starting the next one. PoolBatchRunner keeps
``limit`` permits busy at all times, so one slow item no longer holds back
the rest of its window.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Generic, TypeVar

from brandpulse.analysis.types import BatchMode

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Processor = Callable[[T, int], Awaitable[R]]
ProgressCallback = Callable[[int, int], None]


class _Progress:
    def __init__(self, total: int, callback: ProgressCallback | None):
        self.total = total
        self.completed = 0
        self._callback = callback

    def advance(self) -> None:
        self.completed += 1
        if self._callback is not None:
            self._callback(self.completed, self.total)


class WindowBatchRunner(Generic[T, R]):
    def __init__(self, concurrency_limit: int):
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be >= 1")
        self.concurrency_limit = concurrency_limit

    async def run_all(
        self,
        items: Sequence[T],
        processor: Processor,
        on_progress: ProgressCallback | None = None,
    ) -> list[R]:
        total = len(items)
        progress = _Progress(total, on_progress)
        results: list[R] = []

        async def _run(item: T, index: int) -> R:
            try:
                return await processor(item, index)
            finally:
                progress.advance()

        for start in range(0, total, self.concurrency_limit):
            window = items[start : start + self.concurrency_limit]
            logger.debug(
                "Window %d-%d of %d started",
                start + 1,
                start + len(window),
                total,
            )
            tasks = [asyncio.create_task(_run(item, start + i)) for i, item in enumerate(window)]
            try:
                # gather keeps argument order, so slots line up with indices
                results.extend(await asyncio.gather(*tasks))
            except BaseException:
                for task in tasks:
                    task.cancel()
                raise

        return results


class PoolBatchRunner(Generic[T, R]):
    def __init__(self, concurrency_limit: int):
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be >= 1")
        self.concurrency_limit = concurrency_limit

    async def run_all(
        self,
        items: Sequence[T],
        processor: Processor,
        on_progress: ProgressCallback | None = None,
    ) -> list[R]:
        total = len(items)
        progress = _Progress(total, on_progress)
        semaphore = asyncio.Semaphore(self.concurrency_limit)

        async def _run(item: T, index: int) -> R:
            async with semaphore:
                try:
                    return await processor(item, index)
                finally:
                    progress.advance()

        tasks = [asyncio.create_task(_run(item, i)) for i, item in enumerate(items)]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            raise


def make_batch_runner(mode: BatchMode | str, concurrency_limit: int) -> WindowBatchRunner | PoolBatchRunner:
    if BatchMode(mode) == BatchMode.POOL:
        return PoolBatchRunner(concurrency_limit)
    return WindowBatchRunner(concurrency_limit)
