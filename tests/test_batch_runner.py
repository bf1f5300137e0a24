"""Tests for the window and pool batch runners."""

import asyncio
import random

import pytest

from brandpulse.gateway.batch import PoolBatchRunner, WindowBatchRunner, make_batch_runner


class _Tracker:
    """Counts processors in flight and remembers the peak."""

    def __init__(self):
        self.in_flight = 0
        self.peak = 0
        self.started: list[int] = []

    async def process(self, item, index):
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        self.started.append(index)
        try:
            await asyncio.sleep(random.uniform(0, 0.01))
            return item * 10
        finally:
            self.in_flight -= 1


RUNNERS = [WindowBatchRunner, PoolBatchRunner]


@pytest.mark.parametrize("runner_cls", RUNNERS)
class TestBatchRunnerContract:
    @pytest.mark.asyncio
    async def test_preserves_input_order(self, runner_cls):
        tracker = _Tracker()
        results = await runner_cls(3).run_all(list(range(10)), tracker.process)
        assert results == [i * 10 for i in range(10)]

    @pytest.mark.asyncio
    async def test_never_exceeds_concurrency_limit(self, runner_cls):
        tracker = _Tracker()
        await runner_cls(4).run_all(list(range(17)), tracker.process)
        assert tracker.peak <= 4
        assert tracker.peak == 4

    @pytest.mark.asyncio
    async def test_blocked_processors_capped(self, runner_cls):
        release = asyncio.Event()
        in_flight = 0
        peak = 0

        async def blocked(item, index):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await release.wait()
            in_flight -= 1
            return item

        task = asyncio.create_task(runner_cls(3).run_all(list(range(8)), blocked))
        for _ in range(5):
            await asyncio.sleep(0)
        assert in_flight == 3

        release.set()
        assert await task == list(range(8))
        assert peak == 3

    @pytest.mark.asyncio
    async def test_progress_monotonic(self, runner_cls):
        progress: list[tuple[int, int]] = []
        tracker = _Tracker()
        await runner_cls(2).run_all(list(range(5)), tracker.process, lambda d, t: progress.append((d, t)))
        assert progress == [(i, 5) for i in range(1, 6)]

    @pytest.mark.asyncio
    async def test_failure_propagates(self, runner_cls):
        async def failing(item, index):
            if index == 2:
                raise RuntimeError("item 2 failed")
            return item

        with pytest.raises(RuntimeError, match="item 2 failed"):
            await runner_cls(2).run_all(list(range(5)), failing)

    @pytest.mark.asyncio
    async def test_failure_cancels_running_siblings(self, runner_cls):
        finished: list[str] = []

        async def process(item, index):
            if item == "bad":
                raise RuntimeError("bad item")
            await asyncio.sleep(0.05)
            finished.append(item)
            return item

        with pytest.raises(RuntimeError, match="bad item"):
            await runner_cls(2).run_all(["bad", "slow"], process)
        await asyncio.sleep(0.1)

        assert finished == []

    @pytest.mark.asyncio
    async def test_empty_input(self, runner_cls):
        assert await runner_cls(2).run_all([], _Tracker().process) == []

    @pytest.mark.asyncio
    async def test_processor_receives_index(self, runner_cls):
        async def echo_index(item, index):
            return (item, index)

        results = await runner_cls(2).run_all(["a", "b", "c"], echo_index)
        assert results == [("a", 0), ("b", 1), ("c", 2)]


class TestWindowBatchRunner:
    @pytest.mark.asyncio
    async def test_next_window_waits_for_slow_item(self):
        release_slow = asyncio.Event()
        started: list[int] = []

        async def process(item, index):
            started.append(index)
            if index == 0:
                await release_slow.wait()
            return item

        task = asyncio.create_task(WindowBatchRunner(2).run_all(list(range(4)), process))
        for _ in range(5):
            await asyncio.sleep(0)
        # Item 1 finished but the second window must not start until item 0 settles
        assert started == [0, 1]

        release_slow.set()
        assert await task == [0, 1, 2, 3]
        assert started == [0, 1, 2, 3]


class TestPoolBatchRunner:
    @pytest.mark.asyncio
    async def test_free_permit_refills_while_slow_item_runs(self):
        release_slow = asyncio.Event()
        started: list[int] = []

        async def process(item, index):
            started.append(index)
            if index == 0:
                await release_slow.wait()
            return item

        task = asyncio.create_task(PoolBatchRunner(2).run_all(list(range(4)), process))
        for _ in range(10):
            await asyncio.sleep(0)
        assert sorted(started) == [0, 1, 2, 3]

        release_slow.set()
        assert await task == [0, 1, 2, 3]


class TestMakeBatchRunner:
    def test_window_default(self):
        assert isinstance(make_batch_runner("window", 3), WindowBatchRunner)

    def test_pool(self):
        runner = make_batch_runner("pool", 5)
        assert isinstance(runner, PoolBatchRunner)
        assert runner.concurrency_limit == 5

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            make_batch_runner("window", 0)
