"""Tests for the retry executor and backoff calculation."""

from unittest.mock import AsyncMock, patch

import pytest

from brandpulse.core.exceptions import InvalidAnalysisResponse, ProviderError, ProviderTimeout
from brandpulse.gateway.retry import MAX_RETRY_DELAY, RetryExecutor, calculate_backoff


class TestCalculateBackoff:
    def test_exponential_growth_without_jitter(self):
        with patch("brandpulse.gateway.retry.random.uniform", return_value=0.0):
            assert calculate_backoff(1, 2.0) == 2.0
            assert calculate_backoff(2, 2.0) == 4.0
            assert calculate_backoff(3, 2.0) == 8.0

    def test_jitter_bounds(self):
        for _ in range(50):
            delay = calculate_backoff(1, 1.0)
            assert 1.0 <= delay <= 2.0

    def test_capped(self):
        assert calculate_backoff(10, 2.0) == MAX_RETRY_DELAY

    def test_custom_cap(self):
        assert calculate_backoff(5, 2.0, max_delay=3.0) == 3.0


class TestRetryExecutor:
    @pytest.mark.asyncio
    async def test_always_failing_runs_exactly_max_attempts(self):
        operation = AsyncMock(side_effect=ProviderTimeout(1.0))
        executor = RetryExecutor(max_attempts=3, base_delay=0.1, sleep=AsyncMock())

        with pytest.raises(ProviderTimeout):
            await executor.execute(operation, label="q1:generate")

        assert operation.await_count == 3

    @pytest.mark.asyncio
    async def test_succeeds_after_max_attempts_minus_one_failures(self):
        operation = AsyncMock(side_effect=[ProviderError("boom"), ProviderError("boom"), "ok"])
        executor = RetryExecutor(max_attempts=3, base_delay=0.1, sleep=AsyncMock())

        assert await executor.execute(operation) == "ok"
        assert operation.await_count == 3

    @pytest.mark.asyncio
    async def test_reraises_last_error(self):
        errors = [ProviderError("first"), ProviderError("second")]
        executor = RetryExecutor(max_attempts=2, base_delay=0.1, sleep=AsyncMock())

        with pytest.raises(ProviderError, match="second"):
            await executor.execute(AsyncMock(side_effect=errors))

    @pytest.mark.asyncio
    async def test_sleeps_between_attempts_only(self):
        sleep = AsyncMock()
        executor = RetryExecutor(max_attempts=3, base_delay=1.0, sleep=sleep)

        with patch("brandpulse.gateway.retry.random.uniform", return_value=0.5):
            with pytest.raises(ProviderError):
                await executor.execute(AsyncMock(side_effect=ProviderError("down")))

        assert [c.args[0] for c in sleep.await_args_list] == [1.5, 2.5]

    @pytest.mark.asyncio
    async def test_first_success_does_not_sleep(self):
        sleep = AsyncMock()
        executor = RetryExecutor(max_attempts=3, sleep=sleep)

        assert await executor.execute(AsyncMock(return_value=42)) == 42
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_matching_error_not_retried(self):
        operation = AsyncMock(side_effect=InvalidAnalysisResponse("empty response"))
        executor = RetryExecutor(max_attempts=3, retry_on=(ProviderError,), sleep=AsyncMock())

        with pytest.raises(InvalidAnalysisResponse):
            await executor.execute(operation)

        assert operation.await_count == 1

    @pytest.mark.asyncio
    async def test_per_call_override(self):
        operation = AsyncMock(side_effect=ProviderError("down"))
        executor = RetryExecutor(max_attempts=5, sleep=AsyncMock())

        with pytest.raises(ProviderError):
            await executor.execute(operation, max_attempts=2, base_delay=0.0)

        assert operation.await_count == 2

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            RetryExecutor(max_attempts=0)
