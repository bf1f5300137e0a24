"""Tests for the Celery analysis task body."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from brandpulse.cache.gateway import CacheGateway
from brandpulse.cache.memory import InMemoryResponseCache
from brandpulse.core.exceptions import InvalidRunError
from brandpulse.services.analysis_store import get_analysis
from brandpulse.tasks.analysis_tasks import _run_and_store
from helpers import ANALYSIS_MODEL, GENERATION_MODEL, ScriptedProvider

CONFIGURATION = {
    "target_brands": ["Occident"],
    "competitor_brands": ["Mapfre"],
    "generation_model": GENERATION_MODEL,
    "analysis_model": ANALYSIS_MODEL,
    "cache_enabled": True,
}

QUESTIONS = [{"id": "q1", "question": "What is the best home insurance in Spain?", "category": "home"}]


@pytest.fixture
def cache_backend() -> InMemoryResponseCache:
    backend = InMemoryResponseCache()
    backend.aclose = AsyncMock()
    return backend


@pytest.fixture
def task_engine() -> MagicMock:
    engine = MagicMock()
    engine.dispose = AsyncMock()
    return engine


@pytest.fixture
def patched_task(cache_backend, task_engine, session_factory):
    with (
        patch("brandpulse.core.dependencies.build_cache_gateway", return_value=CacheGateway(cache_backend)),
        patch("brandpulse.gateway.provider.ChatCompletionClient", return_value=ScriptedProvider()),
        patch(
            "brandpulse.tasks.analysis_tasks._make_session_factory",
            return_value=(task_engine, session_factory),
        ),
    ):
        yield


@pytest.mark.asyncio
async def test_run_is_stored_and_resources_released(patched_task, cache_backend, task_engine, session_factory):
    summary = await _run_and_store(QUESTIONS, CONFIGURATION)

    assert summary["status"] == "completed"
    assert summary["questions"] == 1
    async with session_factory() as db:
        stored = await get_analysis(db, summary["analysis_id"])
    assert stored["analysisId"] == summary["analysis_id"]
    cache_backend.aclose.assert_awaited_once()
    task_engine.dispose.assert_awaited_once()


@pytest.mark.asyncio
async def test_resources_released_when_run_fails(patched_task, cache_backend, task_engine):
    with pytest.raises(InvalidRunError):
        await _run_and_store([], CONFIGURATION)

    cache_backend.aclose.assert_awaited_once()
    task_engine.dispose.assert_awaited_once()


@pytest.mark.asyncio
async def test_gateway_close_failure_is_logged_not_raised(cache_backend):
    cache_backend.aclose.side_effect = RuntimeError("connection reset")

    await CacheGateway(cache_backend).aclose()

    cache_backend.aclose.assert_awaited_once()
