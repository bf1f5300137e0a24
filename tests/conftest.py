"""Shared fixtures: run configurations, questions, scripted providers, API client."""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from brandpulse.analysis.orchestrator import AnalysisOrchestrator
from brandpulse.analysis.types import Question, RunConfiguration
from brandpulse.cache.gateway import CacheGateway
from brandpulse.cache.memory import InMemoryResponseCache
from brandpulse.core.dependencies import get_cache_gateway, get_orchestrator
from brandpulse.db.base import Base
from brandpulse.db.postgres import get_db
from brandpulse.main import app
from helpers import ANALYSIS_MODEL, GENERATION_MODEL, ScriptedProvider


@pytest.fixture
def run_config() -> RunConfiguration:
    return RunConfiguration(
        target_brands=("Occident",),
        competitor_brands=("Mapfre", "AXA"),
        priority_sources=("Rastreator",),
        generation_model=GENERATION_MODEL,
        analysis_model=ANALYSIS_MODEL,
        concurrency_limit=2,
        max_retries=3,
        retry_base_delay=0.0,
        timeout=5.0,
        cache_enabled=False,
    )


@pytest.fixture
def questions() -> list[Question]:
    return [
        Question(id="q1", text="What is the best home insurance in Spain?", category="home"),
        Question(id="q2", text="Is Occident a good insurer?", category="home"),
        Question(id="q3", text="Which car insurance has the best claims service?", category="car"),
        Question(id="q4", text="Mapfre or AXA for health insurance?", category="health"),
        Question(id="q5", text="Cheapest life insurance options?", category="life"),
    ]


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def no_sleep() -> AsyncMock:
    return AsyncMock()


# ---------------------------------------------------------------------------
# API: SQLite file database per test, scripted provider, in-memory cache
# ---------------------------------------------------------------------------


@pytest.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def response_cache() -> CacheGateway:
    return CacheGateway(InMemoryResponseCache())


@pytest.fixture
async def client(session_factory, provider, no_sleep, response_cache) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_orchestrator] = lambda: AnalysisOrchestrator(
        provider, cache=response_cache, sleep=no_sleep
    )
    app.dependency_overrides[get_cache_gateway] = lambda: response_cache

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
