"""Celery tasks for running analyses outside the request cycle."""

import asyncio
import logging
from typing import Any

from brandpulse.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


def _run_async(coro):
    """Run an async coroutine from sync Celery task context.

    Creates a fresh event loop each time; the module-level SQLAlchemy engine
    belongs to the API process loop and is not reused here.
    """
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _make_session_factory():
    """Fresh async engine + session factory bound to the task's event loop."""
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
    from sqlalchemy.pool import NullPool

    from brandpulse.core.config import settings

    engine = create_async_engine(settings.postgres_url, echo=False, poolclass=NullPool)
    return engine, async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def _run_and_store(questions: list[dict[str, Any]], configuration: dict[str, Any]) -> dict[str, Any]:
    from brandpulse.analysis.orchestrator import AnalysisOrchestrator
    from brandpulse.analysis.types import Question
    from brandpulse.core.config import settings
    from brandpulse.core.dependencies import build_cache_gateway
    from brandpulse.gateway.provider import ChatCompletionClient
    from brandpulse.schemas.analysis import RunConfigurationIn
    from brandpulse.services.analysis_store import save_analysis

    config = RunConfigurationIn.model_validate(configuration).to_run_configuration(settings)
    run_questions = [Question.from_dict(q) for q in questions]

    cache = build_cache_gateway() if config.cache_enabled else None

    engine, session_factory = _make_session_factory()
    try:
        provider = ChatCompletionClient(settings.openai_api_key, settings.openai_api_url)
        result = await AnalysisOrchestrator(provider, cache=cache).run_analysis(run_questions, config)
        async with session_factory() as db:
            await save_analysis(db, result, config)
            await db.commit()
    finally:
        # Both are bound to this task's event loop, which _run_async closes next
        if cache is not None:
            await cache.aclose()
        await engine.dispose()

    return {
        "analysis_id": result.analysis_id,
        "status": result.status.value,
        "questions": len(result.questions),
        "failed": result.metrics.questions_failed,
        "overall_confidence": result.overall_confidence,
    }


@celery_app.task(name="run_analysis", bind=True, acks_late=True)
def run_analysis_task(self, questions: list[dict[str, Any]], configuration: dict[str, Any]) -> dict[str, Any]:
    logger.info("Task %s: analysis of %d questions started", self.request.id, len(questions))
    summary = _run_async(_run_and_store(questions, configuration))
    logger.info(
        "Task %s: analysis %s finished with status %s",
        self.request.id,
        summary["analysis_id"],
        summary["status"],
    )
    return summary
