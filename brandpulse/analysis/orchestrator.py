"""Analysis run orchestrator.

Top-level entry point of the engine:
  questions + RunConfiguration
    -> batch runner over QuestionAnalyzer.analyze_or_degrade
    -> brand consolidation (overall and by question type)
    -> AnalysisResult

Per-question failures never escape: they come back as error analyses and
mark the run PARTIALLY_FAILED. Only caller errors (no questions, bad
configuration) raise.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import string
import time
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timezone
from statistics import mean

from brandpulse.analysis.consolidator import consolidate, consolidate_by_question_type
from brandpulse.analysis.question_analyzer import QuestionAnalyzer
from brandpulse.analysis.types import (
    AnalysisResult,
    Question,
    QuestionAnalysis,
    RunConfiguration,
    RunMetrics,
    RunStatus,
)
from brandpulse.cache.gateway import CacheGateway
from brandpulse.core.exceptions import InvalidRunError
from brandpulse.core.logging import analysis_logger
from brandpulse.core.metrics import ANALYSIS_RUN_DURATION, ANALYSIS_RUNS
from brandpulse.gateway.batch import ProgressCallback, make_batch_runner
from brandpulse.gateway.provider import TextCompletionProvider

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_analysis_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"analysis_{int(time.time() * 1000)}_{suffix}"


def _unique_categories(questions: Sequence[Question]) -> list[str]:
    return list(dict.fromkeys(q.category for q in questions))


class AnalysisOrchestrator:
    """Runs analyses against one provider and (optionally) one cache.

    Usage:
        orchestrator = AnalysisOrchestrator(provider, cache=cache_gateway)
        result = await orchestrator.run_analysis(questions, config)
    """

    def __init__(
        self,
        provider: TextCompletionProvider,
        cache: CacheGateway | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.provider = provider
        self.cache = cache
        self._sleep = sleep
        self.status = RunStatus.PENDING

    async def run_analysis(
        self,
        questions: Sequence[Question],
        config: RunConfiguration,
        on_progress: ProgressCallback | None = None,
    ) -> AnalysisResult:
        if not questions:
            raise InvalidRunError("At least one question is required")
        if not isinstance(config, RunConfiguration):
            raise InvalidRunError(f"Expected RunConfiguration, got {type(config).__name__}")

        analysis_id = new_analysis_id()
        self.status = RunStatus.RUNNING
        start = time.monotonic()
        log = analysis_logger(logger, analysis_id)
        log.info(
            "Run started: %d questions, generation=%s, analysis=%s, concurrency=%d (%s)",
            len(questions),
            config.generation_model,
            config.analysis_model,
            config.concurrency_limit,
            config.batch_mode.value,
        )

        analyzer = QuestionAnalyzer(self.provider, config, cache=self.cache, sleep=self._sleep)
        runner = make_batch_runner(config.batch_mode, config.concurrency_limit)

        async def _process(question: Question, index: int) -> QuestionAnalysis:
            return await analyzer.analyze_or_degrade(question)

        analyses: list[QuestionAnalysis] = await runner.run_all(list(questions), _process, on_progress)

        failed = sum(1 for a in analyses if a.is_error)
        elapsed = time.monotonic() - start
        self.status = RunStatus.PARTIALLY_FAILED if failed else RunStatus.COMPLETED

        result = AnalysisResult(
            analysis_id=analysis_id,
            timestamp=datetime.now(timezone.utc),
            categories=_unique_categories(questions),
            questions=analyses,
            overall_confidence=mean(a.confidence_score for a in analyses),
            total_sources=sum(len(a.sources) for a in analyses),
            priority_sources=sum(1 for a in analyses for s in a.sources if s.is_priority),
            brand_summary=consolidate(analyses, config),
            brand_summary_by_type=consolidate_by_question_type(analyses, config),
            status=self.status,
            metrics=RunMetrics(
                elapsed_ms=int(elapsed * 1000),
                questions_total=len(analyses),
                questions_failed=failed,
                cache_hits=analyzer.cache_hits,
            ),
        )

        ANALYSIS_RUNS.labels(status=self.status.value).inc()
        ANALYSIS_RUN_DURATION.observe(elapsed)
        log.info(
            "Run %s in %.1fs: %d/%d questions ok, confidence %.2f, %d sources (%d priority), %d cache hits",
            self.status.value,
            elapsed,
            len(analyses) - failed,
            len(analyses),
            result.overall_confidence,
            result.total_sources,
            result.priority_sources,
            analyzer.cache_hits,
        )
        return result


async def run_analysis(
    questions: Sequence[Question],
    config: RunConfiguration,
    provider: TextCompletionProvider,
    cache: CacheGateway | None = None,
    on_progress: ProgressCallback | None = None,
) -> AnalysisResult:
    """Convenience wrapper around a one-off AnalysisOrchestrator."""
    return await AnalysisOrchestrator(provider, cache=cache).run_analysis(questions, config, on_progress)
