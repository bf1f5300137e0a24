"""Tests for the analysis run orchestrator."""

import asyncio
import random
import re
from dataclasses import replace

import pytest

from brandpulse.analysis.orchestrator import AnalysisOrchestrator, new_analysis_id, run_analysis
from brandpulse.analysis.types import RunStatus, Sentiment
from brandpulse.core.exceptions import InvalidRunError, ProviderTimeout
from helpers import ANALYSIS_MODEL, GENERATED_TEXT, ScriptedProvider


def test_analysis_id_format():
    assert re.fullmatch(r"analysis_\d{13}_[a-z0-9]{9}", new_analysis_id())
    assert new_analysis_id() != new_analysis_id()


class TestRunAnalysis:
    @pytest.mark.asyncio
    async def test_completed_run(self, run_config, questions, provider, no_sleep):
        orchestrator = AnalysisOrchestrator(provider, sleep=no_sleep)

        result = await orchestrator.run_analysis(questions, run_config)

        assert result.status == RunStatus.COMPLETED
        assert orchestrator.status == RunStatus.COMPLETED
        assert [q.question_id for q in result.questions] == ["q1", "q2", "q3", "q4", "q5"]
        assert result.categories == ["home", "car", "health", "life"]
        assert result.overall_confidence == pytest.approx(0.9)
        assert result.total_sources == 5
        assert result.priority_sources == 5
        assert result.metrics.questions_total == 5
        assert result.metrics.questions_failed == 0

    @pytest.mark.asyncio
    async def test_brand_summary(self, run_config, questions, provider, no_sleep):
        result = await AnalysisOrchestrator(provider, sleep=no_sleep).run_analysis(questions, run_config)

        [occident] = result.brand_summary.target_brands
        assert occident.frequency == 5
        assert len(occident.evidence) == 5
        assert [m.brand for m in result.brand_summary.competitors] == ["Mapfre"]

        by_type = result.brand_summary_by_type
        assert by_type.specific.target_brands[0].frequency == 2
        assert by_type.generic.target_brands[0].frequency == 3
        assert by_type.all.target_brands[0].frequency == 5

    @pytest.mark.asyncio
    async def test_order_preserved_with_jitter(self, run_config, questions, no_sleep):
        async def slow_generate(call):
            await asyncio.sleep(random.uniform(0, 0.02))
            return f"{call['user_prompt']} {GENERATED_TEXT}"

        provider = ScriptedProvider(generate=slow_generate)
        result = await AnalysisOrchestrator(provider, sleep=no_sleep).run_analysis(
            questions, replace(run_config, concurrency_limit=5)
        )

        assert [q.question_id for q in result.questions] == [q.id for q in questions]
        for analysis, question in zip(result.questions, questions):
            assert analysis.sources[0].full_content.startswith(question.text)

    @pytest.mark.asyncio
    async def test_graceful_degradation(self, run_config, questions, no_sleep):
        def generate(call):
            if call["user_prompt"] == questions[2].text:
                raise ProviderTimeout(5.0)
            return GENERATED_TEXT

        provider = ScriptedProvider(generate=generate)
        orchestrator = AnalysisOrchestrator(provider, sleep=no_sleep)

        result = await orchestrator.run_analysis(questions, run_config)

        assert len(result.questions) == 5
        failed = [q for q in result.questions if q.is_error]
        assert [q.question_id for q in failed] == ["q3"]
        assert failed[0].confidence_score == 0.0
        assert failed[0].brand_mentions == []
        assert failed[0].sentiment == Sentiment.NEUTRAL
        assert failed[0].sources == []
        assert result.status == RunStatus.PARTIALLY_FAILED
        assert orchestrator.status == RunStatus.PARTIALLY_FAILED
        assert result.metrics.questions_failed == 1
        assert result.overall_confidence == pytest.approx(0.9 * 4 / 5)
        assert result.total_sources == 4
        # The failing question never reached the analysis model
        assert len(provider.calls_for(ANALYSIS_MODEL)) == 4

    @pytest.mark.asyncio
    async def test_all_failed(self, run_config, questions, no_sleep):
        provider = ScriptedProvider(generate="short")

        result = await AnalysisOrchestrator(provider, sleep=no_sleep).run_analysis(questions[:2], run_config)

        assert all(q.is_error for q in result.questions)
        assert result.overall_confidence == 0.0
        assert result.brand_summary.target_brands == []
        assert result.status == RunStatus.PARTIALLY_FAILED

    @pytest.mark.asyncio
    async def test_concurrency_ceiling(self, run_config, questions, no_sleep):
        in_flight = 0
        peak = 0

        async def generate(call):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return GENERATED_TEXT

        provider = ScriptedProvider(generate=generate)
        await AnalysisOrchestrator(provider, sleep=no_sleep).run_analysis(questions, run_config)

        assert peak == run_config.concurrency_limit

    @pytest.mark.asyncio
    async def test_pool_mode(self, run_config, questions, provider, no_sleep):
        config = replace(run_config, batch_mode="pool")

        result = await AnalysisOrchestrator(provider, sleep=no_sleep).run_analysis(questions, config)

        assert [q.question_id for q in result.questions] == ["q1", "q2", "q3", "q4", "q5"]
        assert result.status == RunStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_progress_reported(self, run_config, questions, provider, no_sleep):
        progress = []

        await AnalysisOrchestrator(provider, sleep=no_sleep).run_analysis(
            questions, run_config, on_progress=lambda done, total: progress.append((done, total))
        )

        assert progress == [(i, 5) for i in range(1, 6)]

    @pytest.mark.asyncio
    async def test_empty_questions_rejected(self, run_config, provider):
        with pytest.raises(InvalidRunError):
            await AnalysisOrchestrator(provider).run_analysis([], run_config)
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_bad_configuration_rejected(self, questions, provider):
        with pytest.raises(InvalidRunError):
            await AnalysisOrchestrator(provider).run_analysis(questions, {"target_brands": ["Occident"]})

    @pytest.mark.asyncio
    async def test_module_level_entry_point(self, run_config, questions, provider):
        result = await run_analysis(questions[:1], run_config, provider)
        assert result.questions[0].question_id == "q1"
        assert result.analysis_id.startswith("analysis_")
