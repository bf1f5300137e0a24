"""Question Analyzer: one question in, one QuestionAnalysis out.

Two provider passes per question:
  1. Generation model answers the question (cached by question/country/model)
  2. Analysis model extracts brand mentions from that answer as JSON

Transport errors are retried around each provider call. Content and
extraction errors retry the whole generate+analyze pipeline.
``analyze_or_degrade`` is the per-question failure boundary used by the
orchestrator: whatever still fails becomes an error analysis.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from brandpulse.analysis.json_extractor import extract_json
from brandpulse.analysis.mapping import build_question_analysis, create_error_analysis
from brandpulse.analysis.personas import PersonaAnalyzer
from brandpulse.analysis.prompts import (
    ANALYSIS_MAX_TOKENS,
    ANALYSIS_TEMPERATURE,
    GENERATION_MAX_TOKENS,
    GENERATION_TEMPERATURE,
    build_analysis_prompt,
    build_system_prompt,
)
from brandpulse.analysis.types import Question, QuestionAnalysis, RunConfiguration
from brandpulse.analysis.validation import validate_analysis_response, validate_generated_content
from brandpulse.cache.base import build_cache_key
from brandpulse.cache.gateway import CacheGateway
from brandpulse.core.exceptions import ContentError, ProviderError
from brandpulse.core.metrics import QUESTIONS_ANALYZED
from brandpulse.gateway.provider import TextCompletionProvider
from brandpulse.gateway.retry import RetryExecutor

logger = logging.getLogger(__name__)

ANALYSIS_SYSTEM_PROMPT = (
    "You are a brand mention analyst. You only report what the given text says "
    "and you respond only with valid JSON."
)


class QuestionAnalyzer:
    def __init__(
        self,
        provider: TextCompletionProvider,
        config: RunConfiguration,
        cache: CacheGateway | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.provider = provider
        self.config = config
        self.cache = cache if config.cache_enabled else None
        self.cache_hits = 0

        self._call_retry = RetryExecutor(
            max_attempts=config.max_retries,
            base_delay=config.retry_base_delay,
            retry_on=(ProviderError,),
            sleep=sleep,
        )
        self._pipeline_retry = RetryExecutor(
            max_attempts=config.max_retries,
            base_delay=config.retry_base_delay,
            retry_on=(ContentError,),
            sleep=sleep,
        )
        self._personas = PersonaAnalyzer(self) if config.personas else None

    @property
    def source_domain(self) -> str:
        return getattr(self.provider, "label", "") or "generative-ai"

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def analyze(self, question: Question) -> QuestionAnalysis:
        """Analyze one question. Raises once every retry is exhausted."""
        return await self._pipeline_retry.execute(
            lambda: self._analyze_once(question),
            label=f"{question.id}:pipeline",
        )

    async def analyze_or_degrade(self, question: Question) -> QuestionAnalysis:
        try:
            analysis = await self.analyze(question)
        except Exception as e:
            QUESTIONS_ANALYZED.labels(outcome="error").inc()
            logger.error("[%s] analysis failed, substituting error analysis: %s: %s", question.id, type(e).__name__, e)
            return create_error_analysis(question)

        QUESTIONS_ANALYZED.labels(outcome="ok").inc()
        logger.info(
            "[%s] analyzed: %d brand mentions, confidence %.2f",
            question.id,
            len(analysis.brand_mentions),
            analysis.confidence_score,
        )
        return analysis

    async def _analyze_once(self, question: Question) -> QuestionAnalysis:
        if self._personas is not None:
            return await self._personas.analyze(question)

        generated = await self.generate(question)
        parsed = await self.extract_analysis(
            question,
            build_analysis_prompt(question.text, generated, self.config),
        )
        return build_question_analysis(question, generated, parsed, self.source_domain)

    # ------------------------------------------------------------------
    # Passes (shared with persona mode)
    # ------------------------------------------------------------------

    async def generate(
        self,
        question: Question,
        *,
        user_prompt: str | None = None,
        temperature: float = GENERATION_TEMPERATURE,
        cache_variant: str | None = None,
    ) -> str:
        """Generation pass, served from cache when possible."""
        model = self.config.generation_model
        cache_key = build_cache_key(question.text, self.config.country_code, model, cache_variant)

        if self.cache is not None:
            cached = await self.cache.get(cache_key, self.config.fingerprint, model)
            if cached:
                self.cache_hits += 1
                logger.debug("[%s] generation served from cache (%d chars)", question.id, len(cached))
                return cached

        text = await self.call_provider(
            model=model,
            system_prompt=build_system_prompt(self.config),
            user_prompt=user_prompt if user_prompt is not None else question.text,
            temperature=temperature,
            max_tokens=GENERATION_MAX_TOKENS,
            label=f"{question.id}:generate",
        )
        content = validate_generated_content(text)

        if self.cache is not None:
            await self.cache.set(cache_key, content, self.config.fingerprint, model, self.config.cache_ttl_days)
        return content

    async def extract_analysis(self, question: Question, prompt: str) -> dict[str, Any]:
        """Analysis pass: validated, parsed JSON from the analysis model."""
        raw = await self.call_provider(
            model=self.config.analysis_model,
            system_prompt=ANALYSIS_SYSTEM_PROMPT,
            user_prompt=prompt,
            temperature=ANALYSIS_TEMPERATURE,
            max_tokens=ANALYSIS_MAX_TOKENS,
            label=f"{question.id}:analyze",
        )
        validate_analysis_response(raw)
        return extract_json(raw)

    async def call_provider(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
        label: str,
    ) -> str:
        return await self._call_retry.execute(
            lambda: self.provider.complete(
                model=model,
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                temperature=temperature,
                max_tokens=max_tokens,
                timeout=self.config.timeout,
            ),
            label=label,
        )
