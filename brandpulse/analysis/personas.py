"""Multi-model persona analysis.

Each configured persona answers the question in its own style (prompt and
temperature) on the generation model, then the enhanced analysis prompt
extracts mentions with five-level sentiment. Personas that fail are
skipped; the survivors are merged into one QuestionAnalysis.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from statistics import mean
from typing import TYPE_CHECKING

from brandpulse.analysis.consolidator import merge_mentions
from brandpulse.analysis.mapping import (
    build_synthetic_source,
    clamp_confidence,
    parse_brand_mentions,
    parse_detailed_sentiment,
)
from brandpulse.analysis.prompts import (
    build_persona_analysis_prompt,
    build_persona_prompt,
    persona_temperature,
)
from brandpulse.analysis.types import (
    BrandMention,
    CompetitiveAnalysis,
    CompetitorComparison,
    DetailedSentiment,
    ModelPersona,
    MultiModelAnalysis,
    Question,
    QuestionAnalysis,
    RunConfiguration,
    Sentiment,
)
from brandpulse.core.exceptions import ContentError, ProviderError

if TYPE_CHECKING:
    from brandpulse.analysis.question_analyzer import QuestionAnalyzer

logger = logging.getLogger(__name__)

_MENTION_SCORES = {
    Sentiment.POSITIVE: 0.5,
    Sentiment.NEUTRAL: 0.0,
    Sentiment.NEGATIVE: -0.5,
}


def sentiment_from_score(score: float) -> Sentiment:
    if score > 0.3:
        return Sentiment.POSITIVE
    if score < -0.3:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def detailed_sentiment_from_score(score: float) -> DetailedSentiment:
    if score > 0.6:
        return DetailedSentiment.VERY_POSITIVE
    if score > 0.2:
        return DetailedSentiment.POSITIVE
    if score < -0.6:
        return DetailedSentiment.VERY_NEGATIVE
    if score < -0.2:
        return DetailedSentiment.NEGATIVE
    return DetailedSentiment.NEUTRAL


def _mention_score(mentions: Sequence[BrandMention]) -> float:
    return mean(_MENTION_SCORES[m.context] for m in mentions)


def build_competitive_analysis(
    results: Sequence[MultiModelAnalysis], config: RunConfiguration
) -> CompetitiveAnalysis:
    """Compare average mention sentiment of the targets against each competitor."""
    all_mentions = [m for r in results for m in r.brand_mentions]

    comparisons: list[CompetitorComparison] = []
    for competitor in config.competitor_brands:
        needle = competitor.lower()
        mentions = [m for m in all_mentions if needle in m.brand.lower()]
        if not mentions:
            continue
        score = _mention_score(mentions)
        if score > 0:
            advantage = "competitor"
        elif score < 0:
            advantage = "target"
        else:
            advantage = "neutral"
        comparisons.append(
            CompetitorComparison(
                competitor=competitor,
                sentiment_score=round(score, 3),
                mention_frequency=sum(m.frequency for m in mentions),
                contextual_advantage=advantage,
            )
        )

    target_needles = [t.lower() for t in config.target_brands]
    target_mentions = [m for m in all_mentions if any(t in m.brand.lower() for t in target_needles)]
    if not target_mentions:
        position = "not_mentioned"
    else:
        target_score = _mention_score(target_mentions)
        best_competitor = max((c.sentiment_score for c in comparisons), default=None)
        if best_competitor is None or target_score > best_competitor:
            position = "leading"
        elif target_score < best_competitor:
            position = "trailing"
        else:
            position = "competitive"

    return CompetitiveAnalysis(target_brand_position=position, competitor_comparison=comparisons)


def merge_persona_results(
    question: Question,
    results: Sequence[MultiModelAnalysis],
    config: RunConfiguration,
    domain: str,
) -> QuestionAnalysis:
    """Fold persona results into a single analysis. ``results`` must not be empty."""
    merged = merge_mentions(
        (m for r in results for m in r.brand_mentions),
        key=lambda m: m.brand.lower(),
    )
    score = mean(r.overall_sentiment.score for r in results)
    confidence = mean(r.confidence_score for r in results)
    personas = ", ".join(r.model_persona.value for r in results)

    combined = "\n".join(f"=== {r.model_persona.value.upper()} ===\n\n{r.response}\n" for r in results)
    insights = " ".join(
        f"[{r.model_persona.value}] {r.contextual_insights}" for r in results if r.contextual_insights
    ) or (
        f"Based on {len(results)} AI personas. Sentiments: "
        f"{', '.join(r.overall_sentiment.value for r in results)}. "
        f"Average confidence {confidence * 100:.1f}%."
    )

    return QuestionAnalysis(
        question_id=question.id,
        question=question.text,
        category=question.category,
        summary=f"Multi-model analysis ({personas}) of AI answers.",
        sources=[build_synthetic_source(question, results[0].response, domain, full_content=combined)],
        brand_mentions=list(merged.values()),
        sentiment=sentiment_from_score(score),
        confidence_score=round(confidence, 4),
        multi_model_analysis=list(results),
        detailed_sentiment=detailed_sentiment_from_score(score),
        contextual_insights=insights,
        competitive_analysis=build_competitive_analysis(results, config),
    )


class PersonaAnalyzer:
    def __init__(self, analyzer: QuestionAnalyzer):
        self.analyzer = analyzer
        self.config = analyzer.config

    async def analyze_persona(self, question: Question, persona: ModelPersona) -> MultiModelAnalysis:
        generated = await self.analyzer.generate(
            question,
            user_prompt=build_persona_prompt(question.text, persona, self.config),
            temperature=persona_temperature(persona),
            cache_variant=persona.value,
        )
        parsed = await self.analyzer.extract_analysis(
            question,
            build_persona_analysis_prompt(question.text, generated, persona, self.config),
        )
        confidence, _ = clamp_confidence(parsed.get("confidenceScore"))
        insights = parsed.get("contextualInsights")
        return MultiModelAnalysis(
            model_persona=persona,
            response=generated,
            brand_mentions=parse_brand_mentions(parsed.get("brandMentions")),
            overall_sentiment=parse_detailed_sentiment(parsed.get("overallSentiment")) or DetailedSentiment.NEUTRAL,
            confidence_score=confidence,
            contextual_insights=insights if isinstance(insights, str) else "",
        )

    async def analyze(self, question: Question) -> QuestionAnalysis:
        results: list[MultiModelAnalysis] = []
        for persona in self.config.personas:
            try:
                results.append(await self.analyze_persona(question, persona))
            except (ProviderError, ContentError) as e:
                logger.warning("[%s] persona %s skipped: %s", question.id, persona.value, e)

        if not results:
            raise ContentError(f"No persona produced a usable analysis for question {question.id}")

        logger.debug("[%s] merging %d persona results", question.id, len(results))
        return merge_persona_results(question, results, self.config, self.analyzer.source_domain)
