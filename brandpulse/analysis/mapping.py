"""Mapping of parsed analysis JSON into typed results.

The extractor returns whatever the model produced; everything here is
field-by-field conversion with defaults for missing values.
"""

from __future__ import annotations

import logging
from typing import Any

from brandpulse.analysis.types import (
    AnalysisSource,
    BrandMention,
    DetailedSentiment,
    Question,
    QuestionAnalysis,
    Sentiment,
)

logger = logging.getLogger(__name__)

SYNTHETIC_SOURCE_URL = "generative-ai-response"
SNIPPET_LENGTH = 2000
TITLE_QUESTION_LENGTH = 60

# Displayed trust signal is kept inside this band
CONFIDENCE_FLOOR = 0.70
CONFIDENCE_CEILING = 0.95
DEFAULT_CONFIDENCE = 0.75

DEFAULT_SUMMARY = "Analysis of brand mentions in the generated answer."
ERROR_SUMMARY = (
    "The analysis of this question could not be completed because of a technical error. "
    "It is shown with zero confidence and no evidence."
)

_SENTIMENT_ALIASES = {
    "very_positive": Sentiment.POSITIVE,
    "very_negative": Sentiment.NEGATIVE,
    "positivo": Sentiment.POSITIVE,
    "negativo": Sentiment.NEGATIVE,
    "neutro": Sentiment.NEUTRAL,
    "neutral": Sentiment.NEUTRAL,
}


def clamp_confidence(value: Any) -> tuple[float, float | None]:
    """Return (clamped, raw). Missing or non-numeric values give the default."""
    if value is None or isinstance(value, bool):
        return DEFAULT_CONFIDENCE, None
    try:
        raw = float(value)
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE, None
    if raw != raw:  # NaN
        return DEFAULT_CONFIDENCE, None
    return max(CONFIDENCE_FLOOR, min(CONFIDENCE_CEILING, raw)), raw


def parse_sentiment(value: Any, default: Sentiment = Sentiment.NEUTRAL) -> Sentiment:
    if not isinstance(value, str):
        return default
    normalized = value.strip().lower()
    try:
        return Sentiment(normalized)
    except ValueError:
        return _SENTIMENT_ALIASES.get(normalized, default)


def parse_detailed_sentiment(value: Any) -> DetailedSentiment | None:
    if not isinstance(value, str):
        return None
    try:
        return DetailedSentiment(value.strip().lower())
    except ValueError:
        return None


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    try:
        return max(0, int(float(value)))
    except (TypeError, ValueError, OverflowError):  # inf from 1e400 or Infinity
        return 0


def parse_brand_mention(item: Any) -> BrandMention | None:
    """Convert one ``brandMentions`` entry.

    Frequency is authoritative and ``mentioned`` is derived from it. A
    model that says mentioned with frequency 0 but quotes evidence gets
    one mention per quote.
    """
    if not isinstance(item, dict):
        return None
    brand = item.get("brand")
    if not isinstance(brand, str) or not brand.strip():
        logger.debug("Skipping brand mention without a name: %r", item)
        return None

    raw_evidence = item.get("evidence")
    if isinstance(raw_evidence, str):
        raw_evidence = [raw_evidence]
    elif not isinstance(raw_evidence, list):
        raw_evidence = []
    evidence = [str(e) for e in raw_evidence if e]

    reported = bool(item.get("mentioned", False))
    frequency = _to_int(item.get("frequency"))
    if frequency == 0 and reported and evidence:
        frequency = len(evidence)
    mentioned = frequency > 0
    if reported != mentioned:
        logger.debug("Brand %s: model said mentioned=%s, frequency=%d", brand, reported, frequency)

    confidence = item.get("confidence")
    return BrandMention(
        brand=brand.strip(),
        mentioned=mentioned,
        frequency=frequency,
        context=parse_sentiment(item.get("context")),
        evidence=evidence,
        detailed_sentiment=parse_detailed_sentiment(item.get("detailedSentiment")),
        confidence=clamp_confidence(confidence)[0] if confidence is not None else None,
    )


def parse_brand_mentions(raw: Any) -> list[BrandMention]:
    if not isinstance(raw, list):
        return []
    mentions = []
    for item in raw:
        mention = parse_brand_mention(item)
        if mention is not None:
            mentions.append(mention)
    return mentions


def build_synthetic_source(
    question: Question,
    content: str,
    domain: str,
    *,
    full_content: str | None = None,
    url: str = SYNTHETIC_SOURCE_URL,
) -> AnalysisSource:
    snippet = content if len(content) <= SNIPPET_LENGTH else content[:SNIPPET_LENGTH] + "..."
    return AnalysisSource(
        url=url,
        title=f"Generative answer: {question.text[:TITLE_QUESTION_LENGTH]}...",
        snippet=snippet,
        domain=domain,
        is_priority=True,
        full_content=full_content if full_content is not None else content,
    )


def build_question_analysis(
    question: Question,
    generated_content: str,
    parsed: dict[str, Any],
    domain: str,
) -> QuestionAnalysis:
    confidence, raw_confidence = clamp_confidence(parsed.get("confidenceScore"))
    summary = parsed.get("summary")
    return QuestionAnalysis(
        question_id=question.id,
        question=question.text,
        category=question.category,
        summary=summary if isinstance(summary, str) and summary.strip() else DEFAULT_SUMMARY,
        sources=[build_synthetic_source(question, generated_content, domain)],
        brand_mentions=parse_brand_mentions(parsed.get("brandMentions")),
        sentiment=parse_sentiment(parsed.get("sentiment")),
        confidence_score=confidence,
        raw_confidence_score=raw_confidence,
    )


def create_error_analysis(question: Question) -> QuestionAnalysis:
    """Placeholder for a question that could not be analyzed."""
    return QuestionAnalysis(
        question_id=question.id,
        question=question.text,
        category=question.category,
        summary=ERROR_SUMMARY,
        sources=[],
        brand_mentions=[],
        sentiment=Sentiment.NEUTRAL,
        confidence_score=0.0,
        is_error=True,
    )
