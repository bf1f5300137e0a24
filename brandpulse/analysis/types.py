"""Core types and DTOs for analysis runs.

Every container serializes to the camelCase wire shape stored by the
persistence layer and consumed by report renderers and the UI.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from brandpulse.core.exceptions import InvalidRunError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class DetailedSentiment(str, Enum):
    """Five-level sentiment used by persona analysis."""

    VERY_POSITIVE = "very_positive"
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"
    VERY_NEGATIVE = "very_negative"

    @property
    def score(self) -> float:
        return _DETAILED_SENTIMENT_SCORES[self]


_DETAILED_SENTIMENT_SCORES = {
    DetailedSentiment.VERY_POSITIVE: 1.0,
    DetailedSentiment.POSITIVE: 0.5,
    DetailedSentiment.NEUTRAL: 0.0,
    DetailedSentiment.NEGATIVE: -0.5,
    DetailedSentiment.VERY_NEGATIVE: -1.0,
}


class ModelPersona(str, Enum):
    """Answer styles simulated on the generation model in persona mode."""

    CHATGPT = "chatgpt"
    CLAUDE = "claude"
    GEMINI = "gemini"
    PERPLEXITY = "perplexity"


class RunStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    PARTIALLY_FAILED = "partially_failed"  # At least one error analysis


class BatchMode(str, Enum):
    WINDOW = "window"  # Fixed windows, next starts when the whole window settles
    POOL = "pool"  # Semaphore pool, refills as soon as a permit frees up


# ---------------------------------------------------------------------------
# Fallback brand lists, injected only by RunConfiguration.from_settings()
# ---------------------------------------------------------------------------

DEFAULT_TARGET_BRANDS: tuple[str, ...] = (
    "Occident",
    "Catalana Occidente",
    "GCO",
    "Plus Ultra Seguros",
    "Seguros Bilbao",
    "NorteHispana",
)

DEFAULT_COMPETITOR_BRANDS: tuple[str, ...] = (
    "Mapfre",
    "Allianz",
    "AXA",
    "Santalucía",
    "Caser",
    "Ocaso",
    "Línea Directa",
    "Mutua Madrileña",
    "Tuio",
    "Generali",
    "Pelayo",
    "MGS",
    "AMA",
)

DEFAULT_PRIORITY_SOURCES: tuple[str, ...] = (
    "Rastreator",
    "Selectra",
    "OCU",
    "Rankia",
    "Roams",
    "AvaiBook",
    "Lodgify",
    "Acierto",
    "Seguros.insure",
    "Trustpilot",
    "Finect",
)

DEFAULT_COUNTRY_CONTEXT = "in Spain, considering the Spanish market"
DEFAULT_COUNTRY_LANGUAGE = "Spanish"
DEFAULT_INDUSTRY = "the relevant sector"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Question:
    id: str
    text: str
    category: str = "general"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Question:
        # Accept both the wire name ("question") and the attribute name ("text")
        text = data.get("text", data.get("question", ""))
        return cls(id=str(data["id"]), text=text, category=data.get("category") or "general")


@dataclass(frozen=True)
class RunConfiguration:
    """Everything a run needs, validated once at construction.

    Construct directly for full control, or via from_settings() to fill in
    environment defaults and the fallback brand lists.
    """

    target_brands: tuple[str, ...]
    competitor_brands: tuple[str, ...] = ()
    priority_sources: tuple[str, ...] = ()
    generation_model: str = "gpt-4o"
    analysis_model: str = "gpt-4o-mini"
    country_code: str = "ES"
    country_context: str = DEFAULT_COUNTRY_CONTEXT
    country_language: str = DEFAULT_COUNTRY_LANGUAGE
    industry: str = DEFAULT_INDUSTRY
    concurrency_limit: int = 15
    max_retries: int = 3
    retry_base_delay: float = 2.0  # seconds
    timeout: float = 60.0  # seconds, per provider call
    cache_enabled: bool = True
    cache_ttl_days: int = 7
    batch_mode: BatchMode = BatchMode.WINDOW
    personas: tuple[ModelPersona, ...] = ()

    def __post_init__(self) -> None:
        errors: list[str] = []

        # Normalize list-likes to tuples so the configuration stays hashable
        for name in ("target_brands", "competitor_brands", "priority_sources"):
            value = getattr(self, name)
            if isinstance(value, str):
                value = (value,)
            if not isinstance(value, (list, tuple)) or not all(isinstance(b, str) for b in value if b is not None):
                errors.append(f"{name} must be a list of strings")
                value = ()
            object.__setattr__(self, name, tuple(b.strip() for b in value if b and b.strip()))
        try:
            object.__setattr__(self, "personas", tuple(ModelPersona(p) for p in self.personas))
        except ValueError as e:
            errors.append(f"unknown persona: {e}")
        try:
            object.__setattr__(self, "batch_mode", BatchMode(self.batch_mode))
        except ValueError:
            errors.append(f"batch_mode must be one of {[m.value for m in BatchMode]}, got {self.batch_mode!r}")

        if not self.target_brands:
            errors.append("at least one target brand is required")
        if not self.generation_model or not self.analysis_model:
            errors.append("generation_model and analysis_model are required")
        if self.concurrency_limit < 1:
            errors.append("concurrency_limit must be >= 1")
        if self.max_retries < 1:
            errors.append("max_retries must be >= 1")
        if self.retry_base_delay < 0:
            errors.append("retry_base_delay must be >= 0")
        if self.timeout <= 0:
            errors.append("timeout must be > 0")
        if self.cache_ttl_days < 1:
            errors.append("cache_ttl_days must be >= 1")
        if errors:
            raise InvalidRunError("Invalid run configuration: " + "; ".join(errors))

    @classmethod
    def from_settings(cls, settings: Any, **overrides: Any) -> RunConfiguration:
        """Build a configuration from app settings plus per-run overrides.

        Overrides set to None fall back to the settings value. Empty brand
        lists fall back to the DEFAULT_* lists here, and only here.
        """
        values: dict[str, Any] = {
            "generation_model": settings.generation_model,
            "analysis_model": settings.analysis_model,
            "country_code": settings.default_country_code,
            "industry": settings.default_industry,
            "concurrency_limit": settings.analysis_concurrency,
            "max_retries": settings.analysis_max_retries,
            "retry_base_delay": settings.analysis_retry_base_delay,
            "timeout": settings.provider_timeout,
            "cache_enabled": settings.cache_enabled,
            "cache_ttl_days": settings.cache_ttl_days,
            "batch_mode": settings.batch_mode,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        values["target_brands"] = tuple(values.get("target_brands") or DEFAULT_TARGET_BRANDS)
        values["competitor_brands"] = tuple(values.get("competitor_brands") or DEFAULT_COMPETITOR_BRANDS)
        values["priority_sources"] = tuple(values.get("priority_sources") or DEFAULT_PRIORITY_SOURCES)
        return cls(**values)

    @property
    def all_brands(self) -> tuple[str, ...]:
        return self.target_brands + self.competitor_brands

    @property
    def fingerprint(self) -> str:
        """Stable hash of the brand setup, part of every cache key."""
        payload = json.dumps(
            {
                "target": sorted(self.target_brands),
                "competitors": sorted(self.competitor_brands),
            },
            ensure_ascii=False,
        )
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]

    def to_dict(self) -> dict[str, Any]:
        return {
            "targetBrands": list(self.target_brands),
            "competitorBrands": list(self.competitor_brands),
            "prioritySources": list(self.priority_sources),
            "generationModel": self.generation_model,
            "analysisModel": self.analysis_model,
            "countryCode": self.country_code,
            "countryContext": self.country_context,
            "countryLanguage": self.country_language,
            "industry": self.industry,
            "concurrencyLimit": self.concurrency_limit,
            "maxRetries": self.max_retries,
            "timeout": self.timeout,
            "cacheEnabled": self.cache_enabled,
            "batchMode": self.batch_mode.value,
            "personas": [p.value for p in self.personas],
        }


# ---------------------------------------------------------------------------
# Per-question results
# ---------------------------------------------------------------------------


@dataclass
class AnalysisSource:
    """Synthetic evidence wrapper around generated text, not a fetched page."""

    url: str
    title: str
    snippet: str
    domain: str
    is_priority: bool = False
    full_content: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "url": self.url,
            "title": self.title,
            "snippet": self.snippet,
            "domain": self.domain,
            "isPriority": self.is_priority,
        }
        if self.full_content is not None:
            data["fullContent"] = self.full_content
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalysisSource:
        return cls(
            url=data.get("url", ""),
            title=data.get("title", ""),
            snippet=data.get("snippet", ""),
            domain=data.get("domain", ""),
            is_priority=bool(data.get("isPriority", False)),
            full_content=data.get("fullContent"),
        )


@dataclass
class BrandMention:
    brand: str
    mentioned: bool = False
    frequency: int = 0
    context: Sentiment = Sentiment.NEUTRAL
    evidence: list[str] = field(default_factory=list)
    detailed_sentiment: DetailedSentiment | None = None  # Persona mode only
    confidence: float | None = None  # Persona mode only

    def copy(self) -> BrandMention:
        return replace(self, evidence=list(self.evidence))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "brand": self.brand,
            "mentioned": self.mentioned,
            "frequency": self.frequency,
            "context": self.context.value,
            "evidence": list(self.evidence),
        }
        if self.detailed_sentiment is not None:
            data["detailedSentiment"] = self.detailed_sentiment.value
        if self.confidence is not None:
            data["confidence"] = self.confidence
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BrandMention:
        detailed = data.get("detailedSentiment")
        return cls(
            brand=data.get("brand", ""),
            mentioned=bool(data.get("mentioned", False)),
            frequency=int(data.get("frequency", 0)),
            context=Sentiment(data.get("context", "neutral")),
            evidence=list(data.get("evidence", [])),
            detailed_sentiment=DetailedSentiment(detailed) if detailed else None,
            confidence=data.get("confidence"),
        )


@dataclass
class CompetitorComparison:
    competitor: str
    sentiment_score: float  # Mean persona score for this competitor, -1..+1
    mention_frequency: int
    contextual_advantage: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "competitor": self.competitor,
            "sentimentComparison": self.sentiment_score,
            "mentionFrequency": self.mention_frequency,
            "contextualAdvantage": self.contextual_advantage,
        }


@dataclass
class CompetitiveAnalysis:
    target_brand_position: str  # leading | competitive | trailing
    competitor_comparison: list[CompetitorComparison] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "targetBrandPosition": self.target_brand_position,
            "competitorComparison": [c.to_dict() for c in self.competitor_comparison],
        }


@dataclass
class MultiModelAnalysis:
    """One persona's view of a question."""

    model_persona: ModelPersona
    response: str
    brand_mentions: list[BrandMention] = field(default_factory=list)
    overall_sentiment: DetailedSentiment = DetailedSentiment.NEUTRAL
    confidence_score: float = 0.75
    contextual_insights: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "modelPersona": self.model_persona.value,
            "response": self.response,
            "brandMentions": [m.to_dict() for m in self.brand_mentions],
            "overallSentiment": self.overall_sentiment.value,
            "confidenceScore": self.confidence_score,
            "contextualInsights": self.contextual_insights,
        }


@dataclass(frozen=True)
class QuestionAnalysis:
    """Result for a single question. Never mutated after creation."""

    question_id: str
    question: str
    category: str
    summary: str
    sources: list[AnalysisSource] = field(default_factory=list)
    brand_mentions: list[BrandMention] = field(default_factory=list)
    sentiment: Sentiment = Sentiment.NEUTRAL
    confidence_score: float = 0.0
    raw_confidence_score: float | None = None  # Model value before clamping
    is_error: bool = False

    # Persona mode
    multi_model_analysis: list[MultiModelAnalysis] = field(default_factory=list)
    detailed_sentiment: DetailedSentiment | None = None
    contextual_insights: str | None = None
    competitive_analysis: CompetitiveAnalysis | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "questionId": self.question_id,
            "question": self.question,
            "category": self.category,
            "summary": self.summary,
            "sources": [s.to_dict() for s in self.sources],
            "brandMentions": [m.to_dict() for m in self.brand_mentions],
            "sentiment": self.sentiment.value,
            "confidenceScore": self.confidence_score,
            "rawConfidenceScore": self.raw_confidence_score,
            "isError": self.is_error,
        }
        if self.multi_model_analysis:
            data["multiModelAnalysis"] = [m.to_dict() for m in self.multi_model_analysis]
        if self.detailed_sentiment is not None:
            data["detailedSentiment"] = self.detailed_sentiment.value
        if self.contextual_insights is not None:
            data["contextualInsights"] = self.contextual_insights
        if self.competitive_analysis is not None:
            data["competitiveAnalysis"] = self.competitive_analysis.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QuestionAnalysis:
        # Persona detail is display-only; report rendering does not need it back
        detailed = data.get("detailedSentiment")
        return cls(
            question_id=data.get("questionId", ""),
            question=data.get("question", ""),
            category=data.get("category", "general"),
            summary=data.get("summary", ""),
            sources=[AnalysisSource.from_dict(s) for s in data.get("sources", [])],
            brand_mentions=[BrandMention.from_dict(m) for m in data.get("brandMentions", [])],
            sentiment=Sentiment(data.get("sentiment", "neutral")),
            confidence_score=float(data.get("confidenceScore", 0.0)),
            raw_confidence_score=data.get("rawConfidenceScore"),
            is_error=bool(data.get("isError", False)),
            detailed_sentiment=DetailedSentiment(detailed) if detailed else None,
            contextual_insights=data.get("contextualInsights"),
        )


# ---------------------------------------------------------------------------
# Run-level results
# ---------------------------------------------------------------------------


@dataclass
class BrandSummary:
    target_brands: list[BrandMention] = field(default_factory=list)
    competitors: list[BrandMention] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "targetBrands": [m.to_dict() for m in self.target_brands],
            "competitors": [m.to_dict() for m in self.competitors],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BrandSummary:
        return cls(
            target_brands=[BrandMention.from_dict(m) for m in data.get("targetBrands", [])],
            competitors=[BrandMention.from_dict(m) for m in data.get("competitors", [])],
        )


@dataclass
class BrandSummaryByType:
    all: BrandSummary
    generic: BrandSummary
    specific: BrandSummary

    def to_dict(self) -> dict[str, Any]:
        return {
            "all": self.all.to_dict(),
            "generic": self.generic.to_dict(),
            "specific": self.specific.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BrandSummaryByType:
        return cls(
            all=BrandSummary.from_dict(data.get("all", {})),
            generic=BrandSummary.from_dict(data.get("generic", {})),
            specific=BrandSummary.from_dict(data.get("specific", {})),
        )


@dataclass
class RunMetrics:
    elapsed_ms: int = 0
    questions_total: int = 0
    questions_failed: int = 0
    cache_hits: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "elapsedMs": self.elapsed_ms,
            "questionsTotal": self.questions_total,
            "questionsFailed": self.questions_failed,
            "cacheHits": self.cache_hits,
        }


@dataclass
class AnalysisResult:
    """Final artifact of a run. Treated as an opaque value once returned."""

    analysis_id: str
    timestamp: datetime
    categories: list[str]
    questions: list[QuestionAnalysis]
    overall_confidence: float
    total_sources: int
    priority_sources: int
    brand_summary: BrandSummary
    brand_summary_by_type: BrandSummaryByType | None = None
    status: RunStatus = RunStatus.COMPLETED
    metrics: RunMetrics = field(default_factory=RunMetrics)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "analysisId": self.analysis_id,
            "timestamp": self.timestamp.isoformat(),
            "categories": list(self.categories),
            "questions": [q.to_dict() for q in self.questions],
            "overallConfidence": self.overall_confidence,
            "totalSources": self.total_sources,
            "prioritySources": self.priority_sources,
            "brandSummary": self.brand_summary.to_dict(),
            "status": self.status.value,
            "metrics": self.metrics.to_dict(),
        }
        if self.brand_summary_by_type is not None:
            data["brandSummaryByType"] = self.brand_summary_by_type.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalysisResult:
        metrics = data.get("metrics", {})
        by_type = data.get("brandSummaryByType")
        timestamp = data.get("timestamp")
        return cls(
            analysis_id=data["analysisId"],
            timestamp=datetime.fromisoformat(timestamp) if timestamp else datetime.now(timezone.utc),
            categories=list(data.get("categories", [])),
            questions=[QuestionAnalysis.from_dict(q) for q in data.get("questions", [])],
            overall_confidence=float(data.get("overallConfidence", 0.0)),
            total_sources=int(data.get("totalSources", 0)),
            priority_sources=int(data.get("prioritySources", 0)),
            brand_summary=BrandSummary.from_dict(data.get("brandSummary", {})),
            brand_summary_by_type=BrandSummaryByType.from_dict(by_type) if by_type else None,
            status=RunStatus(data.get("status", RunStatus.COMPLETED.value)),
            metrics=RunMetrics(
                elapsed_ms=int(metrics.get("elapsedMs", 0)),
                questions_total=int(metrics.get("questionsTotal", 0)),
                questions_failed=int(metrics.get("questionsFailed", 0)),
                cache_hits=int(metrics.get("cacheHits", 0)),
            ),
        )
