from datetime import datetime

from pydantic import BaseModel, Field

from brandpulse.analysis.types import ModelPersona, Question, RunConfiguration
from brandpulse.core.config import Settings


class QuestionIn(BaseModel):
    id: str = Field(min_length=1, max_length=100)
    question: str = Field(min_length=1, max_length=2000)
    category: str = Field("general", max_length=100)

    def to_question(self) -> Question:
        return Question(id=self.id, text=self.question, category=self.category)


class RunConfigurationIn(BaseModel):
    """Per-run overrides. Anything left unset falls back to app settings."""

    target_brands: list[str] | None = None
    competitor_brands: list[str] | None = None
    priority_sources: list[str] | None = None
    generation_model: str | None = None
    analysis_model: str | None = None
    country_code: str | None = Field(None, max_length=8)
    country_context: str | None = None
    country_language: str | None = None
    industry: str | None = None
    concurrency_limit: int | None = Field(None, ge=1, le=100)
    max_retries: int | None = Field(None, ge=1, le=10)
    timeout: float | None = Field(None, gt=0, le=600)
    cache_enabled: bool | None = None
    batch_mode: str | None = Field(None, pattern=r"^(window|pool)$")
    personas: list[ModelPersona] | None = None

    def to_run_configuration(self, settings: Settings) -> RunConfiguration:
        overrides = self.model_dump(exclude_none=True)
        for key in ("target_brands", "competitor_brands", "priority_sources", "personas"):
            if key in overrides:
                overrides[key] = tuple(overrides[key])
        return RunConfiguration.from_settings(settings, **overrides)


class AnalysisRunRequest(BaseModel):
    questions: list[QuestionIn] = Field(min_length=1, max_length=500)
    configuration: RunConfigurationIn = Field(default_factory=RunConfigurationIn)


class AnalysisRunSummary(BaseModel):
    id: str
    created_at: datetime
    status: str
    duration_ms: int
    generation_model: str
    analysis_model: str
    question_count: int
    overall_confidence: float

    model_config = {"from_attributes": True}


class AnalysisTaskResponse(BaseModel):
    task_id: str
    status: str = "queued"


class CacheStatsResponse(BaseModel):
    enabled: bool
    backend: str
    hits: int = 0
    misses: int = 0
    entries: int = 0
    hit_rate: float = 0.0


class CacheClearResponse(BaseModel):
    deleted: int
