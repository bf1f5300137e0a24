from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Float, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from brandpulse.db.base import Base


class AnalysisRun(Base):
    """A finished analysis run. ``result`` is the AnalysisResult blob, stored verbatim."""

    __tablename__ = "analysis_runs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)  # analysis_<ms>_<rand>
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False)  # completed | partially_failed
    duration_ms: Mapped[int] = mapped_column(Integer, default=0)
    generation_model: Mapped[str] = mapped_column(String(100), nullable=False)
    analysis_model: Mapped[str] = mapped_column(String(100), nullable=False)
    question_count: Mapped[int] = mapped_column(Integer, default=0)
    overall_confidence: Mapped[float] = mapped_column(Float, default=0.0)
    configuration: Mapped[dict | None] = mapped_column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    result: Mapped[dict] = mapped_column(JSON().with_variant(JSONB, "postgresql"), nullable=False)
