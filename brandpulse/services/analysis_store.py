"""Persistence of finished analysis runs.

The AnalysisResult is stored as an opaque JSON blob next to a few indexed
metadata columns, and handed back unchanged on read.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from brandpulse.analysis.types import AnalysisResult, RunConfiguration
from brandpulse.models.analysis_run import AnalysisRun

logger = logging.getLogger(__name__)


async def save_analysis(db: AsyncSession, result: AnalysisResult, config: RunConfiguration) -> AnalysisRun:
    run = AnalysisRun(
        id=result.analysis_id,
        created_at=result.timestamp,
        status=result.status.value,
        duration_ms=result.metrics.elapsed_ms,
        generation_model=config.generation_model,
        analysis_model=config.analysis_model,
        question_count=len(result.questions),
        overall_confidence=result.overall_confidence,
        configuration=config.to_dict(),
        result=result.to_dict(),
    )
    db.add(run)
    await db.flush()
    logger.info("Stored analysis %s (%d questions)", run.id, run.question_count)
    return run


async def get_analysis(db: AsyncSession, analysis_id: str) -> dict[str, Any] | None:
    run = await db.get(AnalysisRun, analysis_id)
    return run.result if run is not None else None


async def list_analyses(db: AsyncSession, limit: int = 50) -> list[AnalysisRun]:
    result = await db.execute(select(AnalysisRun).order_by(AnalysisRun.created_at.desc()).limit(limit))
    return list(result.scalars().all())
