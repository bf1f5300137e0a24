"""Analysis runs API: start runs, read stored results, render reports."""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from brandpulse.analysis.orchestrator import AnalysisOrchestrator
from brandpulse.analysis.types import AnalysisResult
from brandpulse.core.config import settings
from brandpulse.core.dependencies import get_orchestrator
from brandpulse.core.exceptions import NotFoundError
from brandpulse.db.postgres import get_db
from brandpulse.schemas.analysis import AnalysisRunRequest, AnalysisRunSummary, AnalysisTaskResponse
from brandpulse.services import analysis_store, report_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analyses", tags=["analyses"])

_REPORT_MEDIA_TYPES = {
    "markdown": "text/markdown; charset=utf-8",
    "json": "application/json",
    "csv": "text/csv; charset=utf-8",
}


@router.post("", status_code=201)
async def create_analysis(
    body: AnalysisRunRequest,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Run an analysis synchronously, store it and return the full result."""
    config = body.configuration.to_run_configuration(settings)
    questions = [q.to_question() for q in body.questions]

    result = await orchestrator.run_analysis(questions, config)
    await analysis_store.save_analysis(db, result, config)
    return result.to_dict()


@router.post("/async", status_code=202, response_model=AnalysisTaskResponse)
async def create_analysis_async(body: AnalysisRunRequest) -> AnalysisTaskResponse:
    """Queue an analysis on the Celery worker."""
    from brandpulse.tasks.analysis_tasks import run_analysis_task

    # Validate eagerly so bad configurations fail here, not in the worker
    body.configuration.to_run_configuration(settings)
    task = run_analysis_task.delay(
        [q.model_dump() for q in body.questions],
        body.configuration.model_dump(mode="json", exclude_none=True),
    )
    logger.info("Queued analysis task %s (%d questions)", task.id, len(body.questions))
    return AnalysisTaskResponse(task_id=task.id)


@router.get("", response_model=list[AnalysisRunSummary])
async def list_analyses(
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    return await analysis_store.list_analyses(db, limit=limit)


@router.get("/{analysis_id}")
async def get_analysis(analysis_id: str, db: AsyncSession = Depends(get_db)) -> dict:
    stored = await analysis_store.get_analysis(db, analysis_id)
    if stored is None:
        raise NotFoundError("Analysis not found")
    return stored


@router.get("/{analysis_id}/report")
async def get_analysis_report(
    analysis_id: str,
    format: str = Query("markdown", pattern=r"^(markdown|json|csv)$"),
    db: AsyncSession = Depends(get_db),
) -> Response:
    stored = await analysis_store.get_analysis(db, analysis_id)
    if stored is None:
        raise NotFoundError("Analysis not found")

    result = AnalysisResult.from_dict(stored)
    if format == "json":
        content = report_service.generate_json_report(result)
    elif format == "csv":
        content = report_service.generate_csv_report(result)
    else:
        content = report_service.generate_markdown_report(result)

    extension = "md" if format == "markdown" else format
    return PlainTextResponse(
        content,
        media_type=_REPORT_MEDIA_TYPES[format],
        headers={"Content-Disposition": f'attachment; filename="{analysis_id}.{extension}"'},
    )
