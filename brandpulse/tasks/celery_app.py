from celery import Celery
from celery.signals import worker_process_init

from brandpulse.core.config import settings
from brandpulse.core.logging import setup_logging
from brandpulse.core.sentry import init_sentry

celery_app = Celery(
    "brandpulse",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["brandpulse.tasks.analysis_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    # One run at a time per worker process: a run already fans out to the provider
    worker_prefetch_multiplier=1,
    broker_connection_retry_on_startup=True,
    task_time_limit=settings.analysis_task_time_limit,
    task_soft_time_limit=settings.analysis_task_time_limit - 60,
    result_expires=7 * 86400,
)


@worker_process_init.connect
def _init_worker_process(**kwargs) -> None:
    setup_logging()
    init_sentry("worker")
