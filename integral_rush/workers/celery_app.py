from typing import Any

from celery import Celery
from celery.signals import setup_logging

from integral_rush.core.config import get_settings
from integral_rush.core.logging import configure_logging

settings = get_settings()

celery_app = Celery(
    "integral_rush",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "integral_rush.workers.tasks.matchmaking",
        "integral_rush.workers.tasks.tournaments",
    ],
)

celery_app.conf.update(
    task_default_queue="q_normal",
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    # A sweep must finish before beat schedules the next one.
    task_soft_time_limit=max(5, int(settings.tournament_sweep_interval_seconds)),
)


@setup_logging.connect
def _configure_worker_logging(**_: Any) -> None:
    configure_logging(settings.log_level, json_logs=settings.app_env != "dev")


@celery_app.task(name="integral_rush.workers.celery_app.ping")
def ping() -> str:
    return "pong"
