from celery import Celery
from celery.signals import setup_logging

from app.config import settings
from app.logging import configure_logging

celery_app = Celery(
    "pagecraft",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["app.tasks.scheduler"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    beat_schedule={
        "process-scheduled-pages": {
            "task": "app.tasks.scheduler.process_scheduled_pages",
            "schedule": float(settings.scheduler_tick_seconds),
        },
    },
)


@setup_logging.connect
def _configure_worker_logging(**kwargs) -> None:
    configure_logging()
