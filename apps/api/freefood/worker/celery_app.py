from celery import Celery

from freefood.core.config import settings

celery_app = Celery(
    "freefood",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["freefood.worker.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    beat_schedule={
        "purge-stale-events": {
            "task": "purge_stale_events",
            "schedule": 15 * 60,
        },
    },
)
