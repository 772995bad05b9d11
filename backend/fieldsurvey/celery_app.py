from celery import Celery

from fieldsurvey.config import settings

celery = Celery(
    "fieldsurvey",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["fieldsurvey.tasks.blobs"],
)

celery.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="Asia/Jakarta",
    enable_utc=True,
    beat_schedule={
        "sweep-orphan-blobs": {
            "task": "fieldsurvey.tasks.blobs.sweep_orphan_blobs",
            "schedule": settings.ORPHAN_SWEEP_INTERVAL_MINUTES * 60,
        },
    },
)
