"""Celery application configuration."""

from celery import Celery

from app.config import settings
from app.core.log_config import configure_logging

configure_logging(settings.LOG_LEVEL)

# Create Celery app
celery_app = Celery(
    "capture",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["app.tasks.token_tasks"],
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=5 * 60,
    task_soft_time_limit=4 * 60,
    worker_prefetch_multiplier=1,
)

# Task routing
celery_app.conf.task_routes = {
    "tasks.cleanup_expired_tokens": {"queue": "housekeeping"},
}

# Periodic housekeeping; correctness never depends on it running.
celery_app.conf.beat_schedule = {
    "cleanup-expired-qr-tokens": {
        "task": "tasks.cleanup_expired_tokens",
        "schedule": settings.QR_CLEANUP_INTERVAL_MINUTES * 60.0,
    },
}
