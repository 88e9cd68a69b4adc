"""Celery application configuration for background statement processing."""

from celery import Celery

from statement_pipeline.config import settings

celery_app = Celery(
    "statement_pipeline",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["statement_pipeline.tasks.statements"],
)

celery_app.conf.update(
    # Serialization (security-focused)
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Task tracking and reliability
    task_track_started=True,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    # One OCR-bound statement at a time per worker process
    worker_prefetch_multiplier=1,
    # Result expiration
    result_expires=86400,  # 24 hours
    # Visibility timeout for long-running OCR calls
    broker_transport_options={
        "visibility_timeout": 900,  # 15 min
    },
    task_soft_time_limit=840,  # Raise SoftTimeLimitExceeded at 14 min
    task_time_limit=900,  # Hard kill after 15 min
    worker_cancel_long_running_tasks_on_connection_loss=True,
)
