"""Celery application configuration for Inventra background tasks."""

from celery import Celery

from inventra.config import settings

celery = Celery("inventra")

celery.conf.update(
    broker_url=settings.celery_broker_url,
    result_backend=settings.celery_result_backend,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    # --- Queue routing per job type ---
    task_routes={
        "inventra.modules.export.tasks.process_export_job": {
            "queue": settings.export_queue_name,
        },
        "inventra.modules.export.tasks.reconcile_stale_exports": {
            "queue": settings.export_queue_name,
        },
    },
    # --- Reliability settings ---
    # Tasks are acknowledged after they finish; a worker that dies mid-task
    # leaves the message for redelivery.
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_default_retry_delay=settings.export_task_retry_delay_seconds,
    worker_prefetch_multiplier=1,
    result_expires=86400,  # 24 hours
    # --- Broker transport options (Redis reliability) ---
    broker_transport_options={
        "max_retries": 10,
        "interval_start": 0.2,
        "interval_step": 0.5,
        "interval_max": 5.0,
        "retry_on_timeout": True,
        "visibility_timeout": settings.export_processing_timeout_seconds,
    },
    # --- Beat schedule ---
    beat_schedule={
        "reconcile-stale-exports": {
            "task": "inventra.modules.export.tasks.reconcile_stale_exports",
            "schedule": settings.export_reconcile_poll_seconds,
        },
    },
)

celery.autodiscover_tasks([
    "inventra.modules.export",
])
