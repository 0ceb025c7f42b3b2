"""Celery tasks for the export pipeline."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError

from celery_app import celery
from inventra.config import settings
from inventra.database.engine import async_session, engine
from inventra.modules.export.channel import PROCESS_EXPORT_TASK, CeleryExportTaskChannel
from inventra.modules.export.job_store import SqlAlchemyExportJobStore
from inventra.modules.export.notifier import RedisStatusNotifier
from inventra.modules.export.reconciler import ExportReconciler
from inventra.modules.export.schemas import ExportTask
from inventra.modules.export.storage import S3ObjectStorage
from inventra.modules.export.worker import ExportWorker
from inventra.modules.inventory.data_source import InventoryDataSource

logger = logging.getLogger(__name__)


# ── Async helper implementations ─────────────────────────────────────────


async def _process_export_job_async(task: ExportTask) -> dict:
    notifier = RedisStatusNotifier()
    try:
        # Status writes and the inventory read use separate sessions so a
        # failed read cannot roll back a status transition.
        async with async_session() as store_session, async_session() as data_session:
            worker = ExportWorker(
                store=SqlAlchemyExportJobStore(store_session),
                data_source=InventoryDataSource(data_session),
                storage=S3ObjectStorage.from_settings(),
                notifier=notifier,
            )
            job = await worker.handle(task)
            return {
                "job_id": str(task.job_id),
                "status": job.status.value if job is not None else None,
            }
    finally:
        await notifier.close()
        # Pooled connections are bound to this event loop
        await engine.dispose()


async def _reconcile_stale_exports_async() -> dict:
    notifier = RedisStatusNotifier()
    try:
        async with async_session() as session:
            reconciler = ExportReconciler(
                store=SqlAlchemyExportJobStore(session),
                channel=CeleryExportTaskChannel(celery),
                notifier=notifier,
                pending_timeout=timedelta(seconds=settings.export_pending_timeout_seconds),
                processing_timeout=timedelta(
                    seconds=settings.export_processing_timeout_seconds
                ),
            )
            return await reconciler.reconcile()
    finally:
        await notifier.close()
        await engine.dispose()


# ── Celery task definitions ──────────────────────────────────────────────


@celery.task(
    name=PROCESS_EXPORT_TASK,
    bind=True,
    acks_late=True,
    max_retries=settings.export_task_max_retries,
)
def process_export_job(self, payload: dict) -> dict:
    """Consume one export task.

    Processing failures are recorded on the job and the task completes
    normally. Job store errors and refused connections are retried.
    """
    task = ExportTask.model_validate(payload)
    try:
        return asyncio.run(_process_export_job_async(task))
    except (SQLAlchemyError, OSError) as exc:
        logger.exception("Job store unavailable while processing export %s", task.job_id)
        raise self.retry(exc=exc, countdown=settings.export_task_retry_delay_seconds)


@celery.task(name="inventra.modules.export.tasks.reconcile_stale_exports")
def reconcile_stale_exports() -> dict:
    """Re-dispatch stalled PENDING jobs and fail timed-out PROCESSING jobs."""
    return asyncio.run(_reconcile_stale_exports_async())
