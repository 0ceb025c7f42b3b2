"""Task channel carrying export tasks from the API to background workers."""

from __future__ import annotations

import abc
import logging

from inventra.config import settings
from inventra.modules.export.schemas import ExportTask

logger = logging.getLogger(__name__)

PROCESS_EXPORT_TASK = "inventra.modules.export.tasks.process_export_job"


class ExportTaskChannel(abc.ABC):
    @abc.abstractmethod
    def enqueue(self, task: ExportTask) -> None:
        """Hand ``task`` to the broker. Raises if the broker rejects it."""


class CeleryExportTaskChannel(ExportTaskChannel):
    """Publishes export tasks to the dedicated Celery export queue."""

    def __init__(self, celery_app=None, queue: str | None = None) -> None:
        if celery_app is None:
            from celery_app import celery as celery_app
        self.celery_app = celery_app
        self.queue = queue or settings.export_queue_name

    def enqueue(self, task: ExportTask) -> None:
        self.celery_app.send_task(
            PROCESS_EXPORT_TASK,
            args=[task.model_dump(mode="json")],
            queue=self.queue,
        )
        logger.info("Enqueued export task for job %s on %s", task.job_id, self.queue)
