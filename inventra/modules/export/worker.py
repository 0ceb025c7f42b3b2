"""Export worker: drives one export job through its state machine.

PENDING -> PROCESSING -> COMPLETED | FAILED

``run_pipeline`` performs fetch, generate and upload and reports what
happened as an ``ExportOutcome``; ``handle`` owns the status writes around
it. Processing errors become FAILED jobs. Job store errors propagate so
the task channel can redeliver.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from inventra.models.enums import ExportCategory, ExportFormat
from inventra.models.export_job import ExportJob
from inventra.modules.export.constants import (
    CATEGORY_SHEET_NAMES,
    EXPORT_OBJECT_PREFIX,
    EXPORT_TIMESTAMP_FORMAT,
    FORMAT_CONTENT_TYPES,
    FORMAT_EXTENSIONS,
)
from inventra.modules.export.job_store import ExportJobStore
from inventra.modules.export.notifier import StatusNotifier
from inventra.modules.export.schemas import ExportStatusUpdate, ExportTask
from inventra.modules.export.spreadsheet import generate_spreadsheet
from inventra.modules.export.storage import ObjectStorage
from inventra.modules.inventory.data_source import BulkDataSource

logger = logging.getLogger(__name__)

ArtifactGenerator = Callable[[Sequence[Mapping[str, Any]], str], bytes]


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExportCompleted:
    file_url: str


@dataclass(frozen=True)
class ExportFailed:
    reason: str


ExportOutcome = ExportCompleted | ExportFailed


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


def build_export_filename(
    category: ExportCategory, export_format: ExportFormat, at: datetime
) -> str:
    """e.g. ``product_2024_01_15_10_30_00.xlsx``."""
    timestamp = at.strftime(EXPORT_TIMESTAMP_FORMAT)
    return f"{category.value.lower()}_{timestamp}{FORMAT_EXTENSIONS[export_format]}"


def build_object_key(owner_id: uuid.UUID, filename: str) -> str:
    return f"{EXPORT_OBJECT_PREFIX}/{owner_id}/{filename}"


def describe_failure(exc: BaseException) -> str:
    message = str(exc).strip()
    return message or exc.__class__.__name__


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Worker
# ---------------------------------------------------------------------------


class ExportWorker:
    def __init__(
        self,
        store: ExportJobStore,
        data_source: BulkDataSource,
        storage: ObjectStorage,
        notifier: StatusNotifier,
        generator: ArtifactGenerator = generate_spreadsheet,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.data_source = data_source
        self.storage = storage
        self.notifier = notifier
        self.generator = generator
        self.clock = clock

    async def handle(self, task: ExportTask) -> ExportJob | None:
        """Process one delivery of ``task``.

        Safe to call more than once for the same job: a delivery that finds
        the job already terminal does nothing and returns the job as stored.
        """
        job = await self.store.mark_processing(task.job_id)
        if job is None:
            existing = await self.store.find_by_id(task.job_id)
            if existing is None:
                logger.warning("Export job %s not found; dropping task", task.job_id)
            else:
                logger.info(
                    "Export job %s already %s; ignoring redelivered task",
                    task.job_id,
                    existing.status.value,
                )
            return existing

        await self.notifier.publish(ExportStatusUpdate.for_job(job))
        logger.info(
            "Processing export job %s: category=%s format=%s owner=%s",
            task.job_id,
            task.category.value,
            task.export_format.value,
            task.owner_id,
        )

        outcome = await self.run_pipeline(task)
        return await self.record_outcome(task.job_id, outcome)

    async def run_pipeline(self, task: ExportTask) -> ExportOutcome:
        """Fetch, generate and upload. Never raises for processing errors."""
        try:
            records = await self.data_source.fetch_all(task.category)
            artifact = self.generator(records, CATEGORY_SHEET_NAMES[task.category])
            filename = build_export_filename(task.category, task.export_format, self.clock())
            key = build_object_key(task.owner_id, filename)
            file_url = await asyncio.to_thread(
                self.storage.put,
                key,
                artifact,
                FORMAT_CONTENT_TYPES[task.export_format],
            )
        except Exception as exc:
            logger.warning("Export job %s failed: %s", task.job_id, exc, exc_info=True)
            return ExportFailed(reason=describe_failure(exc))
        return ExportCompleted(file_url=file_url)

    async def record_outcome(self, job_id: uuid.UUID, outcome: ExportOutcome) -> ExportJob | None:
        """Persist the terminal status for ``outcome`` and broadcast it."""
        if isinstance(outcome, ExportCompleted):
            job = await self.store.complete(job_id, outcome.file_url)
        else:
            job = await self.store.fail(job_id, outcome.reason)

        if job is None:
            # Another delivery (or the reconciler) reached a terminal state first
            current = await self.store.find_by_id(job_id)
            logger.info(
                "Discarding %s outcome for export job %s; already %s",
                type(outcome).__name__,
                job_id,
                current.status.value if current else "missing",
            )
            return current

        await self.notifier.publish(ExportStatusUpdate.for_job(job))
        logger.info("Export job %s finished with status %s", job_id, job.status.value)
        return job
