"""Export service: initiate export jobs, report status, resolve downloads."""

from __future__ import annotations

import logging
import uuid

from inventra.exceptions import NotFoundException, ServiceUnavailableException, ValidationException
from inventra.models.enums import ExportCategory, ExportFormat, ExportJobStatus
from inventra.models.export_job import ExportJob
from inventra.modules.export.channel import ExportTaskChannel
from inventra.modules.export.job_store import ExportJobStore
from inventra.modules.export.schemas import ExportTask

logger = logging.getLogger(__name__)


def _parse_format(export_format: str) -> ExportFormat:
    try:
        return ExportFormat(export_format.strip().upper())
    except ValueError as exc:
        raise ValidationException(
            f"Format '{export_format}' is not supported. "
            f"Allowed formats: {[f.value for f in ExportFormat]}",
            details=[{"field": "format", "message": "unsupported export format"}],
        ) from exc


def _parse_category(category: ExportCategory | str) -> ExportCategory:
    try:
        return ExportCategory(category)
    except ValueError as exc:
        raise ValidationException(
            f"Category '{category}' is not supported. "
            f"Allowed categories: {[c.value for c in ExportCategory]}",
            details=[{"field": "category", "message": "unsupported export category"}],
        ) from exc


class ExportService:
    def __init__(self, store: ExportJobStore, channel: ExportTaskChannel) -> None:
        self.store = store
        self.channel = channel

    # ------------------------------------------------------------------
    # Initiate export
    # ------------------------------------------------------------------

    async def initiate_export(
        self,
        owner_id: uuid.UUID,
        category: ExportCategory | str,
        export_format: str,
    ) -> uuid.UUID:
        """Create a PENDING job and enqueue exactly one task for it.

        The job is committed before the task is enqueued, so the returned id
        is queryable immediately and a worker never sees a missing row.
        """
        parsed_category = _parse_category(category)
        parsed_format = _parse_format(export_format)

        job = await self.store.create(
            owner_id=owner_id,
            category=parsed_category,
            export_format=parsed_format,
        )

        try:
            self.channel.enqueue(ExportTask.for_job(job))
        except Exception as exc:
            logger.exception(
                "Export job %s persisted but could not be enqueued; left PENDING", job.id
            )
            raise ServiceUnavailableException(
                "Export job was recorded but could not be queued for processing.",
                details=[{"field": "jobId", "message": str(job.id)}],
            ) from exc

        logger.info(
            "Created export job %s: category=%s format=%s for owner=%s",
            job.id,
            parsed_category.value,
            parsed_format.value,
            owner_id,
        )
        return job.id

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_status(
        self,
        job_id: uuid.UUID,
        owner_id: uuid.UUID | None = None,
    ) -> ExportJob:
        """Return the job as persisted. Jobs owned by someone else are not found."""
        job = await self.store.find_by_id(job_id)
        if job is None or (owner_id is not None and job.owner_id != owner_id):
            raise NotFoundException(f"Export job {job_id} not found")
        return job

    async def get_download_location(
        self,
        job_id: uuid.UUID,
        owner_id: uuid.UUID | None = None,
    ) -> str:
        """Return the artifact URL of a COMPLETED job.

        Missing jobs and jobs that are not COMPLETED are both reported as
        not found; use get_status to tell them apart.
        """
        job = await self.store.find_by_id(job_id)
        if (
            job is None
            or (owner_id is not None and job.owner_id != owner_id)
            or job.status != ExportJobStatus.COMPLETED
            or not job.file_url
        ):
            raise NotFoundException(f"No completed export available for job {job_id}")
        return job.file_url

    async def list_jobs_for_owner(self, owner_id: uuid.UUID) -> list[ExportJob]:
        """All of the owner's jobs, most recent first."""
        return await self.store.find_by_owner(owner_id)
