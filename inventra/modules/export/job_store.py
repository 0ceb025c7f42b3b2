"""Export job persistence.

``ExportJobStore`` is the contract the request handler, worker and
reconciler depend on. Every write commits immediately so each status
transition is durable on return. Transitions are conditional updates
guarded on the current status, which keeps COMPLETED and FAILED absorbing
even when two deliveries of the same task race.
"""

from __future__ import annotations

import abc
import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from inventra.models.enums import (
    ACTIVE_EXPORT_STATUSES,
    ExportCategory,
    ExportFormat,
    ExportJobStatus,
)
from inventra.models.export_job import ERROR_MESSAGE_MAX_LENGTH, ExportJob

logger = logging.getLogger(__name__)


class ExportJobStore(abc.ABC):
    """Persistence operations for export jobs."""

    @abc.abstractmethod
    async def create(
        self,
        owner_id: uuid.UUID,
        category: ExportCategory,
        export_format: ExportFormat,
        created_at: datetime | None = None,
    ) -> ExportJob:
        """Persist a new PENDING job."""

    @abc.abstractmethod
    async def find_by_id(self, job_id: uuid.UUID) -> ExportJob | None:
        """Return the job or None."""

    @abc.abstractmethod
    async def find_by_owner(self, owner_id: uuid.UUID) -> list[ExportJob]:
        """Return the owner's jobs, newest first."""

    @abc.abstractmethod
    async def mark_processing(self, job_id: uuid.UUID) -> ExportJob | None:
        """Move a PENDING or PROCESSING job to PROCESSING.

        Returns None when the job is missing or already terminal.
        """

    @abc.abstractmethod
    async def complete(self, job_id: uuid.UUID, file_url: str) -> ExportJob | None:
        """Record COMPLETED with the artifact URL. None if already terminal."""

    @abc.abstractmethod
    async def fail(self, job_id: uuid.UUID, error_message: str) -> ExportJob | None:
        """Record FAILED with the cause. None if already terminal."""

    @abc.abstractmethod
    async def touch(self, job_id: uuid.UUID) -> None:
        """Refresh updated_at on a non-terminal job."""

    @abc.abstractmethod
    async def find_stale(
        self, status: ExportJobStatus, updated_before: datetime
    ) -> list[ExportJob]:
        """Return jobs in ``status`` not updated since ``updated_before``."""


class SqlAlchemyExportJobStore(ExportJobStore):
    """ExportJobStore backed by the ``export_jobs`` table."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ------------------------------------------------------------------
    # Creation and reads
    # ------------------------------------------------------------------

    async def create(
        self,
        owner_id: uuid.UUID,
        category: ExportCategory,
        export_format: ExportFormat,
        created_at: datetime | None = None,
    ) -> ExportJob:
        now = created_at or datetime.now(UTC)
        job = ExportJob(
            id=uuid.uuid4(),
            owner_id=owner_id,
            category=category,
            export_format=export_format,
            status=ExportJobStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        self.session.add(job)
        await self.session.commit()
        return job

    async def find_by_id(self, job_id: uuid.UUID) -> ExportJob | None:
        result = await self.session.execute(
            select(ExportJob)
            .where(ExportJob.id == job_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_by_owner(self, owner_id: uuid.UUID) -> list[ExportJob]:
        result = await self.session.execute(
            select(ExportJob)
            .where(ExportJob.owner_id == owner_id)
            .order_by(ExportJob.created_at.desc(), ExportJob.id.desc())
        )
        return list(result.scalars().all())

    async def find_stale(
        self, status: ExportJobStatus, updated_before: datetime
    ) -> list[ExportJob]:
        result = await self.session.execute(
            select(ExportJob)
            .where(
                ExportJob.status == status,
                ExportJob.updated_at < updated_before,
            )
            .order_by(ExportJob.updated_at.asc())
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def mark_processing(self, job_id: uuid.UUID) -> ExportJob | None:
        return await self._transition(
            job_id,
            status=ExportJobStatus.PROCESSING,
            file_url=None,
            error_message=None,
        )

    async def complete(self, job_id: uuid.UUID, file_url: str) -> ExportJob | None:
        return await self._transition(
            job_id,
            status=ExportJobStatus.COMPLETED,
            file_url=file_url,
            error_message=None,
        )

    async def fail(self, job_id: uuid.UUID, error_message: str) -> ExportJob | None:
        return await self._transition(
            job_id,
            status=ExportJobStatus.FAILED,
            file_url=None,
            error_message=error_message[:ERROR_MESSAGE_MAX_LENGTH],
        )

    async def touch(self, job_id: uuid.UUID) -> None:
        await self.session.execute(
            update(ExportJob)
            .where(
                ExportJob.id == job_id,
                ExportJob.status.in_(ACTIVE_EXPORT_STATUSES),
            )
            .values(updated_at=datetime.now(UTC))
        )
        await self.session.commit()

    async def _transition(
        self,
        job_id: uuid.UUID,
        status: ExportJobStatus,
        file_url: str | None,
        error_message: str | None,
    ) -> ExportJob | None:
        """Apply a status change only while the job is still active."""
        result = await self.session.execute(
            update(ExportJob)
            .where(
                ExportJob.id == job_id,
                ExportJob.status.in_(ACTIVE_EXPORT_STATUSES),
            )
            .values(
                status=status,
                file_url=file_url,
                error_message=error_message,
                updated_at=datetime.now(UTC),
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()

        if result.rowcount == 0:
            logger.debug("Export job %s not transitioned to %s", job_id, status.value)
            return None
        return await self.find_by_id(job_id)
