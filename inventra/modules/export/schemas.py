"""Pydantic v2 schemas for the export API, task messages, and status events."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from inventra.models.enums import ExportCategory, ExportFormat, ExportJobStatus


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ExportCreateRequest(BaseModel):
    category: ExportCategory
    export_format: str = Field(default=ExportFormat.XLSX.value, alias="format", max_length=16)

    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ExportAcceptedResponse(BaseModel):
    job_id: uuid.UUID = Field(alias="jobId")
    message: str

    model_config = ConfigDict(populate_by_name=True)


class ExportJobResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    owner_id: uuid.UUID
    category: ExportCategory
    export_format: ExportFormat
    status: ExportJobStatus
    file_url: str | None = None
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class ExportTask(BaseModel):
    """Queue payload instructing a worker to process one export job."""

    job_id: uuid.UUID
    owner_id: uuid.UUID
    category: ExportCategory
    export_format: ExportFormat

    @classmethod
    def for_job(cls, job) -> ExportTask:
        return cls(
            job_id=job.id,
            owner_id=job.owner_id,
            category=job.category,
            export_format=job.export_format,
        )


class ExportStatusUpdate(BaseModel):
    """Status change broadcast on the per-job notification channel."""

    job_id: uuid.UUID = Field(alias="jobId")
    status: ExportJobStatus
    file_url: str | None = Field(default=None, alias="fileUrl")
    error_message: str | None = Field(default=None, alias="errorMessage")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def for_job(cls, job) -> ExportStatusUpdate:
        return cls(
            job_id=job.id,
            status=job.status,
            file_url=job.file_url,
            error_message=job.error_message,
            updated_at=job.updated_at,
        )
