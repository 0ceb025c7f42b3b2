"""ExportJob model: asynchronous inventory export job tracking."""

from __future__ import annotations

import uuid

from sqlalchemy import CheckConstraint, Index, String, Text, Uuid
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from inventra.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from inventra.models.enums import ExportCategory, ExportFormat, ExportJobStatus

ERROR_MESSAGE_MAX_LENGTH = 500


class ExportJob(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "export_jobs"

    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    # Export specification
    category: Mapped[ExportCategory] = mapped_column(
        SQLAlchemyEnum(ExportCategory, name="exportcategory"),
        nullable=False,
    )
    export_format: Mapped[ExportFormat] = mapped_column(
        SQLAlchemyEnum(ExportFormat, name="exportformat"),
        nullable=False,
    )

    # Status
    status: Mapped[ExportJobStatus] = mapped_column(
        SQLAlchemyEnum(ExportJobStatus, name="exportjobstatus"),
        nullable=False,
        default=ExportJobStatus.PENDING,
    )

    # Outcome: file_url only when COMPLETED, error_message only when FAILED
    file_url: Mapped[str | None] = mapped_column(String(1024))
    error_message: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (
        Index("ix_export_jobs_owner_created", "owner_id", "created_at"),
        Index("ix_export_jobs_status_updated", "status", "updated_at"),
        CheckConstraint(
            "(status = 'COMPLETED' AND file_url IS NOT NULL AND error_message IS NULL)"
            " OR (status = 'FAILED' AND file_url IS NULL AND error_message IS NOT NULL)"
            " OR (status IN ('PENDING', 'PROCESSING')"
            " AND file_url IS NULL AND error_message IS NULL)",
            name="ck_export_jobs_outcome",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<ExportJob id={self.id} owner={self.owner_id} "
            f"category={self.category} status={self.status}>"
        )
