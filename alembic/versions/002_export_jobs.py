"""Export jobs table

Revision ID: 002
Revises: 001
Create Date: 2024-01-15

Creates: export_jobs
Enums: exportcategory, exportformat, exportjobstatus
"""

from collections.abc import Sequence

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # ── 1. Create enum types ──────────────────────────────────────────────
    op.execute("""
        CREATE TYPE exportcategory AS ENUM (
            'PRODUCT', 'STOCK', 'WAREHOUSE'
        );
    """)
    op.execute("""
        CREATE TYPE exportformat AS ENUM (
            'XLSX'
        );
    """)
    op.execute("""
        CREATE TYPE exportjobstatus AS ENUM (
            'PENDING', 'PROCESSING', 'COMPLETED', 'FAILED'
        );
    """)

    # ── 2. Create export_jobs table ───────────────────────────────────────
    op.execute("""
        CREATE TABLE export_jobs (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            owner_id UUID NOT NULL,
            category exportcategory NOT NULL,
            export_format exportformat NOT NULL,
            status exportjobstatus NOT NULL DEFAULT 'PENDING',
            file_url VARCHAR(1024),
            error_message TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT ck_export_jobs_outcome CHECK (
                (status = 'COMPLETED' AND file_url IS NOT NULL AND error_message IS NULL)
                OR (status = 'FAILED' AND file_url IS NULL AND error_message IS NOT NULL)
                OR (status IN ('PENDING', 'PROCESSING') AND file_url IS NULL AND error_message IS NULL)
            )
        );
    """)
    op.execute(
        "CREATE INDEX ix_export_jobs_owner_created ON export_jobs (owner_id, created_at);"
    )
    op.execute(
        "CREATE INDEX ix_export_jobs_status_updated ON export_jobs (status, updated_at);"
    )


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS ix_export_jobs_status_updated;")
    op.execute("DROP INDEX IF EXISTS ix_export_jobs_owner_created;")
    op.execute("DROP TABLE IF EXISTS export_jobs;")

    op.execute("DROP TYPE IF EXISTS exportjobstatus;")
    op.execute("DROP TYPE IF EXISTS exportformat;")
    op.execute("DROP TYPE IF EXISTS exportcategory;")
