"""Inventory schema

Revision ID: 001
Revises:
Create Date: 2024-01-08

Creates: products, warehouses, stocks
"""

from collections.abc import Sequence

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # ── 1. Products ───────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE products (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            code VARCHAR(50) NOT NULL UNIQUE,
            name VARCHAR(255) NOT NULL,
            description VARCHAR(1000),
            price NUMERIC(12, 2) NOT NULL,
            category VARCHAR(100),
            brand VARCHAR(100),
            sku VARCHAR(100) UNIQUE,
            active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)

    # ── 2. Warehouses ─────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE warehouses (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            code VARCHAR(50) NOT NULL UNIQUE,
            name VARCHAR(255) NOT NULL,
            description VARCHAR(1000),
            address VARCHAR(255),
            city VARCHAR(100),
            state_province VARCHAR(100),
            postal_code VARCHAR(20),
            country VARCHAR(100),
            active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)

    # ── 3. Stocks ─────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE stocks (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            product_id UUID NOT NULL REFERENCES products(id) ON DELETE CASCADE,
            warehouse_id UUID NOT NULL REFERENCES warehouses(id) ON DELETE CASCADE,
            quantity INTEGER NOT NULL DEFAULT 0,
            min_stock_level INTEGER NOT NULL DEFAULT 0,
            max_stock_level INTEGER,
            last_restock_date TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_stocks_product_warehouse UNIQUE (product_id, warehouse_id)
        );
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS stocks;")
    op.execute("DROP TABLE IF EXISTS warehouses;")
    op.execute("DROP TABLE IF EXISTS products;")
