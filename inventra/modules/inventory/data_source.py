"""Read-only bulk access to inventory data for exports."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from inventra.exceptions import ValidationException
from inventra.models.enums import ExportCategory
from inventra.models.product import Product
from inventra.models.stock import Stock
from inventra.models.warehouse import Warehouse

logger = logging.getLogger(__name__)


class BulkDataSource(Protocol):
    async def fetch_all(self, category: ExportCategory) -> list[dict[str, Any]]: ...


def _product_statement() -> Select:
    return select(
        Product.id,
        Product.code,
        Product.name,
        Product.description,
        Product.price,
        Product.category,
        Product.brand,
        Product.sku,
        Product.active,
        Product.created_at,
        Product.updated_at,
    ).order_by(Product.code)


def _warehouse_statement() -> Select:
    return select(
        Warehouse.id,
        Warehouse.code,
        Warehouse.name,
        Warehouse.description,
        Warehouse.address,
        Warehouse.city,
        Warehouse.state_province,
        Warehouse.postal_code,
        Warehouse.country,
        Warehouse.active,
        Warehouse.created_at,
        Warehouse.updated_at,
    ).order_by(Warehouse.code)


def _stock_statement() -> Select:
    return (
        select(
            Stock.id,
            Product.code.label("product_code"),
            Product.name.label("product_name"),
            Warehouse.code.label("warehouse_code"),
            Warehouse.name.label("warehouse_name"),
            Stock.quantity,
            Stock.min_stock_level,
            Stock.max_stock_level,
            Stock.last_restock_date,
            Stock.created_at,
            Stock.updated_at,
        )
        .join(Product, Stock.product_id == Product.id)
        .join(Warehouse, Stock.warehouse_id == Warehouse.id)
        .order_by(Product.code, Warehouse.code)
    )


_STATEMENTS = {
    ExportCategory.PRODUCT: _product_statement,
    ExportCategory.STOCK: _stock_statement,
    ExportCategory.WAREHOUSE: _warehouse_statement,
}


class InventoryDataSource:
    """Whole-dataset snapshot reads, one flat record per row."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def fetch_all(self, category: ExportCategory) -> list[dict[str, Any]]:
        build_statement = _STATEMENTS.get(category)
        if build_statement is None:
            raise ValidationException(f"Unsupported export category '{category}'")

        result = await self.session.execute(build_statement())
        records = [dict(row._mapping) for row in result]
        logger.debug("Fetched %d %s records for export", len(records), category.value)
        return records
