# Import all models so SQLAlchemy metadata is populated for Alembic autogenerate
from inventra.models.enums import ExportCategory, ExportFormat, ExportJobStatus
from inventra.models.export_job import ExportJob
from inventra.models.product import Product
from inventra.models.stock import Stock
from inventra.models.warehouse import Warehouse

__all__ = [
    "ExportCategory",
    "ExportFormat",
    "ExportJob",
    "ExportJobStatus",
    "Product",
    "Stock",
    "Warehouse",
]
