"""Export formats, sheet names, object keys, and file naming."""

from __future__ import annotations

from inventra.models.enums import ExportCategory, ExportFormat

# ---------------------------------------------------------------------------
# Content types per export format
# ---------------------------------------------------------------------------

FORMAT_CONTENT_TYPES: dict[ExportFormat, str] = {
    ExportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}

FORMAT_EXTENSIONS: dict[ExportFormat, str] = {
    ExportFormat.XLSX: ".xlsx",
}

# ---------------------------------------------------------------------------
# Sheet name per exported category
# ---------------------------------------------------------------------------

CATEGORY_SHEET_NAMES: dict[ExportCategory, str] = {
    ExportCategory.PRODUCT: "Products",
    ExportCategory.STOCK: "Stocks",
    ExportCategory.WAREHOUSE: "Warehouses",
}

# ---------------------------------------------------------------------------
# Object storage layout
# ---------------------------------------------------------------------------

EXPORT_OBJECT_PREFIX = "exports"
EXPORT_TIMESTAMP_FORMAT = "%Y_%m_%d_%H_%M_%S"

# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

EXPORT_ACCEPTED_MESSAGE = "Export job initiated successfully"
EXPORT_TIMED_OUT_MESSAGE = "Export timed out while processing"
EMPTY_EXPORT_MESSAGE = "No data to export"
