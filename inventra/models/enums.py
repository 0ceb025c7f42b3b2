import enum


class ExportCategory(str, enum.Enum):
    PRODUCT = "PRODUCT"
    STOCK = "STOCK"
    WAREHOUSE = "WAREHOUSE"


class ExportFormat(str, enum.Enum):
    XLSX = "XLSX"


class ExportJobStatus(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_EXPORT_STATUSES


TERMINAL_EXPORT_STATUSES = frozenset({ExportJobStatus.COMPLETED, ExportJobStatus.FAILED})
ACTIVE_EXPORT_STATUSES = frozenset({ExportJobStatus.PENDING, ExportJobStatus.PROCESSING})
