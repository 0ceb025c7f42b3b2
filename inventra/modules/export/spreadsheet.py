"""XLSX artifact generation for export records."""

from __future__ import annotations

import io
from collections.abc import Mapping, Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any

from openpyxl import Workbook

from inventra.modules.export.constants import EMPTY_EXPORT_MESSAGE
from inventra.modules.export.errors import EmptyExportError

# Excel limits sheet titles to 31 characters
_MAX_SHEET_TITLE = 31


def _cell_value(value: Any) -> Any:
    """Convert a record value into something openpyxl can write."""
    if value is None:
        return ""
    if isinstance(value, bool | int | float):
        return value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        # openpyxl rejects tz-aware datetimes
        return value.replace(tzinfo=None)
    return str(value)


def generate_spreadsheet(records: Sequence[Mapping[str, Any]], sheet_name: str) -> bytes:
    """Render ``records`` as a single-sheet workbook.

    The header row holds the keys of the first record; each subsequent row
    holds one record's values in the same order. Raises EmptyExportError
    when there is nothing to write.
    """
    if not records:
        raise EmptyExportError(EMPTY_EXPORT_MESSAGE)

    columns = list(records[0].keys())

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_name[:_MAX_SHEET_TITLE]

    sheet.append(columns)
    for record in records:
        sheet.append([_cell_value(record.get(column)) for column in columns])

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
