"""Errors raised by export pipeline collaborators."""


class ExportError(Exception):
    """Base class for failures while producing an export artifact."""


class EmptyExportError(ExportError):
    """The requested category has no records to export."""


class StorageUploadError(ExportError):
    """The artifact could not be written to object storage."""
