"""Domain exceptions rendered by the app as ``{"error": {...}}`` envelopes."""

from __future__ import annotations


class AppException(Exception):
    """Base for errors that map to a client-facing status code.

    Subclasses pin ``code`` and ``status_code``. ``details`` is a list of
    ``{"field", "message"}`` dicts copied into the response envelope.
    """

    code: str = "APP_ERROR"
    status_code: int = 500

    def __init__(self, message: str, details: list[dict] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or []


class NotFoundException(AppException):
    code = "NOT_FOUND"
    status_code = 404


class UnauthorizedException(AppException):
    code = "UNAUTHORIZED"
    status_code = 401


class ValidationException(AppException):
    code = "VALIDATION_ERROR"
    status_code = 422


class ServiceUnavailableException(AppException):
    """A dependency (broker, storage) refused the request; safe to retry later."""

    code = "SERVICE_UNAVAILABLE"
    status_code = 503
