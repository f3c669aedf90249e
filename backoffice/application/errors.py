"""Service-layer exceptions.

Raised by the application services when a request cannot be honoured.
The API layer renders them as HTTP responses using ``status_code``.
Missing entities are not exceptions: services return ``None``/``False``
and the routes answer 404.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationRejectedError(ServiceError):
    """The request is well-formed but violates a business rule."""

    status_code = 400


class OrderRejectedError(ValidationRejectedError):
    """An order could not be created; nothing was persisted."""


class InvalidReportParameterError(ValidationRejectedError):
    """A report parameter (such as ``groupBy``) is outside its allowed values."""


class ConflictError(ServiceError):
    status_code = 409


class ProductInUseError(ConflictError):
    """The product is referenced by order lines and must be kept."""
