"""Domain exceptions raised by services and mapped to HTTP responses by the API layer."""

from typing import Any


class DomainError(Exception):
    """Base class for business-rule failures.

    ``extra`` carries additional JSON fields returned next to ``detail``.
    """

    status_code: int = 400

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    """The request clashes with existing state (duplicate name, order already paid...)."""

    status_code = 400


class ValidationFailed(DomainError):
    status_code = 400


class ForbiddenError(DomainError):
    status_code = 403


class NotConfiguredError(DomainError):
    """A provider integration is missing its credentials."""

    status_code = 500


class ProviderError(DomainError):
    """An upstream provider (PayPal, Stripe, Cloudinary...) rejected or failed a call."""

    status_code = 502
