"""
Service Error Taxonomy

Every failure raised by the service layer derives from ServiceError and
carries a stable machine-readable error code plus the HTTP status it maps to.
Routers translate these into HTTPException responses via raise_http_error.
"""

import logging
from typing import NoReturn

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base exception for service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class ValidationError(ServiceError):
    """Malformed or out-of-range input. Always caller-fixable."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class AuthenticationError(ServiceError):
    """Missing or invalid principal."""

    def __init__(
        self,
        message: str = "Authentication credentials were not provided or are invalid.",
        error_code: str = "NOT_AUTHENTICATED",
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class AuthzError(ServiceError):
    """Authenticated principal is not allowed to perform the action."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(
            message=reason,
            error_code="FORBIDDEN",
            status_code=status.HTTP_403_FORBIDDEN,
        )


class NotFoundError(ServiceError):
    """Referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: object | None = None):
        self.entity = entity
        self.entity_id = entity_id
        message = f"{entity} {entity_id} not found" if entity_id else f"{entity} not found"
        super().__init__(
            message=message,
            error_code=f"{entity.upper()}_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
        )


class ConflictError(ServiceError):
    """An invariant would be violated (duplicate pending application, duplicate email)."""

    def __init__(self, message: str, error_code: str = "CONFLICT"):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_409_CONFLICT,
        )


class StorageConsistencyError(ServiceError):
    """Blob and metadata row disagree, or a compensating delete failed."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="STORAGE_CONSISTENCY_ERROR",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


class TransientError(ServiceError):
    """Persistence or storage is unavailable. Safe for the caller to retry."""

    def __init__(self, message: str = "The service is temporarily unavailable. Please retry."):
        super().__init__(
            message=message,
            error_code="TRANSIENT_ERROR",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


# User-visible messages stay generic for server-side failures
_GENERIC_SERVER_MESSAGE = "An unexpected error occurred."


def raise_http_error(e: ServiceError) -> NoReturn:
    """Convert a service error into an HTTPException."""
    message = e.message
    if e.status_code >= 500:
        logger.error(f"{e.error_code}: {e.message}")
        message = _GENERIC_SERVER_MESSAGE
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": message,
        },
    ) from e


def raise_internal_error(e: Exception, context: str) -> NoReturn:
    """Log an unexpected exception and raise a generic 500."""
    logger.exception(f"Error {context}: {e}")
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": _GENERIC_SERVER_MESSAGE,
        },
    ) from e


__all__ = [
    "ServiceError",
    "ValidationError",
    "AuthenticationError",
    "AuthzError",
    "NotFoundError",
    "ConflictError",
    "StorageConsistencyError",
    "TransientError",
    "raise_http_error",
    "raise_internal_error",
]
