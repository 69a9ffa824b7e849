"""Typed service errors.

Domain code raises these instead of ``HTTPException`` so that the same
operations can be driven from HTTP handlers, scripts and tests. The HTTP
translation lives in ``libs.common.error_handler``.
"""

from typing import Any, Optional


class ServiceError(Exception):
    """Base class for errors surfaced to callers."""

    status_code: int = 500
    kind: str = "service_error"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"detail": self.message, "error": self.kind}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(ServiceError):
    """Malformed input to a lifecycle operation."""

    status_code = 422
    kind = "validation_error"


class NotFoundError(ServiceError):
    status_code = 404
    kind = "not_found"


class ForbiddenError(ServiceError):
    status_code = 403
    kind = "forbidden"


class ConflictError(ServiceError):
    """Concurrent modification detected while writing."""

    status_code = 409
    kind = "conflict"

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        retryable: bool = False,
    ):
        super().__init__(message, details)
        self.retryable = retryable


class PersistenceError(ServiceError):
    """Underlying storage failure. Always fatal to the current operation."""

    status_code = 503
    kind = "persistence_error"
