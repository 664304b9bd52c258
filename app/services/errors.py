"""
Service-layer error taxonomy.

Services raise these; app.api.errors maps them to HTTP responses.
"""

from typing import Any

ERROR_NOT_FOUND = "NOT_FOUND"
ERROR_VALIDATION = "VALIDATION"
ERROR_INTERNAL = "INTERNAL"


class ServiceError(Exception):
    """Base class for errors surfaced to API callers."""

    code: str = ERROR_INTERNAL
    status_code: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(ServiceError):
    code = ERROR_NOT_FOUND
    status_code = 404


class ValidationError(ServiceError):
    code = ERROR_VALIDATION
    status_code = 400


class InvalidTransitionError(ValidationError):
    """Lead status change rejected by the transition table."""

    def __init__(self, from_status: str, to_status: str, allowed: list[str]):
        super().__init__(
            f"Invalid status transition from {from_status} to {to_status}",
            details={"valid_transitions": allowed},
        )
        self.from_status = from_status
        self.to_status = to_status
        self.allowed = allowed


class InternalError(ServiceError):
    code = ERROR_INTERNAL
    status_code = 500
