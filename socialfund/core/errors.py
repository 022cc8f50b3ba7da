"""Application error hierarchy mapped onto HTTP status codes."""
from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base class for errors that are safe to report back to API callers."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, *, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"message": self.message, "code": self.code}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(AppError):
    """Request parameters are malformed or out of range."""

    status_code = 400
    code = "VALIDATION_ERROR"


class AuthenticationError(AppError):
    """The caller did not identify an owner."""

    status_code = 401
    code = "AUTHENTICATION_ERROR"

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class NotFoundError(AppError):
    """A referenced resource does not exist for the caller."""

    status_code = 404
    code = "NOT_FOUND_ERROR"


class BusinessError(AppError):
    """The request is well formed but violates a business rule."""

    status_code = 400
    code = "BUSINESS_ERROR"


class ConflictError(AppError):
    """The request clashes with existing state."""

    status_code = 409
    code = "CONFLICT_ERROR"


def error_message(error: BaseException) -> str:
    """Return the user facing message for ``error``."""

    if isinstance(error, AppError):
        return error.message
    text = str(error)
    return text or error.__class__.__name__


__all__ = [
    "AppError",
    "AuthenticationError",
    "BusinessError",
    "ConflictError",
    "NotFoundError",
    "ValidationError",
    "error_message",
]
