"""
Exception classes converted into the JSON envelope at the API boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class AppException(Exception):
    """Base exception class for application errors."""

    status_code = 500

    def __init__(self, message: str, error_code: str | None = None, details: dict[str, Any] | None = None):
        self.message = message
        self.error_code = error_code or "APP_ERROR"
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to the response envelope."""
        return {"success": False, "message": self.message}


class ValidationError(AppException):
    """One or more submitted fields violate their rule."""

    status_code = 400

    def __init__(self, errors: list[FieldError], message: str = "Validation failed"):
        self.errors = list(errors)
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details={"fields": [error.field for error in self.errors]},
        )

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "errors": [error.to_dict() for error in self.errors]}


class RateLimitError(AppException):
    """The caller exhausted its request window."""

    status_code = 429

    def __init__(self, message: str, *, retry_after: int, limit: int):
        self.retry_after = retry_after
        self.limit = limit
        super().__init__(
            message=message,
            error_code="RATE_LIMITED",
            details={"retry_after": retry_after, "limit": limit},
        )

    def headers(self) -> dict[str, str]:
        return {
            "Retry-After": str(self.retry_after),
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": "0",
            "RateLimit-Reset": str(self.retry_after),
        }


class DispatchError(AppException):
    """The mail transport failed to accept the message."""

    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message=message, error_code="DISPATCH_ERROR", details=details)


class ConfigurationError(DispatchError):
    """Mail settings are incomplete, so nothing can be dispatched."""

    def __init__(self, message: str, config_key: str | None = None):
        super().__init__(message=message, details={"config_key": config_key})
        self.error_code = "CONFIGURATION_ERROR"
