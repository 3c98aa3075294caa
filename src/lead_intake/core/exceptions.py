"""
Custom exception classes for the lead intake service.
"""

from typing import Any, Dict, List, Optional

from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
)


class BaseIntakeException(Exception):
    """Base exception for all lead intake errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(BaseIntakeException):
    """Raised when an inbound payload is malformed."""
    pass


class MissingFieldsError(ValidationError):
    """Raised when required submission fields are absent."""

    def __init__(self, missing_fields: List[str]):
        self.missing_fields = list(missing_fields)
        super().__init__(
            message=f"Missing required fields: {', '.join(self.missing_fields)}",
            error_code="MISSING_FIELDS",
            details={"missing_fields": self.missing_fields}
        )


class AuthenticationError(BaseIntakeException):
    """Raised when a webhook signature is absent or wrong."""
    pass


class StorageError(BaseIntakeException):
    """Raised when the enrollment store cannot be read or written."""
    pass


class NotificationError(BaseIntakeException):
    """Raised when the SMS provider rejects or fails a send."""
    pass


class ConfigurationError(BaseIntakeException):
    """Raised when configuration is invalid."""
    pass


class HTTPExceptionHandler:
    """Maps intake exceptions to HTTP status codes."""

    EXCEPTION_MAP = {
        ValidationError: HTTP_400_BAD_REQUEST,
        MissingFieldsError: HTTP_400_BAD_REQUEST,
        AuthenticationError: HTTP_401_UNAUTHORIZED,
        StorageError: HTTP_500_INTERNAL_SERVER_ERROR,
        NotificationError: HTTP_502_BAD_GATEWAY,
        ConfigurationError: HTTP_500_INTERNAL_SERVER_ERROR,
    }

    @classmethod
    def status_code_for(cls, exc: Exception) -> int:
        """Resolve the status code for an exception, walking its MRO."""
        for klass in type(exc).__mro__:
            if klass in cls.EXCEPTION_MAP:
                return cls.EXCEPTION_MAP[klass]
        return HTTP_500_INTERNAL_SERVER_ERROR


def create_storage_error(operation: str, reason: str) -> StorageError:
    """Create a storage error with context."""
    return StorageError(
        message=f"Enrollment store {operation} failed: {reason}",
        error_code="STORAGE_FAILED",
        details={"operation": operation, "reason": reason}
    )


def create_notification_error(provider: str, status_code: int | None, reason: str) -> NotificationError:
    """Create a notification error."""
    return NotificationError(
        message=f"SMS provider '{provider}' failed: {reason}",
        error_code="NOTIFICATION_FAILED",
        details={"provider": provider, "status_code": status_code, "reason": reason}
    )
