"""
Base exception classes for application-wide error handling.

This module provides a standardized exception hierarchy that enables:
- Consistent error responses across the application
- Machine-readable error codes for client handling
- A single place to decide the HTTP status of a domain failure

Exception Hierarchy:
    BaseApplicationError (base)                 500
    ├── ValidationError - Invalid arguments     400
    ├── PermissionDeniedError - Unauthorized    403
    ├── NotFoundError - Resource not found      404
    ├── ConflictError - Concurrent write clash  409
    └── StorageError - Transaction failed       503

Usage:
    from core.exceptions import ValidationError, NotFoundError

    # Raise with message only
    raise ValidationError("Message content cannot be empty")

    # Raise with error code for client handling
    raise ValidationError("Cannot message yourself", error_code="SAME_USER")

    # Convert to dict for API response
    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=e.status_code)

Note:
    These exceptions are for domain/business logic errors.
    DRF handles API-layer exceptions (serialization, authentication, etc.).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, metadata, etc.)
        status_code: HTTP status used by core.exception_handler
    """

    default_error_code: str = "APPLICATION_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "Message not found",
                "error_code": "MESSAGE_NOT_FOUND",
                "details": {"message_id": 123}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for:
    - Self-conversation requests
    - Empty content on a text message
    - Reply targets outside the conversation
    - Unknown reaction glyphs

    Note:
        Terminal: callers must not retry with the same arguments.
    """

    default_error_code: str = "VALIDATION_ERROR"
    status_code: int = 400


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    Example:
        raise NotFoundError(
            f"Message {message_id} not found",
            error_code="MESSAGE_NOT_FOUND",
            details={"message_id": message_id},
        )
    """

    default_error_code: str = "NOT_FOUND"
    status_code: int = 404


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when the caller lacks permission for an operation.

    Use for:
    - Non-admin callers on the admin messaging path
    - Readers or reactors that are not participants (and not admins)
    - Privacy settings that refuse direct messages

    Note:
        For authentication failures (missing/invalid token), DRF's
        AuthenticationFailed applies. Use this for authorization failures.
    """

    default_error_code: str = "PERMISSION_DENIED"
    status_code: int = 403


class ConflictError(BaseApplicationError):
    """
    Raised when an operation collides with a concurrent write.

    The conversation registry absorbs these internally by re-reading;
    they only surface if a caller opts out of the retry loop.
    """

    default_error_code: str = "CONFLICT"
    status_code: int = 409


class StorageError(BaseApplicationError):
    """
    Raised when a transaction could not commit.

    Callers should retry the whole logical operation, never re-apply
    partial steps.
    """

    default_error_code: str = "STORAGE_FAILURE"
    status_code: int = 503
