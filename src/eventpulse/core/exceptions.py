"""Custom exceptions for EventPulse.

This module provides the exception hierarchy with:
- Structured error information
- Machine-readable error codes
- Contextual details for debugging

Unresolvable event times are deliberately absent from this hierarchy: they
resolve to ``None`` and are excluded from classification instead of raising.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Machine-readable error codes."""

    # General errors (1xxx)
    UNKNOWN_ERROR = "EP1001"

    # Validation errors (4xxx)
    VALIDATION_ERROR = "EP4000"
    INVALID_RANGE = "EP4001"
    INVALID_TIMEZONE = "EP4002"

    # Batching errors (5xxx)
    BATCH_ERROR = "EP5000"
    BATCH_ABANDONED = "EP5001"

    # External API errors (7xxx)
    EXTERNAL_API_ERROR = "EP7000"
    API_TIMEOUT = "EP7001"
    INVALID_RESPONSE = "EP7002"


class EventPulseException(Exception):
    """Base exception for all EventPulse errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code.
        details: Additional context for debugging.
    """

    message: str = "An unexpected error occurred"
    error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR

    def __init__(
        self,
        message: str | None = None,
        *,
        error_code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize exception.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            details: Additional context for debugging.
        """
        self.message = message or self.__class__.message
        self.error_code = error_code or self.__class__.error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for structured logs and callers.

        Returns:
            Dictionary with error information.
        """
        return {
            "error": {
                "code": self.error_code.value,
                "message": self.message,
                "details": self.details if self.details else None,
            }
        }

    def __str__(self) -> str:
        """String representation including error code."""
        return f"[{self.error_code.value}] {self.message}"

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code.value}, "
            f"details={self.details!r}"
            f")"
        )


# ============================================================================
# Validation Exceptions
# ============================================================================


class ValidationError(EventPulseException):
    """Validation-related errors."""

    message = "Validation error"
    error_code = ErrorCode.VALIDATION_ERROR

    def __init__(
        self,
        message: str | None = None,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize validation error.

        Args:
            message: Error message.
            field: Name of the field that failed validation.
            value: The invalid value.
            constraint: Description of the constraint that was violated.
            **kwargs: Additional arguments passed to parent.
        """
        details = kwargs.pop("details", {}) or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        if constraint:
            details["constraint"] = constraint

        super().__init__(message, details=details, **kwargs)


class InvalidRangeError(ValidationError):
    """A date range is missing, empty or inverted."""

    message = "Invalid date range"
    error_code = ErrorCode.INVALID_RANGE


class InvalidTimezoneError(ValidationError):
    """Display timezone is not a known IANA zone."""

    message = "Unknown timezone"
    error_code = ErrorCode.INVALID_TIMEZONE


# ============================================================================
# Batching Exceptions
# ============================================================================


class BatchError(EventPulseException):
    """Query batching errors."""

    message = "Batched query failed"
    error_code = ErrorCode.BATCH_ERROR


class BatchAbandonedError(BatchError):
    """Pending queries were abandoned before their batch completed."""

    message = "Batched query was abandoned"
    error_code = ErrorCode.BATCH_ABANDONED


# ============================================================================
# External API Exceptions
# ============================================================================


class ExternalAPIError(EventPulseException):
    """External API-related errors."""

    message = "External API error"
    error_code = ErrorCode.EXTERNAL_API_ERROR

    def __init__(
        self,
        message: str,
        source: str,
        *,
        status_code: int | None = None,
        response_body: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize external API error.

        Args:
            message: Error message.
            source: Name of the external API.
            status_code: HTTP status code from the API.
            response_body: Response body from the API (truncated).
            **kwargs: Additional arguments passed to parent.
        """
        self.source = source
        self.api_status_code = status_code

        details = kwargs.pop("details", {}) or {}
        details["source"] = source
        if status_code:
            details["api_status_code"] = status_code
        if response_body:
            details["response_preview"] = response_body[:500]

        super().__init__(message, details=details, **kwargs)


class APITimeoutError(ExternalAPIError):
    """External API request timed out."""

    error_code = ErrorCode.API_TIMEOUT

    def __init__(
        self,
        source: str,
        timeout_seconds: float,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {}) or {}
        details["timeout_seconds"] = timeout_seconds
        super().__init__(
            f"Request to {source} timed out after {timeout_seconds}s",
            source,
            details=details,
            **kwargs,
        )


class InvalidResponseError(ExternalAPIError):
    """External API returned a payload that is not an event list."""

    error_code = ErrorCode.INVALID_RESPONSE
