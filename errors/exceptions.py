"""
Exception classes for the request protection layer.

This module provides the AppException base class, the configuration
error hierarchy raised while exclusion rules and protection features are
being set up, and factory functions for the request-time CSRF rejections.
"""

from typing import Any, List, Optional

from errors.codes import ErrorCode, get_default_status_code


class AppException(Exception):
    """
    Base exception class for all protection-layer errors.

    This exception provides structured error information including:
    - error_code: A standardized error code from the ErrorCode enum
    - message: A human-readable error message
    - status_code: The HTTP status code to return
    - details: Optional additional context (e.g., the offending value)

    Example:
        raise AppException(
            error_code=ErrorCode.CSRF_TOKEN_INVALID,
            message="Invalid CSRF token",
            details={"method": "POST", "path": "/orders"}
        )
    """

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None
    ):
        """
        Initialize an AppException.

        Args:
            error_code: The error code from the ErrorCode enum
            message: A human-readable error message
            status_code: The HTTP status code (defaults to the error code's default)
            details: Optional dictionary with additional error context
        """
        self.error_code = error_code
        self.message = message
        self.status_code = status_code or get_default_status_code(error_code)
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the exception to a dictionary for JSON serialization.

        Returns:
            Dictionary containing error_code, message, and details
        """
        result = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details is not None:
            result["details"] = self.details
        return result

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(error_code={self.error_code.value!r}, "
            f"message={self.message!r}, status_code={self.status_code}, "
            f"details={self.details!r})"
        )


class ConfigurationError(AppException):
    """
    Raised when protection or application configuration fails validation.

    Configuration errors are raised synchronously during setup, before any
    request is served, and are never retried.
    """

    error_code = ErrorCode.INVALID_CONFIGURATION

    def __init__(
        self,
        message: str,
        missing_fields: Optional[List[str]] = None,
        invalid_fields: Optional[dict] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.missing_fields = missing_fields or []
        self.invalid_fields = invalid_fields or {}
        super().__init__(
            error_code=type(self).error_code,
            message=message,
            details=details,
        )
        self.args = (self.format_error_message(),)

    def format_error_message(self) -> str:
        """Format a descriptive error message listing all issues."""
        parts = [self.message]

        if self.missing_fields:
            parts.append(f"\nMissing required fields: {', '.join(self.missing_fields)}")

        if self.invalid_fields:
            invalid_parts = [f"  - {field}: {error}" for field, error in self.invalid_fields.items()]
            parts.append("\nInvalid field values:\n" + "\n".join(invalid_parts))

        return "".join(parts)


class RuleError(ConfigurationError):
    """Base class for errors raised while normalizing an exclusion rule."""


class InvalidPath(RuleError):
    """A rule's path is neither a string nor a non-empty list of strings."""

    error_code = ErrorCode.INVALID_PATH


class InvalidMethod(RuleError):
    """A method token does not match any canonical HTTP verb."""

    error_code = ErrorCode.INVALID_METHOD


class InvalidRuleShape(RuleError):
    """A rule is not a mapping, lacks a path, or carries unknown keys."""

    error_code = ErrorCode.INVALID_RULE_SHAPE


# Convenience factory functions for request-time rejections

def csrf_token_missing(
    message: str = "CSRF token missing",
    details: Optional[dict[str, Any]] = None
) -> AppException:
    """Create a missing CSRF token exception."""
    return AppException(
        error_code=ErrorCode.CSRF_TOKEN_MISSING,
        message=message,
        details=details
    )


def csrf_token_invalid(
    message: str = "Invalid CSRF token",
    details: Optional[dict[str, Any]] = None
) -> AppException:
    """Create an invalid CSRF token exception."""
    return AppException(
        error_code=ErrorCode.CSRF_TOKEN_INVALID,
        message=message,
        details=details
    )


def internal_error(
    message: str = "An unexpected error occurred",
    details: Optional[dict[str, Any]] = None
) -> AppException:
    """Create an internal error exception."""
    return AppException(
        error_code=ErrorCode.INTERNAL_ERROR,
        message=message,
        details=details
    )
