"""
Error handling module for the request protection layer.

This module provides structured error handling with:
- ErrorCode enum for standardized error codes
- AppException and the configuration error hierarchy
- Error response models for consistent API responses
- Exception handlers for FastAPI integration
"""

from errors.codes import ErrorCode
from errors.exceptions import (
    AppException,
    ConfigurationError,
    InvalidMethod,
    InvalidPath,
    InvalidRuleShape,
    RuleError,
)
from errors.handlers import (
    ErrorResponse,
    handle_app_exception,
    handle_unexpected_exception,
    register_exception_handlers,
)

__all__ = [
    "ErrorCode",
    "AppException",
    "ConfigurationError",
    "RuleError",
    "InvalidPath",
    "InvalidMethod",
    "InvalidRuleShape",
    "ErrorResponse",
    "handle_app_exception",
    "handle_unexpected_exception",
    "register_exception_handlers",
]
