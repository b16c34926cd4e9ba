"""
Error code catalog for the request protection layer.

This module defines all error codes raised by the protection layer,
covering configuration-time validation failures (bad exclusion rules,
bad feature configuration) and the request-time CSRF rejections.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """
    Enumeration of all error codes used by the protection layer.

    Each error code maps to a specific HTTP status code and error category:
    - Configuration errors: raised while the application is being set up,
      before any request is served
    - CSRF errors (4xx): the request failed token verification
    - Internal errors (5xx): Server-side issues
    """

    # Configuration errors (startup)
    INVALID_PATH = "INVALID_PATH"
    """Exclusion rule path is neither a string nor a non-empty list of strings"""

    INVALID_METHOD = "INVALID_METHOD"
    """Exclusion rule method is not a recognized HTTP verb"""

    INVALID_RULE_SHAPE = "INVALID_RULE_SHAPE"
    """Exclusion rule is not a mapping, lacks a path, or has unknown keys"""

    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    """Protection or application settings failed validation"""

    # CSRF errors (4xx)
    CSRF_TOKEN_MISSING = "CSRF_TOKEN_MISSING"
    """No CSRF token was submitted with a state-changing request (HTTP 403)"""

    CSRF_TOKEN_INVALID = "CSRF_TOKEN_INVALID"
    """The submitted CSRF token does not match the session token (HTTP 403)"""

    # Internal errors (5xx)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    """Unexpected server error (HTTP 500)"""


# Mapping of error codes to their default HTTP status codes
ERROR_CODE_STATUS_MAP: dict[ErrorCode, int] = {
    ErrorCode.INVALID_PATH: 500,
    ErrorCode.INVALID_METHOD: 500,
    ErrorCode.INVALID_RULE_SHAPE: 500,
    ErrorCode.INVALID_CONFIGURATION: 500,
    ErrorCode.CSRF_TOKEN_MISSING: 403,
    ErrorCode.CSRF_TOKEN_INVALID: 403,
    ErrorCode.INTERNAL_ERROR: 500,
}


def get_default_status_code(error_code: ErrorCode) -> int:
    """
    Get the default HTTP status code for an error code.

    Args:
        error_code: The error code to look up

    Returns:
        The default HTTP status code for the error code
    """
    return ERROR_CODE_STATUS_MAP.get(error_code, 500)
