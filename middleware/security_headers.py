"""
Security headers middleware.

This module implements static header injection for the protection
features that have no per-route exclusion mechanism: P3P,
Content-Security-Policy, X-Frame-Options, Strict-Transport-Security,
X-XSS-Protection and X-Content-Type-Options. Each feature is a separate
SecurityHeadersMiddleware instance that sets its headers on every
response.
"""

import logging
from typing import Callable, Mapping, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


# Default Content-Security-Policy directives
# These are restrictive defaults that can be customized via configuration
DEFAULT_CSP_DIRECTIVES = {
    "default-src": "'self'",
    "script-src": "'self'",
    "style-src": "'self' 'unsafe-inline'",  # Allow inline styles for UI frameworks
    "img-src": "'self' data: https:",  # Allow images from self, data URIs, and HTTPS
    "font-src": "'self'",
    "connect-src": "'self'",  # Allow API connections to self
    "frame-ancestors": "'none'",  # Prevent framing (complements X-Frame-Options)
    "base-uri": "'self'",
    "form-action": "'self'",
}

DEFAULT_HSTS_MAX_AGE = 31536000


def build_csp_header(directives: Optional[Mapping[str, str]] = None) -> str:
    """
    Build a Content-Security-Policy header string from directives.

    Args:
        directives: Dictionary of CSP directives. If None, uses defaults.

    Returns:
        CSP header string in the format "directive1 value1; directive2 value2"
    """
    if directives is None:
        directives = DEFAULT_CSP_DIRECTIVES

    return "; ".join(f"{key} {value}" for key, value in directives.items())


def p3p_headers(value: str) -> dict[str, str]:
    """Platform for Privacy Preferences compact policy."""
    return {"P3P": value}


def csp_headers(
    policy: Optional[Mapping[str, str]] = None,
    report_only: bool = False,
    report_uri: Optional[str] = None,
) -> dict[str, str]:
    """
    Content-Security-Policy header, or its report-only variant.

    Args:
        policy: CSP directives; the defaults are used when empty
        report_only: Send Content-Security-Policy-Report-Only instead
        report_uri: Appended as a report-uri directive when given
    """
    value = build_csp_header(policy or None)
    if report_uri:
        value = f"{value}; report-uri {report_uri}"
    name = "Content-Security-Policy-Report-Only" if report_only else "Content-Security-Policy"
    return {name: value}


def xframe_headers(value: str = "DENY") -> dict[str, str]:
    return {"X-Frame-Options": value}


def hsts_headers(
    max_age: int = DEFAULT_HSTS_MAX_AGE,
    include_subdomains: bool = False,
    preload: bool = False,
) -> dict[str, str]:
    """HTTP Strict Transport Security header."""
    value = f"max-age={max_age}"
    if include_subdomains:
        value += "; includeSubDomains"
    if preload:
        value += "; preload"
    return {"Strict-Transport-Security": value}


def xss_protection_headers(enabled: bool = True, mode: Optional[str] = "block") -> dict[str, str]:
    """X-XSS-Protection header: "1; mode=block" when enabled, "0" otherwise."""
    if not enabled:
        return {"X-XSS-Protection": "0"}
    value = "1"
    if mode:
        value += f"; mode={mode}"
    return {"X-XSS-Protection": value}


def nosniff_headers() -> dict[str, str]:
    return {"X-Content-Type-Options": "nosniff"}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds a fixed set of headers to all HTTP responses.

    When no headers are given, the middleware adds the baseline trio:
    - X-Content-Type-Options: nosniff
      Prevents browsers from MIME-sniffing a response away from the declared content-type
    - X-Frame-Options: DENY
      Prevents the page from being displayed in a frame/iframe, protecting against clickjacking
    - Content-Security-Policy built from DEFAULT_CSP_DIRECTIVES
    """

    def __init__(
        self,
        app: ASGIApp,
        headers: Optional[Mapping[str, str]] = None,
        feature: str = "security-headers",
    ):
        """
        Initialize the security headers middleware.

        Args:
            app: The ASGI application to wrap
            headers: Header names and values to set on every response
            feature: Name of the protection feature, used in logs
        """
        super().__init__(app)
        if headers is None:
            headers = {
                **nosniff_headers(),
                **xframe_headers(),
                **csp_headers(),
            }
        self.headers = dict(headers)
        self.feature = feature

        logger.info(
            "Security headers middleware initialized",
            extra={"extra_data": {
                "feature": feature,
                "headers": {
                    name: value[:100] + "..." if len(value) > 100 else value
                    for name, value in self.headers.items()
                },
            }}
        )

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        """
        Process the request and add the configured headers to the response.

        Args:
            request: The incoming FastAPI request
            call_next: The next middleware or route handler

        Returns:
            The response with security headers added
        """
        response = await call_next(request)

        for name, value in self.headers.items():
            response.headers[name] = value

        return response


def setup_security_headers(
    app,
    x_content_type_options: str = "nosniff",
    x_frame_options: str = "DENY",
    content_security_policy: Optional[str] = None,
    csp_directives: Optional[dict[str, str]] = None,
) -> None:
    """
    Add the baseline nosniff / X-Frame-Options / CSP headers to an application.

    Args:
        app: The FastAPI application instance
        x_content_type_options: Value for X-Content-Type-Options header (default: "nosniff")
        x_frame_options: Value for X-Frame-Options header (default: "DENY")
        content_security_policy: Full CSP header string (overrides csp_directives if provided)
        csp_directives: Dictionary of CSP directives to build the CSP header
    """
    app.add_middleware(
        SecurityHeadersMiddleware,
        headers={
            "X-Content-Type-Options": x_content_type_options,
            "X-Frame-Options": x_frame_options,
            "Content-Security-Policy": content_security_policy or build_csp_header(csp_directives),
        },
    )

    logger.info(
        f"Security headers configured: X-Content-Type-Options={x_content_type_options}, "
        f"X-Frame-Options={x_frame_options}"
    )
