"""
Middleware components for static security headers.

Each protection feature without per-route exclusion (P3P, CSP,
X-Frame-Options, HSTS, X-XSS-Protection, nosniff) is a
SecurityHeadersMiddleware carrying that feature's headers.
"""

from middleware.security_headers import (
    SecurityHeadersMiddleware,
    setup_security_headers,
    build_csp_header,
    csp_headers,
    hsts_headers,
    nosniff_headers,
    p3p_headers,
    xframe_headers,
    xss_protection_headers,
    DEFAULT_CSP_DIRECTIVES,
    DEFAULT_HSTS_MAX_AGE,
)

__all__ = [
    "SecurityHeadersMiddleware",
    "setup_security_headers",
    "build_csp_header",
    "csp_headers",
    "hsts_headers",
    "nosniff_headers",
    "p3p_headers",
    "xframe_headers",
    "xss_protection_headers",
    "DEFAULT_CSP_DIRECTIVES",
    "DEFAULT_HSTS_MAX_AGE",
]
