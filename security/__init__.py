"""
Request protection for FastAPI applications.

This package decides, per request, whether the CSRF token check runs:
- methods / rules: validation of configured exclusion rules
- routing / compiler: per-route bypass handlers built at startup
- state / gate: per-request bypass flag and the middlewares reading it
- csrf: the session-backed token check
- config / setup: the protection configuration and its installation
"""

from security.compiler import compile_exclusions, exclude_from_csrf, is_excluded
from security.config import ProtectionConfig, TokenCheckOptions, resolve_debug_sink
from security.csrf import CSRFTokenCheck, generate_csrf_token
from security.gate import (
    CSRFGateMiddleware,
    ExclusionMiddleware,
    SecurityStateMiddleware,
    csrf_token,
    install_request_gate,
)
from security.methods import HttpVerb, normalize_method
from security.routing import RouteGroup, RouteTable
from security.rules import ExclusionRule, normalize_rule, normalize_rules
from security.setup import SecurityPlan, plan_security, setup_security
from security.state import (
    CSRFState,
    RequestSecurityState,
    get_csrf_token,
    get_security_state,
)

__all__ = [
    "compile_exclusions",
    "exclude_from_csrf",
    "is_excluded",
    "ProtectionConfig",
    "TokenCheckOptions",
    "resolve_debug_sink",
    "CSRFTokenCheck",
    "generate_csrf_token",
    "CSRFGateMiddleware",
    "ExclusionMiddleware",
    "SecurityStateMiddleware",
    "csrf_token",
    "install_request_gate",
    "HttpVerb",
    "normalize_method",
    "RouteGroup",
    "RouteTable",
    "ExclusionRule",
    "normalize_rule",
    "normalize_rules",
    "SecurityPlan",
    "plan_security",
    "setup_security",
    "CSRFState",
    "RequestSecurityState",
    "get_csrf_token",
    "get_security_state",
]
