"""
Protection orchestrator.

setup_security wires every enabled protection feature onto an
application in one call:

    app = FastAPI()
    setup_security(app, {
        "csrf": {"exclude": [{"path": "/webhooks", "method": "post"}]},
        "xframe": "DENY",
        "nosniff": True,
    })
    app.add_middleware(SessionMiddleware, secret_key=...)

Everything is validated before the first middleware is added, so a bad
configuration raises ConfigurationError and leaves the app untouched.
SessionMiddleware has to be added after setup_security so that it wraps
the CSRF gate.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, Union

from starlette.middleware.base import BaseHTTPMiddleware

from middleware.security_headers import (
    SecurityHeadersMiddleware,
    csp_headers,
    hsts_headers,
    nosniff_headers,
    p3p_headers,
    xframe_headers,
    xss_protection_headers,
)
from security.compiler import compile_exclusions
from security.config import ProtectionConfig, resolve_debug_sink
from security.csrf import CSRFTokenCheck
from security.gate import install_request_gate
from security.routing import RouteTable
from security.rules import ExclusionRule

logger = logging.getLogger(__name__)


@dataclass
class SecurityPlan:
    """What setup_security installed, in installation order."""
    features: List[str] = field(default_factory=list)
    exclusions: Tuple[ExclusionRule, ...] = ()
    table: Optional[RouteTable] = None
    token_check: Optional[CSRFTokenCheck] = None
    header_middlewares: List[Tuple[str, Type[BaseHTTPMiddleware], Dict[str, Any]]] = field(
        default_factory=list
    )


def _plan_headers(config: ProtectionConfig, plan: SecurityPlan, debug) -> None:
    def add(feature: str, message: str, headers: Dict[str, str]) -> None:
        debug(message)
        plan.header_middlewares.append(
            (feature, SecurityHeadersMiddleware, {"headers": headers, "feature": feature})
        )

    if config.p3p is not None:
        add("p3p", "Configuring Platform for Privacy Preferences...", p3p_headers(config.p3p))

    if config.csp is not None:
        add(
            "csp",
            "Configuring Content Security Policy...",
            csp_headers(config.csp.policy, config.csp.report_only, config.csp.report_uri),
        )

    if config.xframe is not None:
        add("xframe", "Configuring X-Frame-Options response header...", xframe_headers(config.xframe))

    hsts = config.hsts_config
    if hsts is not None:
        add(
            "hsts",
            "Configuring HTTP Strict Transport Security...",
            hsts_headers(hsts.max_age, hsts.include_subdomains, hsts.preload),
        )

    xss = config.xss_protection_config
    if xss is not None:
        add(
            "xss_protection",
            "Configuring Cross-site scripting protection...",
            xss_protection_headers(xss.enabled, xss.mode),
        )

    if config.nosniff:
        add("nosniff", "Configuring No Sniff header...", nosniff_headers())


def plan_security(config: Union[ProtectionConfig, Mapping[str, Any], None]) -> SecurityPlan:
    """
    Validate a configuration and compile everything it asks for.

    Nothing is installed; see setup_security.

    Raises:
        ConfigurationError: If the configuration or any exclusion rule is invalid
    """
    config = ProtectionConfig.parse(config)
    debug = resolve_debug_sink(config.debug)
    plan = SecurityPlan()

    csrf = config.csrf_config
    if csrf is not None:
        debug("Configuring Cross-Site Request Forgery protection...")
        table = RouteTable()
        plan.exclusions = compile_exclusions(table, csrf.exclude, debug)
        plan.table = table
        # The token check only sees its own options, never the exclusions
        plan.token_check = CSRFTokenCheck(csrf.token_options())
        plan.features.append("csrf")

    _plan_headers(config, plan, debug)
    plan.features.extend(feature for feature, _, _ in plan.header_middlewares)
    return plan


def setup_security(app, config: Union[ProtectionConfig, Mapping[str, Any], None]) -> SecurityPlan:
    """
    Configure request protection on an application.

    Args:
        app: The FastAPI application instance
        config: Protection configuration (mapping or ProtectionConfig)

    Returns:
        The installed SecurityPlan

    Raises:
        ConfigurationError: If the configuration is invalid; nothing is installed
    """
    plan = plan_security(config)

    if plan.table is not None and plan.token_check is not None:
        install_request_gate(app, plan.table, plan.token_check)

    # Header middlewares wrap the gate, so its 403 responses carry them too
    for feature, middleware_class, options in plan.header_middlewares:
        app.add_middleware(middleware_class, **options)

    logger.info(
        "Request protection configured",
        extra={"extra_data": {
            "features": plan.features,
            "csrf_exclusions": [rule.describe() for rule in plan.exclusions],
        }}
    )
    return plan
