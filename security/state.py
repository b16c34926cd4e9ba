"""
Per-request security state.

Each request gets a fresh RequestSecurityState from the gate initializer.
It lives in a context variable for the duration of the request's
middleware chain, so it is never shared between concurrent requests and
never attached to the framework's request object.
"""

from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class CSRFState:
    """CSRF part of the request state."""
    exclude: bool = False
    token: Optional[str] = None


@dataclass
class RequestSecurityState:
    """Security state owned by a single in-flight request."""
    csrf: CSRFState = field(default_factory=CSRFState)


security_state_var: ContextVar[Optional[RequestSecurityState]] = ContextVar(
    "security_state", default=None
)


def get_security_state() -> Optional[RequestSecurityState]:
    """
    Get the security state of the current request.

    Returns:
        The state, or None when called outside a gated request
    """
    return security_state_var.get()


def get_csrf_token() -> Optional[str]:
    """
    Get the CSRF token issued for the current request.

    Response-rendering code uses this to embed the token in forms or to
    hand it to API clients. It is None for excluded routes, where the
    token check never ran.
    """
    state = security_state_var.get()
    if state is None:
        return None
    return state.csrf.token
