"""
Request gate for CSRF protection.

The gate is three middlewares that run in this order for every request:

1. SecurityStateMiddleware seeds a fresh RequestSecurityState with
   ``csrf.exclude = False``.
2. ExclusionMiddleware runs the bypass handlers that the exclusion
   compiler registered for the request's path and method.
3. CSRFGateMiddleware reads the flag and either continues straight to
   the application or runs the token check first.

Starlette runs the most recently added middleware first, so
install_request_gate adds them in reverse.
"""

import logging
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from errors.exceptions import AppException
from errors.handlers import handle_app_exception
from security.csrf import CSRFTokenCheck
from security.routing import RouteTable
from security.state import (
    RequestSecurityState,
    get_csrf_token,
    get_security_state,
    security_state_var,
)

logger = logging.getLogger(__name__)


class SecurityStateMiddleware(BaseHTTPMiddleware):
    """
    Gate initializer: every request starts as not excluded.

    The state is reset once the response is produced so it never leaks
    into another request handled by the same worker.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        token = security_state_var.set(RequestSecurityState())
        try:
            return await call_next(request)
        finally:
            security_state_var.reset(token)


class ExclusionMiddleware(BaseHTTPMiddleware):
    """
    Runs the route table's handlers for the incoming request.

    Args:
        app: The ASGI application to wrap
        table: The compiled, frozen exclusion table
    """

    def __init__(self, app: ASGIApp, table: RouteTable):
        super().__init__(app)
        self.table = table

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        state = get_security_state()
        if state is not None:
            matched = self.table.dispatch(request.method, request.url.path, state)
            if matched:
                logger.debug(
                    "Exclusion handlers matched",
                    extra={"extra_data": {
                        "method": request.method,
                        "path": request.url.path,
                        "handlers": matched,
                    }}
                )
        return await call_next(request)


class CSRFGateMiddleware(BaseHTTPMiddleware):
    """
    Decision point: bypass or run the CSRF token check.

    A request without gate state (the initializer is missing) is treated
    as not excluded, so the check still runs.

    Args:
        app: The ASGI application to wrap
        check: The token check to run for requests that are not excluded
    """

    def __init__(self, app: ASGIApp, check: CSRFTokenCheck):
        super().__init__(app)
        self.check = check

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        state = get_security_state()
        if state is not None and state.csrf.exclude:
            return await call_next(request)

        try:
            issued = await self.check(request)
        except AppException as exc:
            return await handle_app_exception(request, exc)

        if state is not None:
            state.csrf.token = issued
        return await call_next(request)


def install_request_gate(app, table: RouteTable, check: CSRFTokenCheck) -> None:
    """
    Install the three gate middlewares on an application.

    The table should be fully compiled before this is called; it is
    frozen here so no handler can be added once requests flow.

    Args:
        app: The FastAPI (or Starlette) application
        table: The route table holding the bypass handlers
        check: The CSRF token check
    """
    table.freeze()
    app.add_middleware(CSRFGateMiddleware, check=check)
    app.add_middleware(ExclusionMiddleware, table=table)
    app.add_middleware(SecurityStateMiddleware)


def csrf_token(request: Request) -> Optional[str]:
    """
    FastAPI dependency returning the CSRF token issued for this request.

    Example:
        @app.get("/form")
        async def form(token: Optional[str] = Depends(csrf_token)):
            ...
    """
    return get_csrf_token()
