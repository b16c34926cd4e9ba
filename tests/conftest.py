"""
Shared pytest fixtures and configuration for all tests.
"""
import os
from typing import Any, Callable, Mapping

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.middleware.sessions import SessionMiddleware

from hypothesis import settings, Verbosity, Phase

from security.setup import setup_security
from security.state import get_csrf_token, get_security_state

# Default profile: balanced for local development
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,
    print_blob=True,
)

# CI profile: more thorough testing for continuous integration
settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    derandomize=True,
)

# Debug profile: minimal examples for quick debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    phases=[Phase.explicit, Phase.reuse, Phase.generate],
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


TEST_SESSION_SECRET = "test-session-secret-0123456789abcdef"


def _excluded() -> bool:
    state = get_security_state()
    return bool(state and state.csrf.exclude)


def build_protected_app(config: Mapping[str, Any]) -> FastAPI:
    """
    Build an app protected by setup_security with a handful of routes.

    - GET /       returns the issued CSRF token as plain text
    - POST /      returns 204
    - POST /no-csrf returns 204
    - /a, /b      GET, POST and PUT report whether the request was excluded
    - POST /echo  returns the "name" form field, proving the body survives the gate
    """
    app = FastAPI()
    setup_security(app, config)
    app.add_middleware(SessionMiddleware, secret_key=TEST_SESSION_SECRET)

    @app.get("/", response_class=PlainTextResponse)
    async def index():
        return get_csrf_token() or ""

    @app.post("/")
    async def create():
        return Response(status_code=204)

    @app.post("/no-csrf")
    async def no_csrf():
        return Response(status_code=204)

    async def report():
        return JSONResponse({"excluded": _excluded()})

    for path in ("/a", "/b"):
        app.add_api_route(path, report, methods=["GET", "POST", "PUT"])

    @app.post("/echo")
    async def echo(request: Request):
        form = await request.form()
        return {"name": form.get("name")}

    return app


@pytest.fixture
def make_app() -> Callable[[Mapping[str, Any]], FastAPI]:
    """Factory fixture building a protected app from a configuration mapping."""
    return build_protected_app


@pytest.fixture
def session_secret() -> str:
    return TEST_SESSION_SECRET
