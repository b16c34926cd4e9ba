"""
Application factory wiring request protection into a FastAPI app.

Run with:

    SESSION_SECRET=... uvicorn main:create_app --factory
"""

import logging
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.responses import PlainTextResponse
from starlette.middleware.sessions import SessionMiddleware

from config.settings import Environment, Settings, get_settings, validate_startup
from errors.handlers import register_exception_handlers
from security.gate import csrf_token
from security.setup import setup_security
from telemetry.service import initialize_telemetry

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Explicit settings; loaded from the environment when omitted

    Returns:
        The configured FastAPI application

    Raises:
        ConfigurationError: If settings or exclusion rules are invalid
    """
    if settings is None:
        settings = get_settings()
        validate_startup()

    initialize_telemetry(settings)

    app = FastAPI(title="Request Protection", version="1.0.0")
    register_exception_handlers(app)

    plan = setup_security(app, settings.protection_config())

    # The session has to wrap the CSRF gate, so it is added after it
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=settings.session_cookie,
        max_age=settings.session_max_age,
        https_only=settings.environment == Environment.PRODUCTION,
    )

    @app.get("/health")
    async def health():
        return {"status": "ok", "features": plan.features}

    @app.get("/csrf-token", response_class=PlainTextResponse)
    async def issue_csrf_token(token: Optional[str] = Depends(csrf_token)):
        return token or ""

    logger.info(
        "Application created",
        extra={"extra_data": {
            "environment": settings.environment.value,
            "features": plan.features,
        }}
    )
    return app
