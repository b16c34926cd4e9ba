"""
Session-backed CSRF token check (synchronizer token pattern).

A random token is stored in the signed Starlette session. Safe methods
pass and expose the token; every other method must echo it back in a
header or in the request body, otherwise the request is rejected with a
403. SessionMiddleware must wrap the CSRF gate.
"""

import hmac
import json
import logging
import secrets
from typing import Optional

from starlette.requests import Request

from errors.exceptions import csrf_token_invalid, csrf_token_missing
from security.config import TokenCheckOptions

logger = logging.getLogger(__name__)

CSRF_TOKEN_BYTES = 32

_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def generate_csrf_token() -> str:
    """Generate a URL-safe token with 256 bits of entropy."""
    return secrets.token_urlsafe(CSRF_TOKEN_BYTES)


class CSRFTokenCheck:
    """
    Verifies the CSRF token of a request against its session.

    Args:
        options: Token check options (session key, header names, safe methods)
    """

    def __init__(self, options: Optional[TokenCheckOptions] = None):
        self.options = options or TokenCheckOptions()

    def session_token(self, request: Request) -> str:
        """Return the session's token, creating one on first use."""
        if "session" not in request.scope:
            raise RuntimeError(
                "CSRF protection requires SessionMiddleware to be installed "
                "outside the CSRF gate"
            )
        session = request.session
        token = session.get(self.options.key)
        if not token:
            token = generate_csrf_token()
            session[self.options.key] = token
        return token

    async def submitted_token(self, request: Request) -> Optional[str]:
        """
        Find the token the client sent back.

        Headers are checked first, then the body field named after the
        session key (form or JSON bodies). The body is cached on the
        request, so the endpoint can still read it.
        """
        for name in self.options.header_names:
            value = request.headers.get(name)
            if value:
                return value

        content_type = request.headers.get("content-type", "").lower()
        if content_type.startswith(_FORM_CONTENT_TYPES):
            # Cache the raw body first so it is replayed to the endpoint
            await request.body()
            form = await request.form()
            value = form.get(self.options.key)
            return value if isinstance(value, str) and value else None

        if content_type.startswith("application/json"):
            body = await request.body()
            try:
                payload = json.loads(body) if body else None
            except ValueError:
                return None
            if isinstance(payload, dict):
                value = payload.get(self.options.key)
                return value if isinstance(value, str) and value else None

        return None

    async def __call__(self, request: Request) -> str:
        """
        Check a request.

        Returns:
            The session token, for response rendering

        Raises:
            AppException: CSRF_TOKEN_MISSING or CSRF_TOKEN_INVALID (HTTP 403)
        """
        expected = self.session_token(request)

        if request.method.upper() in self.options.ignore_methods:
            return expected

        submitted = await self.submitted_token(request)
        details = {"method": request.method, "path": request.url.path}

        if submitted is None:
            logger.info("CSRF token missing", extra={"extra_data": details})
            raise csrf_token_missing(details=details)

        if not hmac.compare_digest(submitted.encode(), expected.encode()):
            logger.info("CSRF token mismatch", extra={"extra_data": details})
            raise csrf_token_invalid(details=details)

        return expected
