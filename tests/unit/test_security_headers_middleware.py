"""
Unit tests for security headers middleware.

Tests the SecurityHeadersMiddleware and the per-feature header builders
used by setup_security.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

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
)
from security.setup import setup_security


class TestSecurityHeadersMiddleware:
    """Tests for the SecurityHeadersMiddleware class."""

    @pytest.fixture
    def app_with_middleware(self):
        """Create a FastAPI app with the default SecurityHeadersMiddleware."""
        app = FastAPI()
        app.add_middleware(SecurityHeadersMiddleware)

        @app.get("/test")
        async def test_endpoint():
            return {"message": "test"}

        @app.post("/test")
        async def test_post_endpoint():
            return {"message": "post test"}

        return app

    @pytest.fixture
    def client(self, app_with_middleware):
        return TestClient(app_with_middleware)

    def test_default_headers(self, client):
        """Test that the default trio is added when no headers are given."""
        response = client.get("/test")

        assert response.status_code == 200
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert "default-src 'self'" in response.headers["Content-Security-Policy"]

    def test_headers_added_to_all_http_methods(self, client):
        for response in (client.get("/test"), client.post("/test")):
            assert "X-Content-Type-Options" in response.headers
            assert "X-Frame-Options" in response.headers

    def test_headers_added_to_not_found_responses(self, client):
        response = client.get("/missing")

        assert response.status_code == 404
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    def test_custom_headers_replace_defaults(self):
        app = FastAPI()
        app.add_middleware(SecurityHeadersMiddleware, headers={"P3P": "ABCDEF"}, feature="p3p")

        @app.get("/test")
        async def test_endpoint():
            return {}

        response = TestClient(app).get("/test")

        assert response.headers["P3P"] == "ABCDEF"
        assert "X-Frame-Options" not in response.headers


class TestHeaderBuilders:
    """Tests for the per-feature header builders."""

    def test_build_csp_header_defaults(self):
        header = build_csp_header()

        for directive in DEFAULT_CSP_DIRECTIVES:
            assert directive in header

    def test_build_csp_header_custom(self):
        header = build_csp_header({"default-src": "'none'", "img-src": "https:"})

        assert header == "default-src 'none'; img-src https:"

    def test_p3p(self):
        assert p3p_headers("ABCDEF") == {"P3P": "ABCDEF"}

    def test_csp_policy(self):
        assert csp_headers({"default-src": "'self'"}) == {
            "Content-Security-Policy": "default-src 'self'"
        }

    def test_csp_report_only_with_report_uri(self):
        headers = csp_headers({"default-src": "'self'"}, report_only=True, report_uri="/csp")

        assert headers == {
            "Content-Security-Policy-Report-Only": "default-src 'self'; report-uri /csp"
        }

    def test_xframe(self):
        assert xframe_headers("SAMEORIGIN") == {"X-Frame-Options": "SAMEORIGIN"}

    @pytest.mark.parametrize("kwargs, expected", [
        ({}, "max-age=31536000"),
        ({"max_age": 600, "include_subdomains": True}, "max-age=600; includeSubDomains"),
        ({"max_age": 600, "include_subdomains": True, "preload": True},
         "max-age=600; includeSubDomains; preload"),
    ])
    def test_hsts(self, kwargs, expected):
        assert hsts_headers(**kwargs) == {"Strict-Transport-Security": expected}

    @pytest.mark.parametrize("kwargs, expected", [
        ({}, "1; mode=block"),
        ({"mode": None}, "1"),
        ({"enabled": False}, "0"),
    ])
    def test_xss_protection(self, kwargs, expected):
        assert xss_protection_headers(**kwargs) == {"X-XSS-Protection": expected}

    def test_nosniff(self):
        assert nosniff_headers() == {"X-Content-Type-Options": "nosniff"}


class TestSetupSecurityHeaders:
    """Tests for the setup_security_headers convenience function."""

    def test_setup_with_custom_options(self):
        app = FastAPI()

        @app.get("/test")
        async def test_endpoint():
            return {"message": "test"}

        setup_security_headers(
            app,
            x_frame_options="SAMEORIGIN",
            content_security_policy="default-src 'none'"
        )

        response = TestClient(app).get("/test")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
        assert response.headers["Content-Security-Policy"] == "default-src 'none'"


class TestConfiguredHeaders:
    """Header features installed through setup_security."""

    @pytest.fixture
    def client(self):
        app = FastAPI()
        setup_security(app, {
            "p3p": "ABCDEF",
            "xframe": "DENY",
            "xssProtection": {"enabled": True},
            "csp": {"policy": {"default-src": "'self'"}},
            "hsts": {"includeSubDomains": True, "maxAge": 31536000},
            "nosniff": True,
        })

        @app.get("/")
        async def index():
            return {}

        return TestClient(app)

    def test_every_configured_header_is_present(self, client):
        response = client.get("/")

        assert response.headers["P3P"] == "ABCDEF"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-XSS-Protection"] == "1; mode=block"
        assert response.headers["Content-Security-Policy"] == "default-src 'self'"
        assert response.headers["Strict-Transport-Security"] == "max-age=31536000; includeSubDomains"
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    def test_disabled_features_add_nothing(self):
        app = FastAPI()
        setup_security(app, {"xframe": "DENY"})

        @app.get("/")
        async def index():
            return {}

        response = TestClient(app).get("/")

        assert response.headers["X-Frame-Options"] == "DENY"
        for name in ("P3P", "Content-Security-Policy", "Strict-Transport-Security",
                     "X-XSS-Protection", "X-Content-Type-Options"):
            assert name not in response.headers
