"""
Configuration management for the request protection layer.

This module provides centralized configuration loading and validation using
Pydantic settings. Values are loaded from environment variables or .env files
and mapped onto a ProtectionConfig for setup_security.

Complex values are given as JSON, for example:

    CSRF_EXCLUDE='[{"path": "/webhooks", "method": "post"}]'
    CSP_POLICY='{"default-src": "https:"}'
"""

import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from errors.exceptions import ConfigurationError
from security.config import ProtectionConfig
from security.setup import plan_security


class Environment(str, Enum):
    """Supported deployment environments."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


def _detect_environment() -> Environment:
    """
    Detect the current environment from the ENVIRONMENT variable.

    Returns:
        Environment: The detected environment, defaults to DEVELOPMENT if not set.
    """
    env_value = os.environ.get("ENVIRONMENT", "development").lower().strip()
    try:
        return Environment(env_value)
    except ValueError:
        return Environment.DEVELOPMENT


def _get_env_files(environment: Environment) -> Tuple[str, ...]:
    """
    Get the list of .env files to load for the given environment.

    Files are loaded in order, with later files overriding earlier ones.
    The base .env file is loaded first, then the environment-specific file.
    """
    env_file_map = {
        Environment.DEVELOPMENT: ".env.development",
        Environment.STAGING: ".env.staging",
        Environment.PRODUCTION: ".env.production",
    }

    env_specific_file = env_file_map.get(environment, ".env.development")

    return (".env", env_specific_file)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Only the session secret is required. The application will fail to start
    if it is missing or if any value is invalid.
    """

    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Deployment environment (development, staging, production)"
    )

    # Session Configuration
    session_secret: str = Field(
        ...,
        description="Secret used to sign the session cookie holding the CSRF token"
    )
    session_cookie: str = Field(
        default="session",
        description="Name of the session cookie"
    )
    session_max_age: int = Field(
        default=14 * 24 * 60 * 60,
        ge=60,
        description="Session cookie lifetime in seconds"
    )

    # CSRF Configuration
    csrf_enabled: bool = Field(
        default=True,
        description="Enable the CSRF token check"
    )
    csrf_exclude: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Exclusion rules as a JSON list of {path, method} objects"
    )

    # Header Configuration
    p3p: Optional[str] = Field(default=None, description="P3P compact policy")
    csp_policy: Optional[Dict[str, str]] = Field(
        default=None,
        description="Content-Security-Policy directives as a JSON object"
    )
    xframe: Optional[str] = Field(default="DENY", description="X-Frame-Options value")
    hsts_max_age: Optional[int] = Field(
        default=None,
        ge=0,
        description="Strict-Transport-Security max-age; unset disables HSTS"
    )
    hsts_include_subdomains: bool = Field(default=False)
    xss_protection: bool = Field(default=True)
    nosniff: bool = Field(default=True)

    # Observability Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    security_debug: bool = Field(
        default=False,
        description="Print protection setup diagnostics to standard error"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("session_secret")
    @classmethod
    def validate_session_secret(cls, v: str) -> str:
        """Validate that session_secret is long enough to sign cookies safely."""
        v = v.strip()
        if len(v) < 32:
            raise ValueError("session_secret must be at least 32 characters")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.strip().upper()
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(valid_levels))}")
        return v

    def protection_config(self) -> ProtectionConfig:
        """Map these settings onto the protection configuration."""
        raw: Dict[str, Any] = {
            "debug": self.security_debug,
            "csrf": {"exclude": self.csrf_exclude} if self.csrf_enabled else False,
            "p3p": self.p3p,
            "xframe": self.xframe,
            "xssProtection": self.xss_protection,
            "nosniff": self.nosniff,
        }
        if self.csp_policy is not None:
            raw["csp"] = {"policy": self.csp_policy}
        if self.hsts_max_age is not None:
            raw["hsts"] = {
                "maxAge": self.hsts_max_age,
                "includeSubDomains": self.hsts_include_subdomains,
            }
        return ProtectionConfig.parse(raw)


def create_settings_for_environment(environment: Optional[Environment] = None) -> Settings:
    """
    Factory function to create Settings for a specific environment.

    Args:
        environment: Optional environment override. If not provided, detected from
                    ENVIRONMENT variable.

    Returns:
        Settings: Validated settings for the specified environment.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    if environment is None:
        environment = _detect_environment()

    env_files = _get_env_files(environment)

    existing_env_files = [env_file for env_file in env_files if Path(env_file).exists()]
    if not existing_env_files:
        existing_env_files = list(env_files)

    try:
        class EnvironmentSettings(Settings):
            model_config = SettingsConfigDict(
                env_file=tuple(existing_env_files),
                env_file_encoding="utf-8",
                case_sensitive=False,
                extra="ignore"
            )

        return EnvironmentSettings()
    except Exception as e:
        missing_fields = []
        invalid_fields = {}

        # Extract field-level errors from Pydantic ValidationError
        if hasattr(e, 'errors'):
            for error in e.errors():
                field_name = '.'.join(str(loc) for loc in error.get('loc', []))
                error_type = error.get('type', '')
                error_msg = error.get('msg', str(error))

                if error_type == 'missing':
                    missing_fields.append(field_name)
                else:
                    invalid_fields[field_name] = error_msg

        raise ConfigurationError(
            f"Failed to load configuration for environment '{environment.value}'",
            missing_fields=missing_fields,
            invalid_fields=invalid_fields
        ) from e


# Global settings cache
_settings_cache: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Settings are loaded once and cached for subsequent calls.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    global _settings_cache

    if _settings_cache is None:
        _settings_cache = create_settings_for_environment()

    return _settings_cache


def clear_settings_cache() -> None:
    """
    Clear the settings cache.

    This is primarily useful for testing to allow reloading settings
    with different environment variables.
    """
    global _settings_cache
    _settings_cache = None


def validate_startup() -> None:
    """
    Validate all settings at application startup.

    Exclusion rules are compiled here once, so a bad rule stops the process
    before it accepts requests.

    Raises:
        ConfigurationError: If any setting or exclusion rule is invalid.
    """
    settings = get_settings()
    plan_security(settings.protection_config())

    validation_errors = {}

    if settings.environment == Environment.PRODUCTION:
        if settings.security_debug:
            validation_errors["security_debug"] = (
                "Protection diagnostics must be disabled in production"
            )
        if not settings.csrf_enabled:
            validation_errors["csrf_enabled"] = (
                "CSRF protection cannot be disabled in production"
            )
        if settings.hsts_max_age is None:
            validation_errors["hsts_max_age"] = (
                "Production environment requires Strict-Transport-Security"
            )

    if validation_errors:
        raise ConfigurationError(
            "Configuration validation failed during startup",
            invalid_fields=validation_errors
        )
