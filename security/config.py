"""
Protection configuration models.

The raw configuration is a plain mapping, for example:

    {
        "debug": True,
        "csrf": {"exclude": [{"path": "/webhooks", "method": "post"}]},
        "xframe": "DENY",
        "hsts": {"maxAge": 31536000, "includeSubDomains": True},
        "xssProtection": True,
        "nosniff": True,
    }

ProtectionConfig.parse validates it once into strict pydantic models so
the rest of the setup never inspects raw types again. Exclusion rules are
kept raw here; the exclusion compiler owns their validation.
"""

import sys
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from errors.exceptions import ConfigurationError

DebugSink = Callable[[str], None]


class _StrictModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class TokenCheckOptions(_StrictModel):
    """Options understood by the CSRF token check."""

    key: str = Field(
        default="_csrf",
        min_length=1,
        description="Session key and body field holding the token"
    )
    header_names: Tuple[str, ...] = Field(
        default=("csrf-token", "x-csrf-token", "x-xsrf-token"),
        alias="headerNames",
        description="Request headers searched for a submitted token, in order"
    )
    ignore_methods: Tuple[str, ...] = Field(
        default=("GET", "HEAD", "OPTIONS"),
        alias="ignoreMethods",
        description="Methods that never require a token"
    )

    @field_validator("header_names")
    @classmethod
    def lower_header_names(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(name.strip().lower() for name in v)

    @field_validator("ignore_methods")
    @classmethod
    def upper_ignore_methods(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(method.strip().upper() for method in v)


class CSRFConfig(TokenCheckOptions):
    """CSRF configuration: token check options plus the exclusion rules."""

    exclude: List[Any] = Field(default_factory=list)

    def token_options(self) -> TokenCheckOptions:
        """The options for the token check, without the exclusion rules."""
        return TokenCheckOptions(**self.model_dump(exclude={"exclude"}))


class CSPConfig(_StrictModel):
    policy: Dict[str, str] = Field(default_factory=dict)
    report_only: bool = Field(default=False, alias="reportOnly")
    report_uri: Optional[str] = Field(default=None, alias="reportUri")


class HSTSConfig(_StrictModel):
    max_age: int = Field(default=31536000, ge=0, alias="maxAge")
    include_subdomains: bool = Field(default=False, alias="includeSubDomains")
    preload: bool = False


class XSSProtectionConfig(_StrictModel):
    enabled: bool = True
    mode: Optional[str] = "block"


class ProtectionConfig(_StrictModel):
    """Process-wide protection settings, read-only once parsed."""

    debug: Any = None
    csrf: Union[bool, CSRFConfig] = False
    p3p: Optional[str] = None
    csp: Optional[CSPConfig] = None
    xframe: Optional[str] = None
    hsts: Union[bool, HSTSConfig] = False
    xss_protection: Union[bool, XSSProtectionConfig] = Field(default=False, alias="xssProtection")
    nosniff: bool = False

    @classmethod
    def parse(cls, config: Union["ProtectionConfig", Mapping[str, Any], None]) -> "ProtectionConfig":
        """
        Validate a raw configuration mapping.

        Raises:
            ConfigurationError: Listing every invalid field
        """
        if isinstance(config, cls):
            return config
        if config is None:
            config = {}
        if not isinstance(config, Mapping):
            raise ConfigurationError(
                "Protection configuration must be a mapping",
                invalid_fields={"config": type(config).__name__},
            )
        try:
            return cls.model_validate(dict(config))
        except ValidationError as e:
            invalid_fields = {}
            for error in e.errors():
                field_name = ".".join(str(loc) for loc in error.get("loc", []))
                invalid_fields[field_name] = error.get("msg", str(error))
            raise ConfigurationError(
                "Invalid protection configuration",
                invalid_fields=invalid_fields,
            ) from e

    @property
    def csrf_config(self) -> Optional[CSRFConfig]:
        """The CSRF configuration, or None when CSRF protection is off."""
        if self.csrf is True:
            return CSRFConfig()
        if isinstance(self.csrf, CSRFConfig):
            return self.csrf
        return None

    @property
    def hsts_config(self) -> Optional[HSTSConfig]:
        if self.hsts is True:
            return HSTSConfig()
        if isinstance(self.hsts, HSTSConfig):
            return self.hsts
        return None

    @property
    def xss_protection_config(self) -> Optional[XSSProtectionConfig]:
        if self.xss_protection is True:
            return XSSProtectionConfig()
        if isinstance(self.xss_protection, XSSProtectionConfig):
            return self.xss_protection
        return None


def _print_to_stderr(message: str) -> None:
    print(message, file=sys.stderr)


def _discard(message: str) -> None:
    pass


def resolve_debug_sink(debug: Any) -> DebugSink:
    """
    Pick the diagnostic sink for one setup call.

    A callable is used as-is, any other truthy value prints to standard
    error, and a falsy or missing value discards every message.
    """
    if callable(debug):
        return debug
    if debug:
        return _print_to_stderr
    return _discard
