"""Pydantic configuration models with validation."""

from __future__ import annotations

from typing import Any, Literal, Optional
from urllib.parse import urlparse

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


def _strip_base_url(value: str, *, field: str) -> str:
    value = value.strip().rstrip("/")
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"{field} entries must be absolute http(s) URLs: {value!r}")
    return value


class ResolverConfig(BaseModel):
    """Third-party endpoints and timeouts used by the resolution pipeline.

    Frozen: the pipeline receives one instance at startup and never mutates it.
    Hosts and domains change independently of the code, so they live here
    and in YAML/ENV rather than in the pipeline modules.
    """

    model_config = ConfigDict(frozen=True)

    embed_hosts: tuple[str, ...] = Field(
        default=(
            "https://vidsrc-embed.ru",
            "https://vidsrc.pro",
            "https://vidsrc.cc",
            "https://vidsrc.xyz",
            "https://vidsrc.to",
            "https://vidsrc.in",
        ),
        description="Embed mirror base URLs, tried in order.",
    )
    redirect_domain: str = Field(
        default="https://cloudnestra.com",
        description="Origin serving the /rcp/, /prorcp/ and /srcrcp/ pages.",
    )
    cdn_candidates: tuple[str, ...] = Field(
        default=("shadowlandschronicles.com", "cloudnestra.com"),
        description="Domains substituted for {vN} placeholders, in order.",
    )
    probe_timeout_seconds: float = Field(
        default=10.0,
        description="Per-host timeout while probing embed mirrors.",
    )
    stage_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for the redirect-page and endpoint fetches.",
    )

    @field_validator("embed_hosts")
    @classmethod
    def _validate_embed_hosts(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if not v:
            raise ValueError("embed_hosts must contain at least one host")
        return tuple(_strip_base_url(h, field="embed_hosts") for h in v)

    @field_validator("redirect_domain")
    @classmethod
    def _validate_redirect_domain(cls, v: str) -> str:
        return _strip_base_url(v, field="redirect_domain")

    @field_validator("cdn_candidates")
    @classmethod
    def _validate_cdn_candidates(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        cleaned = tuple(c.strip() for c in v if c.strip())
        if not cleaned:
            raise ValueError("cdn_candidates must contain at least one domain")
        return cleaned

    @field_validator("probe_timeout_seconds", "stage_timeout_seconds")
    @classmethod
    def _validate_timeouts(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("resolver timeouts must be > 0")
        return v

    @property
    def redirect_host(self) -> str:
        """Hostname of the redirect domain (e.g. ``cloudnestra.com``)."""
        return urlparse(self.redirect_domain).hostname or ""


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/resolver).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="manifestarr", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=15.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Default timeout ceiling for a single page fetch.",
    )
    http_user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/120.0.0.0 Safari/537.36"
        ),
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="Browser User-Agent sent with every upstream request.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # Resolution pipeline (YAML section: resolver.*)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Supported env var examples (flat, explicit):
    - MANIFESTARR_LOG_LEVEL
    - MANIFESTARR_HTTP_TIMEOUT_SECONDS
    - MANIFESTARR_REDIRECT_DOMAIN
    - MANIFESTARR_EMBED_HOSTS='["https://a.example", "https://b.example"]'
    - MANIFESTARR_CDN_CANDIDATES='["cdn1.example"]'
    """

    model_config = SettingsConfigDict(
        env_prefix="MANIFESTARR_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    embed_hosts: Optional[list[str]] = None
    redirect_domain: Optional[str] = None
    cdn_candidates: Optional[list[str]] = None
    probe_timeout_seconds: Optional[float] = None
    stage_timeout_seconds: Optional[float] = None

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
