"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
FetchFailurePolicy = Literal["abort", "skip"]
NewLineKind = Literal["auto", "lf", "crlf", "system"]


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (plugins/catalog/http/logging/cache/formatting).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="plugcache", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # Plugin cache (YAML section: cache.*)
    cache_dir: Path = Field(
        default=Path(".dprint-cache"),
        validation_alias=AliasChoices(
            "cache_dir",
            AliasPath("cache", "dir"),
        ),
        description="Directory holding the lock file and downloaded plugins.",
    )

    # Plugins (YAML section: plugins.*)
    fetch_failure_policy: FetchFailurePolicy = Field(
        default="abort",
        validation_alias=AliasChoices(
            "fetch_failure_policy",
            AliasPath("plugins", "on_fetch_failure"),
        ),
        description=(
            "What to do when a plugin cannot be downloaded: "
            "'abort' fails the run, 'skip' continues without that plugin."
        ),
    )

    # Catalog (YAML section: catalog.*)
    catalog_url: str = Field(
        default="https://plugins.dprint.dev/info.json",
        validation_alias=AliasChoices(
            "catalog_url",
            AliasPath("catalog", "url"),
        ),
        description="URL of the plugin catalog (info.json).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Timeout in seconds for catalog and plugin downloads.",
    )
    http_user_agent: str = Field(
        default="plugcache/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing HTTP requests.",
    )
    http_max_retries: int = Field(
        default=3,
        validation_alias=AliasChoices(
            "http_max_retries",
            AliasPath("http", "max_retries"),
        ),
        description="Retries on 429/503 responses.",
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

    # Global formatter options (YAML section: formatting.*)
    indent_width: int = Field(
        default=4,
        validation_alias=AliasChoices(
            "indent_width",
            AliasPath("formatting", "indent_width"),
        ),
    )
    line_width: int = Field(
        default=80,
        validation_alias=AliasChoices(
            "line_width",
            AliasPath("formatting", "line_width"),
        ),
    )
    new_line_kind: NewLineKind = Field(
        default="lf",
        validation_alias=AliasChoices(
            "new_line_kind",
            AliasPath("formatting", "new_line_kind"),
        ),
    )

    @field_validator("cache_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @field_validator("http_max_retries")
    @classmethod
    def _validate_max_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("http_max_retries must be >= 0")
        return v

    @field_validator("indent_width", "line_width")
    @classmethod
    def _validate_widths(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("widths must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def global_format_config(self) -> dict[str, Any]:
        """Global options handed to every formatter plugin (camelCase keys)."""
        return {
            "indentWidth": self.indent_width,
            "lineWidth": self.line_width,
            "newLineKind": self.new_line_kind,
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read PLUGCACHE_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - PLUGCACHE_CACHE_DIR
    - PLUGCACHE_HTTP_TIMEOUT_SECONDS
    - PLUGCACHE_FETCH_FAILURE_POLICY
    - PLUGCACHE_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="PLUGCACHE_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    cache_dir: Optional[Path] = None
    fetch_failure_policy: Optional[FetchFailurePolicy] = None
    catalog_url: Optional[str] = None

    http_timeout_seconds: Optional[float] = None
    http_user_agent: Optional[str] = None
    http_max_retries: Optional[int] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    indent_width: Optional[int] = None
    line_width: Optional[int] = None
    new_line_kind: Optional[NewLineKind] = None

    @field_validator("cache_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
