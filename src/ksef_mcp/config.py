"""Server configuration — base URL, session token, timeouts, logging.

Sources, lowest to highest precedence: built-in defaults, an optional YAML
file, ``KSEF_*`` environment variables, explicit overrides (CLI flags).
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

from ksef_mcp.client.client import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, KsefClient

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

ENV_VARS: dict[str, str] = {
    "KSEF_API_BASE_URL": "base_url",
    "KSEF_SESSION_TOKEN": "session_token",
    "KSEF_TIMEOUT": "timeout",
    "KSEF_LOG_LEVEL": "log_level",
    "KSEF_OTLP_ENDPOINT": "otlp_endpoint",
}


class ConfigError(Exception):
    """Raised when configuration cannot be read or fails validation."""


class ServerConfig(BaseModel):
    """Validated settings for ``ksef-mcp serve`` and ``ksef-mcp tools call``."""

    model_config = ConfigDict(extra="forbid")

    base_url: str = DEFAULT_BASE_URL
    session_token: SecretStr | None = None
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    log_level: LogLevel = "WARNING"
    telemetry: bool = False
    otlp_endpoint: str | None = None

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            msg = "base_url must be an http(s) URL"
            raise ValueError(msg)
        return value.rstrip("/")

    @classmethod
    def load(
        cls,
        path: Path | None = None,
        *,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> ServerConfig:
        """Merge every configuration source and validate the result.

        ``None`` overrides are ignored, so unset CLI flags fall through to
        the environment and the file.

        Raises:
            ConfigError: On unreadable or malformed files and invalid values.
        """
        data: dict[str, Any] = {}
        if path is not None:
            data.update(_read_yaml(path))
        data.update(_from_env(os.environ if environ is None else environ))
        data.update({key: value for key, value in overrides.items() if value is not None})

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc

    def create_client(self, **kwargs: Any) -> KsefClient:
        """Build a :class:`KsefClient` from these settings."""
        token = self.session_token.get_secret_value() if self.session_token else None
        return KsefClient(self.base_url, session_token=token, timeout=self.timeout, **kwargs)


def _from_env(environ: Mapping[str, str]) -> dict[str, Any]:
    return {field: environ[var] for var, field in ENV_VARS.items() if environ.get(var)}


def _read_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML config file, expanding ``${VAR}`` references first."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc

    try:
        data: Any = yaml.safe_load(os.path.expandvars(raw))
    except yaml.YAMLError as exc:
        raise ConfigError(f"YAML parse error: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Config YAML must be a mapping")
    return data
