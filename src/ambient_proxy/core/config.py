"""Configuration types with environment variable support.

All settings can be configured via environment variables with the
AMBIENT_PROXY_ prefix.
Example: AMBIENT_PROXY_LISTEN=127.0.0.1:9000 sets listen to 127.0.0.1:9000.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ambient_proxy.observability.logging import LOG_FORMATS, parse_level
from ambient_proxy.routing.geo import DEFAULT_GEOIP_PATH
from ambient_proxy.routing.selector import EU_PROXY, US_PROXY, ProxyEndpoints


def load_config_from_file(path: str | Path) -> dict[str, Any]:
    """Load configuration from a YAML or TOML file.

    Args:
        path: Path to the configuration file (.yaml, .yml, or .toml)

    Returns:
        Flattened configuration dictionary

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the config file has encoding errors, invalid syntax, or unsupported format
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ValueError(f"Config file encoding error in {path}: {e}") from e

    try:
        if path.suffix in (".yaml", ".yml"):
            loaded = yaml.safe_load(content) or {}
        elif path.suffix == ".toml":
            loaded = tomllib.loads(content)
        else:
            raise ValueError(f"Unsupported config format: {path.suffix}")
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {path}: {e}") from e

    if not isinstance(loaded, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return flatten_config(loaded)


def flatten_config(config: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in config.items():
        full_key = f"{prefix}_{key}" if prefix else key
        if isinstance(value, dict):
            result.update(flatten_config(value, full_key))
        else:
            result[full_key] = value
    return result


def parse_bind(bind: str) -> tuple[str, int]:
    """Parse bind address into host and port."""
    if ":" in bind:
        host, port = bind.rsplit(":", 1)
        return host.strip("[]") or "0.0.0.0", int(port)
    return "0.0.0.0", int(bind)


class ServerConfig(BaseSettings):
    """Server configuration.

    None of these settings changes the routing policy; they only control
    where the service listens, where the GeoIP database lives, the static
    endpoint addresses and how logs are written.
    """

    model_config = SettingsConfigDict(
        env_prefix="AMBIENT_PROXY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    listen: str = Field(
        default="0.0.0.0:8080",
        description="HTTP bind address (host:port).",
    )
    geoip_path: str = Field(
        default=DEFAULT_GEOIP_PATH,
        description="Path to the MaxMind country database. Missing file disables GeoIP.",
    )
    us_proxy: str = Field(
        default=US_PROXY,
        description="Proxy address handed to clients in the US region.",
    )
    eu_proxy: str = Field(
        default=EU_PROXY,
        description="Proxy address handed to clients in the EU region.",
    )
    trust_country_header: bool = Field(
        default=False,
        description="Use X-AppEngine-Country instead of GeoIP when the header is well-formed.",
    )
    log_format: str = Field(
        default="stackdriver",
        # "log_format" also matches the bare LOG_FORMAT variable.
        validation_alias=AliasChoices("AMBIENT_PROXY_LOG_FORMAT", "log_format"),
        description="Log sink: 'stackdriver', 'bunyan', 'json' or 'console'.",
    )
    log_level: str = Field(
        default="info",
        description="Minimum log level.",
    )

    @field_validator("listen")
    @classmethod
    def _check_listen(cls, value: str) -> str:
        try:
            _, port = parse_bind(value)
        except ValueError as e:
            raise ValueError(f"Invalid listen address: {value}") from e
        if not 0 <= port <= 65535:
            raise ValueError(f"Port out of range: {port}")
        return value

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in LOG_FORMATS:
            raise ValueError(f"Unknown log format: {value}")
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        parse_level(value)
        return value.lower()

    @property
    def endpoints(self) -> ProxyEndpoints:
        return ProxyEndpoints(us=self.us_proxy, eu=self.eu_proxy)

    @property
    def bind(self) -> tuple[str, int]:
        return parse_bind(self.listen)
