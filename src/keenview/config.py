"""Configuration registry and type system.

Every configurable setting is declared here with its key, type, default,
description, and whether it contains a secret.  The registry is the single
source of truth for what settings exist.  Values are read from environment
variables named ``KEENVIEW_<GROUP>_<NAME>``.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from keenview.errors import ConfigurationError

ENV_PREFIX = "KEENVIEW_"


class ConfigType(Enum):
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"


@dataclass(frozen=True, slots=True)
class ConfigEntry:
    key: str
    type: ConfigType
    default: str | int | float | bool
    description: str
    secret: bool = False

    @property
    def env_var(self) -> str:
        return ENV_PREFIX + self.key.replace(".", "_").upper()


# ---------------------------------------------------------------------------
# Registry -- every known setting
# ---------------------------------------------------------------------------

REGISTRY: list[ConfigEntry] = [
    # -- api --
    ConfigEntry("api.project_id", ConfigType.STRING, "", "Project ID events and queries belong to"),
    ConfigEntry("api.write_key", ConfigType.STRING, "", "Key used to send events", secret=True),
    ConfigEntry("api.read_key", ConfigType.STRING, "", "Key used to run queries", secret=True),
    ConfigEntry("api.authority", ConfigType.STRING, "api.keen.io:443", "API host and port"),
    ConfigEntry("api.scheme", ConfigType.STRING, "https", "API URL scheme"),
    ConfigEntry("api.version", ConfigType.STRING, "3.0", "API version path segment"),
    # -- http --
    ConfigEntry("http.timeout", ConfigType.FLOAT, 60.0, "Request timeout in seconds"),
    # -- executor --
    ConfigEntry(
        "executor.max_workers", ConfigType.INT, 4, "Threads available for async queries"
    ),
    # -- log --
    ConfigEntry("log.level", ConfigType.STRING, "WARNING", "Log level for the CLI"),
]

# Fast lookup by key
_REGISTRY_MAP: dict[str, ConfigEntry] = {e.key: e for e in REGISTRY}


def resolve_entry(key: str) -> ConfigEntry | None:
    """Look up a registry entry by key."""
    return _REGISTRY_MAP.get(key)


# ---------------------------------------------------------------------------
# Value parsing / serialization
# ---------------------------------------------------------------------------


def parse_value(entry: ConfigEntry, raw: str) -> str | int | float | bool:
    """Parse a raw string value according to the entry's type."""
    match entry.type:
        case ConfigType.STRING:
            return raw
        case ConfigType.INT:
            return int(raw)
        case ConfigType.FLOAT:
            return float(raw)
        case ConfigType.BOOL:
            return raw.lower() in ("true", "1", "yes", "on")


def serialize_value(entry: ConfigEntry, value: str | int | float | bool) -> str:
    """Serialize a typed value to a string for display."""
    match entry.type:
        case ConfigType.BOOL:
            return "true" if value else "false"
        case _:
            return str(value)


# ---------------------------------------------------------------------------
# Mapping from registry keys to Settings attributes
# ---------------------------------------------------------------------------

KEY_MAP: dict[str, str] = {
    "api.project_id": "project_id",
    "api.write_key": "write_key",
    "api.read_key": "read_key",
    "api.authority": "api_authority",
    "api.scheme": "api_scheme",
    "api.version": "api_version",
    "http.timeout": "timeout",
    "executor.max_workers": "max_workers",
    "log.level": "log_level",
}


@dataclass(frozen=True)
class Settings:
    project_id: str = ""
    write_key: str = ""
    read_key: str = ""
    api_authority: str = "api.keen.io:443"
    api_scheme: str = "https"
    api_version: str = "3.0"
    timeout: float = 60.0
    max_workers: int = 4
    log_level: str = "WARNING"

    @property
    def base_url(self) -> str:
        return f"{self.api_scheme}://{self.api_authority}/{self.api_version}"


def effective_value(
    entry: ConfigEntry, environ: Mapping[str, str] | None = None
) -> tuple[str | int | float | bool, str]:
    """Return ``(value, source)`` where source is ``env`` or ``default``."""
    env = os.environ if environ is None else environ
    raw = env.get(entry.env_var)
    if raw is None:
        return entry.default, "default"
    try:
        return parse_value(entry, raw), "env"
    except (ValueError, TypeError) as e:
        raise ConfigurationError(
            f"Invalid value for {entry.key} ({entry.type.value}): {raw!r}",
            hint=f"Check the {entry.env_var} environment variable",
        ) from e


def load_settings(
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> Settings:
    """Build Settings from the environment, then apply explicit overrides.

    Overrides use Settings attribute names; ``None`` values are ignored.
    """
    values: dict[str, Any] = {}
    for entry in REGISTRY:
        value, _ = effective_value(entry, environ)
        values[KEY_MAP[entry.key]] = value

    for name, value in overrides.items():
        if name not in values:
            raise ConfigurationError(f"Unknown setting: {name}")
        if value is not None:
            values[name] = value

    if values["max_workers"] < 1:
        raise ConfigurationError(
            f"executor.max_workers must be at least 1, got {values['max_workers']}",
            hint="Check the KEENVIEW_EXECUTOR_MAX_WORKERS environment variable",
        )
    if values["timeout"] <= 0:
        raise ConfigurationError(
            f"http.timeout must be positive, got {values['timeout']}",
            hint="Check the KEENVIEW_HTTP_TIMEOUT environment variable",
        )

    return Settings(**values)
