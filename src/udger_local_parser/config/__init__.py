"""Configuration loader for the Udger local parser.

Loads settings from a YAML file with built-in defaults. Supports environment
variable overrides using the UDGER_ prefix with double-underscore nesting
(e.g., UDGER_CACHE__CAPACITY=500).
"""

from __future__ import annotations

import os
import pathlib
from typing import Any

import yaml
from pydantic import BaseModel, Field

from udger_local_parser.rows import DEFAULT_INFO_URL_BASE


# ---------------------------------------------------------------------------
# Config sub-models
# ---------------------------------------------------------------------------

class DatabaseConfig(BaseModel):
    data_dir: str = "./data"
    filename: str = "udgerdb_v4.dat"

    @property
    def path(self) -> pathlib.Path:
        return pathlib.Path(self.data_dir) / self.filename


class CacheConfig(BaseModel):
    enabled: bool = True
    capacity: int = Field(default=10000, ge=1)


class ParserConfig(BaseModel):
    info_url_base: str = DEFAULT_INFO_URL_BASE
    crawler_device_class_id: int = 1
    default_device_class_id: int = 1


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseModel):
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    parser: ParserConfig = Field(default_factory=ParserConfig)


# ---------------------------------------------------------------------------
# Deep merge helper
# ---------------------------------------------------------------------------

def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *override* into *base*, returning a new dict."""
    merged = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# ---------------------------------------------------------------------------
# Environment variable overrides
# ---------------------------------------------------------------------------

_ENV_PREFIX = "UDGER_"


def _collect_env_overrides() -> dict[str, Any]:
    """Collect UDGER_* env vars and build a nested dict.

    Double-underscore separates nesting levels.
    Example: UDGER_DATABASE__DATA_DIR=/var/lib/udger
    becomes  {"database": {"data_dir": "/var/lib/udger"}}
    """
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(_ENV_PREFIX):
            continue
        parts = key[len(_ENV_PREFIX) :].lower().split("__")
        current = overrides
        for part in parts[:-1]:
            current = current.setdefault(part, {})
        # Attempt numeric coercion
        final_value: Any = value
        try:
            final_value = int(value)
        except ValueError:
            if value.lower() in ("true", "false"):
                final_value = value.lower() == "true"
        current[parts[-1]] = final_value
    return overrides


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

_BUILTIN_DEFAULTS_PATH = pathlib.Path(__file__).resolve().parents[3] / "config" / "parser_defaults.yaml"


def load_settings(
    config_path: pathlib.Path | None = None,
) -> Settings:
    """Load settings with layered precedence: defaults < file < env vars.

    Parameters
    ----------
    config_path:
        Path to a YAML config file. If ``None`` or the file does not exist,
        built-in defaults are used.
    """
    base: dict[str, Any] = {}

    path = config_path if config_path is not None else _BUILTIN_DEFAULTS_PATH
    if path.exists():
        with open(path) as fh:
            file_data = yaml.safe_load(fh)
        if isinstance(file_data, dict):
            base = _deep_merge(base, file_data)

    env_overrides = _collect_env_overrides()
    if env_overrides:
        base = _deep_merge(base, env_overrides)

    return Settings(**base)
