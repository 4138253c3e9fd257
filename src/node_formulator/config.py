"""Settings loader.

Reads optional settings from a JSON file and validates them. Every key is
optional; missing keys keep their defaults::

    {
      "npm_executable": "npm",
      "npm_version_spec": ">=3,<7",
      "request_timeout": 30,
      "chunk_size": 65536,
      "max_workers": 8,
      "temp_prefix": "brew-formulator-",
      "user_agent": "node-formulator"
    }
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from packaging.specifiers import InvalidSpecifier, SpecifierSet

from .hashing import DEFAULT_CHUNK_SIZE, DEFAULT_TIMEOUT, USER_AGENT

CONFIG_PATH_ENV_VAR = "NODE_FORMULATOR_CONFIG"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be loaded or is invalid."""


@dataclass(slots=True, frozen=True)
class Settings:
    """Top-level settings container."""

    npm_executable: str = "npm"
    # npm releases whose ``ls --long`` output carries _location and _requiredBy
    npm_version_spec: str = ">=3,<7"
    request_timeout: float = DEFAULT_TIMEOUT
    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_workers: int = 8
    temp_prefix: str = "brew-formulator-"
    user_agent: str = USER_AGENT

    @property
    def npm_specifier(self) -> SpecifierSet:
        return SpecifierSet(self.npm_version_spec)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        """Create Settings from a dictionary, validating each field."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown setting(s): {', '.join(unknown)}")

        for key in ("npm_executable", "npm_version_spec", "temp_prefix", "user_agent"):
            if key in data and (not isinstance(data[key], str) or not data[key]):
                raise ConfigError(f"'{key}' must be a non-empty string")

        for key in ("chunk_size", "max_workers"):
            if key in data:
                value = data[key]
                if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                    raise ConfigError(f"'{key}' must be a positive integer")

        if "request_timeout" in data:
            timeout = data["request_timeout"]
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
                raise ConfigError("'request_timeout' must be a positive number")

        if "npm_version_spec" in data:
            try:
                SpecifierSet(data["npm_version_spec"])
            except InvalidSpecifier as exc:
                raise ConfigError(f"Invalid 'npm_version_spec': {exc}") from exc

        return cls(**data)


def _resolve_config_path(path: Path | str | None = None) -> Path | None:
    """Resolve the configuration file path.

    Priority:
    1. Explicit path argument
    2. NODE_FORMULATOR_CONFIG environment variable
    3. None (built-in defaults)
    """
    if path is not None:
        return Path(path)

    env_path = os.environ.get(CONFIG_PATH_ENV_VAR)
    if env_path:
        return Path(env_path)

    return None


def load_settings(path: Path | str | None = None) -> Settings:
    """Load and validate settings.

    Raises:
        ConfigError: If a configured file cannot be read or contains invalid data.
    """
    config_path = _resolve_config_path(path)
    if config_path is None:
        return Settings()

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        content = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read configuration file: {exc}") from exc

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in configuration file: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a JSON object")

    return Settings.from_dict(data)
