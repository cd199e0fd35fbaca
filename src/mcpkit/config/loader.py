"""Configuration loading from TOML files and environment variables."""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from mcpkit.config.models import McpConfig
from mcpkit.config.paths import PROJECT_CONFIG_NAME, get_config_path
from mcpkit.errors import ConfigError

logger = logging.getLogger(__name__)

# Environment variables overriding top-level settings
ENV_OVERRIDES = {
    "MCPKIT_NAME": "name",
    "MCPKIT_VERSION": "version",
    "MCPKIT_ROUTE": "route",
    "MCPKIT_ENABLED": "enabled",
}

_FALSE_VALUES = {"0", "false", "no", "off"}


def _get_default_config_paths() -> list[Path]:
    """Get ordered list of default config file locations."""
    return [
        Path(PROJECT_CONFIG_NAME),  # Current directory
        get_config_path(),  # ~/.mcpkit/config.toml (or MCPKIT_HOME)
    ]


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    for env_var, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value is None or value == "":
            continue
        if key == "enabled":
            config[key] = value.strip().lower() not in _FALSE_VALUES
        else:
            config[key] = value
    return config


def _find_config_path(path: Path | None) -> Path | None:
    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        return config_path

    for default_path in _get_default_config_paths():
        expanded = default_path.expanduser()
        if expanded.exists():
            return expanded
    return None


def load_config(path: Path | None = None) -> McpConfig:
    """Load configuration from a TOML file.

    Without an explicit path the default locations are searched; when none
    exists the defaults are used. Environment overrides apply either way.

    Args:
        path: Explicit path to config file. If None, searches default locations.

    Returns:
        Validated McpConfig instance.

    Raises:
        ConfigError: If an explicit file is missing or any file is invalid.
    """
    config_path = _find_config_path(path)

    raw_config: dict[str, Any] = {}
    if config_path is not None:
        try:
            with config_path.open("rb") as f:
                raw_config = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e
        logger.debug(f"Loaded config from {config_path}")

    raw_config = _apply_env_overrides(raw_config)
    base_dir = config_path.resolve().parent if config_path else Path.cwd()

    try:
        config = McpConfig.model_validate(raw_config)
    except ValidationError as e:
        source = config_path or "environment"
        raise ConfigError(f"Invalid configuration ({source}): {e}") from e

    config.base_dir = base_dir
    return config


def get_default_config() -> McpConfig:
    """Get a default configuration rooted at the working directory."""
    return McpConfig(base_dir=Path.cwd())
