"""Path management for mcpkit.

User-level config lives under a single base directory, overridable with the
MCPKIT_HOME environment variable.

Default location: ~/.mcpkit
"""

import os
from pathlib import Path

ENV_VAR = "MCPKIT_HOME"

# Project-level config file, looked up in the working directory
PROJECT_CONFIG_NAME = "mcpkit.toml"


def get_mcpkit_home() -> Path:
    """Get the base directory for user-level mcpkit files.

    Resolution order:
    1. MCPKIT_HOME environment variable (if set)
    2. ~/.mcpkit
    """
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()
    return Path.home() / ".mcpkit"


def get_config_path() -> Path:
    """Get the user-level config file path."""
    return get_mcpkit_home() / "config.toml"


def get_default_artifact_path() -> Path:
    """Get the default location of the generated registry module."""
    return Path(".mcpkit") / "registry.py"
