"""Configuration module."""

from mcpkit.config.loader import get_default_config, load_config
from mcpkit.config.models import (
    DEFAULT_SERVER_NAME,
    CacheConfig,
    McpConfig,
    OverlayConfig,
    ServerConfig,
)
from mcpkit.config.paths import get_config_path, get_mcpkit_home

__all__ = [
    "DEFAULT_SERVER_NAME",
    "CacheConfig",
    "McpConfig",
    "OverlayConfig",
    "ServerConfig",
    "get_config_path",
    "get_default_config",
    "get_mcpkit_home",
    "load_config",
]
