"""Config and registry loading shared by CLI commands."""

from __future__ import annotations

from pathlib import Path

import typer

from mcpkit.cli.console import error
from mcpkit.config import McpConfig, load_config
from mcpkit.discovery import Registry, compile_registry, load_registry_module
from mcpkit.discovery.registry import log_registry_summary
from mcpkit.errors import ConfigError, DiscoveryError


def get_config(config_path: Path | None = None) -> McpConfig:
    """Load config, printing the error and exiting 1 on failure."""
    try:
        return load_config(config_path)
    except ConfigError as e:
        error(str(e))
        raise typer.Exit(1) from None


def get_registry(config: McpConfig, registry_module: Path | None = None) -> Registry:
    """Compile the registry from overlays, or from a generated module.

    Boot errors are printed and exit 1.
    """
    try:
        if registry_module is not None:
            registry = load_registry_module(registry_module)
            log_registry_summary(registry, config.get_definition_paths())
            return registry
        return compile_registry(config.get_overlays(), config.get_definition_paths())
    except DiscoveryError as e:
        error(str(e))
        raise typer.Exit(1) from None
