"""Write the generated registry module."""

from pathlib import Path
from typing import Annotated

import typer

from mcpkit.cli.console import error, success
from mcpkit.config.paths import get_default_artifact_path
from mcpkit.discovery import discover_definitions, write_registry_module
from mcpkit.errors import DiscoveryError


def register(app: typer.Typer) -> None:
    """Register the generate command."""

    @app.command()
    def generate(
        config: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="Path to configuration file",
            ),
        ] = None,
        output: Annotated[
            Path | None,
            typer.Option(
                "--output",
                "-o",
                help="Where to write the module (default: .mcpkit/registry.py)",
            ),
        ] = None,
    ) -> None:
        """Scan overlays and write the resolved file lists as a Python module."""
        from mcpkit.cli.context import get_config

        mcp_config = get_config(config)
        try:
            discovery = discover_definitions(
                mcp_config.get_overlays(), mcp_config.get_definition_paths()
            )
        except DiscoveryError as e:
            error(str(e))
            raise typer.Exit(1) from None

        path = write_registry_module(discovery, output or get_default_artifact_path())
        success(
            f"Wrote {discovery.total} definition files "
            f"({discovery.overridden_count} overridden) to {path}"
        )
