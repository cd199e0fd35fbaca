"""Server command for serving MCP definitions over HTTP."""

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer

logger = logging.getLogger(__name__)


def register(app: typer.Typer) -> None:
    """Register the serve command."""

    @app.command()
    def serve(
        config: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="Path to configuration file",
            ),
        ] = None,
        host: Annotated[
            str | None,
            typer.Option(
                "--host",
                "-h",
                help="Host to bind to (default from config)",
            ),
        ] = None,
        port: Annotated[
            int | None,
            typer.Option(
                "--port",
                "-p",
                help="Port to bind to (default from config)",
            ),
        ] = None,
        registry_module: Annotated[
            Path | None,
            typer.Option(
                "--registry",
                help="Generated registry module to load instead of scanning",
            ),
        ] = None,
        log_level: Annotated[
            str | None,
            typer.Option(
                "--log-level",
                help="DEBUG, INFO, WARNING or ERROR",
            ),
        ] = None,
    ) -> None:
        """Start the MCP server."""
        from mcpkit.cli.context import get_config, get_registry
        from mcpkit.logging import configure_logging, resolve_log_level
        from mcpkit.server import ServerRunner, create_app

        # Configure logging with Rich for colorful server output
        configure_logging(log_level, use_rich=True)

        mcp_config = get_config(config)
        registry = get_registry(mcp_config, registry_module)
        app_instance = create_app(mcp_config, registry)

        runner = ServerRunner(
            app_instance,
            host=host or mcp_config.server.host,
            port=port or mcp_config.server.port,
            log_level=resolve_log_level(log_level).lower(),
        )
        try:
            asyncio.run(runner.run())
        except KeyboardInterrupt:
            # Use print here since logging may be torn down
            print("\nServer stopped")
