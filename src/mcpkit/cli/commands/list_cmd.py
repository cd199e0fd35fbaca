"""List the compiled registry."""

from pathlib import Path
from typing import Annotated, Any

import typer

from mcpkit.cli.console import console, create_table, dim
from mcpkit.definitions.naming import enrich_name_title
from mcpkit.discovery import Registry
from mcpkit.errors import IdentifierError


def _describe(definition: Any, kind: str) -> tuple[str, str]:
    try:
        name, title = enrich_name_title(
            definition.name, definition.title, definition.meta, kind
        )
    except IdentifierError:
        return "?", ""
    return name, title or ""


def _rows(registry: Registry) -> list[tuple[str, str, str, str]]:
    rows = []
    for kind, definitions in (
        ("tool", registry.tools),
        ("resource", registry.resources),
        ("prompt", registry.prompts),
    ):
        for definition in definitions:
            name, title = _describe(definition, kind)
            rows.append((kind, name, title, definition.meta.get("filename", "")))

    for name, handler in registry.handler_overrides.items():
        rows.append(("handler", name, handler.route or "", handler.meta["filename"]))

    if registry.default_handler is not None:
        rows.append(
            (
                "handler",
                "(default)",
                registry.default_handler.name or "",
                registry.default_handler.meta.get("filename", ""),
            )
        )
    return rows


def register(app: typer.Typer) -> None:
    """Register the list command."""

    @app.command("list")
    def list_definitions(
        config: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="Path to configuration file",
            ),
        ] = None,
    ) -> None:
        """List discovered tools, resources, prompts and handlers."""
        from mcpkit.cli.context import get_config, get_registry

        mcp_config = get_config(config)
        registry = get_registry(mcp_config)

        rows = _rows(registry)
        if not rows:
            dim("No MCP definitions found")
            return

        table = create_table(
            "MCP Definitions",
            [
                ("Kind", "cyan"),
                ("Name", "green"),
                ("Title / Route", ""),
                ("Source", "dim"),
            ],
        )
        for row in rows:
            table.add_row(*row)
        console.print(table)
        dim(f"{registry.summary()}, {registry.overridden_count} overridden")
