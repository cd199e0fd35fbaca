"""Main CLI application."""

import typer

from mcpkit.cli.commands import generate, list_cmd, serve

app = typer.Typer(
    name="mcpkit",
    help="mcpkit - serve MCP tools, resources and prompts from overlays",
    no_args_is_help=True,
)

serve.register(app)
list_cmd.register(app)
generate.register(app)


if __name__ == "__main__":
    app()
