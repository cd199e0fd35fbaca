"""CLI command modules."""

from mcpkit.cli.commands import generate, list_cmd, serve

__all__ = ["generate", "list_cmd", "serve"]
