"""Allow running as ``python -m mcpkit``."""

from mcpkit.cli.app import app

app()
