"""Exception types shared across mcpkit.

Boot-time errors (discovery, identifiers, config) are meant to abort startup.
Request-time errors (routing) are converted into error responses by the server.
"""

from __future__ import annotations

from pathlib import Path


class McpKitError(Exception):
    """Base error with a stable error code."""

    code = "mcpkit_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigError(McpKitError):
    """Configuration error."""

    code = "config_invalid"


class DiscoveryError(McpKitError):
    """Discovery failed for a whole capability kind."""

    code = "discovery_failed"

    def __init__(self, kind: str, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class DefinitionLoadError(McpKitError):
    """A single definition file could not be loaded or is malformed."""

    code = "definition_invalid"

    def __init__(self, path: Path | str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = Path(path)
        self.reason = message


class IdentifierError(McpKitError):
    """A definition has neither an explicit name nor a source filename."""

    code = "identifier_missing"


class HandlerNotFoundError(McpKitError):
    """A named handler was requested but is not in the registry."""

    code = "handler_not_found"

    def __init__(self, name: str) -> None:
        super().__init__(f'Handler "{name}" not found')
        self.name = name
