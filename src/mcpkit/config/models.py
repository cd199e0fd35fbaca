"""Configuration models using Pydantic."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from mcpkit.cache import DEFAULT_MAX_ENTRIES
from mcpkit.discovery.scanner import DefinitionPaths, Overlay

logger = logging.getLogger(__name__)

DEFAULT_SERVER_NAME = "MCP Server"


class OverlayConfig(BaseModel):
    """One overlay root. Relative roots resolve against the config file."""

    root: Path
    name: str = ""


class CacheConfig(BaseModel):
    """Configuration for the shared tool response cache."""

    max_entries: int = Field(default=DEFAULT_MAX_ENTRIES, gt=0)


class ServerConfig(BaseModel):
    """Configuration for HTTP server."""

    host: str = "127.0.0.1"
    port: int = 8080


class McpConfig(BaseModel):
    """Root configuration model.

    ``overlays`` are listed most specific first: the application, then the
    shared overlays it extends. With none configured, the working directory
    is the only overlay.
    """

    enabled: bool = True
    route: str = "/mcp"
    browser_redirect: str = "/"
    name: str = ""
    version: str = "1.0.0"
    # Definitions directory inside each overlay
    dir: str = "mcp"
    overlays: list[OverlayConfig] = Field(default_factory=list)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    # Directory the config was loaded from; anchors relative overlay roots
    base_dir: Path | None = Field(default=None, exclude=True)

    @field_validator("route")
    @classmethod
    def _normalize_route(cls, value: str) -> str:
        route = "/" + value.strip().strip("/")
        return route

    def get_overlays(self) -> list[Overlay]:
        """Resolve configured overlays in declaration order."""
        base = self.base_dir or Path.cwd()
        if not self.overlays:
            return [Overlay(base)]

        overlays = []
        for overlay in self.overlays:
            root = overlay.root.expanduser()
            if not root.is_absolute():
                root = base / root
            overlays.append(Overlay(root, overlay.name))
        return overlays

    def get_definition_paths(self) -> DefinitionPaths:
        return DefinitionPaths.for_dir(self.dir)
