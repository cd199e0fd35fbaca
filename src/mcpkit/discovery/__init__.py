"""Definition discovery: overlay scanning, override resolution, compilation."""

from mcpkit.discovery.artifact import (
    load_registry_module,
    read_registry_module,
    render_registry_module,
    write_registry_module,
)
from mcpkit.discovery.loader import load_definition
from mcpkit.discovery.registry import (
    DiscoveryResult,
    Registry,
    build_registry,
    compile_registry,
    discover_definitions,
)
from mcpkit.discovery.resolver import LoadResult, resolve_overrides
from mcpkit.discovery.scanner import (
    DefinitionPaths,
    Overlay,
    find_index_file,
    scan_overlay,
    scan_overlays,
)

__all__ = [
    "DefinitionPaths",
    "DiscoveryResult",
    "LoadResult",
    "Overlay",
    "Registry",
    "build_registry",
    "compile_registry",
    "discover_definitions",
    "find_index_file",
    "load_definition",
    "load_registry_module",
    "read_registry_module",
    "render_registry_module",
    "resolve_overrides",
    "scan_overlay",
    "scan_overlays",
    "write_registry_module",
]
