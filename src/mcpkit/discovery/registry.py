"""Compile discovered definition files into an immutable registry.

Discovery is a pure function of the overlay stack: ``compile_registry`` scans,
resolves overrides, loads every winning file and returns a frozen
``Registry``. Nothing is kept in module state; rebuilding means calling it
again.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from mcpkit.definitions.base import CapabilityKind
from mcpkit.definitions.handlers import HandlerOverride
from mcpkit.definitions.naming import enrich_name_title
from mcpkit.definitions.prompts import PromptDefinition
from mcpkit.definitions.resources import ResourceDefinition
from mcpkit.definitions.tools import ToolDefinition
from mcpkit.discovery.loader import load_definition
from mcpkit.discovery.resolver import LoadResult, resolve_overrides
from mcpkit.discovery.scanner import (
    DefinitionPaths,
    Overlay,
    find_index_file,
    is_index_file,
    scan_overlays,
)
from mcpkit.errors import DefinitionLoadError, DiscoveryError, IdentifierError

logger = logging.getLogger(__name__)

CAPABILITY_KINDS = (CapabilityKind.TOOL, CapabilityKind.RESOURCE, CapabilityKind.PROMPT)

# Sub-directories of the definitions dir that handler scans skip
CAPABILITY_SUBDIRS = tuple(kind.plural for kind in CAPABILITY_KINDS)


def _pluralize(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count != 1 else ''}"


@dataclass(frozen=True, slots=True)
class DiscoveryResult:
    """Resolved definition files per kind, before any module is imported."""

    tools: LoadResult = field(default_factory=LoadResult)
    resources: LoadResult = field(default_factory=LoadResult)
    prompts: LoadResult = field(default_factory=LoadResult)
    handlers: LoadResult = field(default_factory=LoadResult)
    default_handler: Path | None = None

    def for_kind(self, kind: CapabilityKind) -> LoadResult:
        return getattr(self, kind.plural)

    @property
    def total(self) -> int:
        return sum(self.for_kind(kind).count for kind in CapabilityKind)

    @property
    def overridden_count(self) -> int:
        return sum(self.for_kind(kind).overridden_count for kind in CapabilityKind)


@dataclass(frozen=True, slots=True)
class Registry:
    """Every capability and handler override known to the server.

    Built once at boot and only read afterwards, so it can be shared by
    concurrent requests without locking.
    """

    tools: tuple[ToolDefinition, ...] = ()
    resources: tuple[ResourceDefinition, ...] = ()
    prompts: tuple[PromptDefinition, ...] = ()
    handler_overrides: Mapping[str, HandlerOverride] = field(
        default_factory=lambda: MappingProxyType({})
    )
    default_handler: HandlerOverride | None = None
    overridden_count: int = 0

    @property
    def total(self) -> int:
        return (
            len(self.tools)
            + len(self.resources)
            + len(self.prompts)
            + len(self.handler_overrides)
        )

    def summary(self) -> str:
        """Human summary such as ``2 tools, 1 prompt``."""
        parts = []
        counts = [
            (len(self.tools), "tool"),
            (len(self.resources), "resource"),
            (len(self.prompts), "prompt"),
            (len(self.handler_overrides), "handler"),
        ]
        for count, noun in counts:
            if count:
                parts.append(_pluralize(count, noun))
        return ", ".join(parts) if parts else "no definitions"


def discover_definitions(
    overlays: Sequence[Overlay],
    paths: DefinitionPaths | None = None,
) -> DiscoveryResult:
    """Scan overlays and resolve overrides for every kind.

    Overlays are given in declaration order, most specific first. They are
    processed in reverse so the first overlay is applied last and wins
    collisions. The default handler override is the exception: the first
    overlay in declaration order that has an index file provides it.

    Raises:
        DiscoveryError: If a kind cannot be scanned.
    """
    paths = paths or DefinitionPaths()
    processing_order = list(reversed(overlays))
    results: dict[str, Any] = {}

    for kind in CapabilityKind:
        try:
            if kind is CapabilityKind.HANDLER:
                per_overlay = scan_overlays(
                    processing_order,
                    paths.for_kind(kind),
                    exclude_subdirs=CAPABILITY_SUBDIRS,
                    filter=lambda path: not is_index_file(path),
                )
            else:
                per_overlay = scan_overlays(processing_order, paths.for_kind(kind))
            results[kind.plural] = resolve_overrides(per_overlay)
        except (OSError, IdentifierError) as e:
            logger.error(f"Failed to scan {kind.plural}: {e}")
            raise DiscoveryError(
                kind.plural, f"Failed to load {kind.plural} definitions: {e}"
            ) from e

    default_handler = find_index_file(
        overlays, paths.for_kind(CapabilityKind.HANDLER)
    )
    return DiscoveryResult(**results, default_handler=default_handler)


def _check_names(definitions: Sequence[Any], kind: CapabilityKind) -> None:
    for definition in definitions:
        enrich_name_title(
            definition.name, definition.title, definition.meta, kind.value
        )


def _load_kind(result: LoadResult, kind: CapabilityKind) -> list[Any]:
    try:
        definitions = [load_definition(path, kind) for path in result.files]
        if kind.is_capability:
            _check_names(definitions, kind)
        else:
            for handler in definitions:
                _check_names(handler.tools or [], CapabilityKind.TOOL)
                _check_names(handler.resources or [], CapabilityKind.RESOURCE)
                _check_names(handler.prompts or [], CapabilityKind.PROMPT)
    except (DefinitionLoadError, IdentifierError) as e:
        logger.error(f"Failed to load {kind.plural} definitions: {e}")
        raise DiscoveryError(
            kind.plural, f"Failed to load {kind.plural} definitions: {e}"
        ) from e
    return definitions


def build_registry(discovery: DiscoveryResult) -> Registry:
    """Load every resolved file and bucket the definitions by kind.

    Raises:
        DiscoveryError: If any definition file fails to load or validate.
    """
    tools = _load_kind(discovery.tools, CapabilityKind.TOOL)
    resources = _load_kind(discovery.resources, CapabilityKind.RESOURCE)
    prompts = _load_kind(discovery.prompts, CapabilityKind.PROMPT)

    named: dict[str, HandlerOverride] = {}
    for handler in _load_kind(discovery.handlers, CapabilityKind.HANDLER):
        if not handler.name:
            logger.warning(
                f"Ignoring handler without a name in {handler.meta.get('filename')}"
            )
            continue
        if handler.name in named:
            logger.warning(f"Handler '{handler.name}' defined more than once")
        named[handler.name] = handler

    default_handler = None
    if discovery.default_handler is not None:
        default_handler = _load_kind(
            LoadResult(files=[discovery.default_handler]), CapabilityKind.HANDLER
        )[0]

    return Registry(
        tools=tuple(tools),
        resources=tuple(resources),
        prompts=tuple(prompts),
        handler_overrides=MappingProxyType(named),
        default_handler=default_handler,
        overridden_count=discovery.overridden_count,
    )


def compile_registry(
    overlays: Sequence[Overlay],
    paths: DefinitionPaths | None = None,
) -> Registry:
    """Discover, resolve and load all definitions for an overlay stack."""
    discovery = discover_definitions(overlays, paths)
    registry = build_registry(discovery)
    log_registry_summary(registry, paths)
    return registry


def log_registry_summary(
    registry: Registry, paths: DefinitionPaths | None = None
) -> None:
    if registry.total == 0 and registry.default_handler is None:
        base = (paths or DefinitionPaths()).handlers[0]
        logger.warning(
            f"No MCP definitions found. Create tools, resources, or prompts in {base}/"
        )
        return

    message = f"Loaded {registry.summary()}"
    if registry.overridden_count:
        message += f" ({_pluralize(registry.overridden_count, 'override')})"
    if registry.default_handler is not None:
        message += " with default handler override"
    logger.info(message)
