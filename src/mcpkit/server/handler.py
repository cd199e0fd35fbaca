"""Resolve which capabilities and settings a request is served with.

There are three cases, checked in order:

1. A named handler was requested. Its capability lists are used verbatim;
   a list it leaves unset is empty, never the global registry.
2. The registry has a default override (``index.py``). Each capability list
   it leaves unset falls back to the global registry individually.
3. Neither: the whole registry is served under the configured identity.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from mcpkit.config.models import DEFAULT_SERVER_NAME, McpConfig
from mcpkit.definitions.handlers import HandlerOverride, Middleware
from mcpkit.definitions.prompts import PromptDefinition
from mcpkit.definitions.resources import ResourceDefinition
from mcpkit.definitions.tools import ToolDefinition
from mcpkit.discovery.registry import Registry
from mcpkit.errors import HandlerNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ResolvedHandler:
    """Everything needed to serve one request."""

    name: str
    version: str
    browser_redirect: str
    tools: tuple[ToolDefinition, ...]
    resources: tuple[ResourceDefinition, ...]
    prompts: tuple[PromptDefinition, ...]
    middleware: Middleware | None = None
    # Requested handler name, None for the main route
    handler_name: str | None = None


def _items(values: Sequence | None, fallback: Sequence | None = None) -> tuple:
    if values is not None:
        return tuple(values)
    return tuple(fallback) if fallback is not None else ()


def _resolve_named(
    override: HandlerOverride, config: McpConfig, handler_name: str
) -> ResolvedHandler:
    return ResolvedHandler(
        name=override.name or handler_name,
        version=override.version or config.version,
        browser_redirect=override.browser_redirect or config.browser_redirect,
        tools=_items(override.tools),
        resources=_items(override.resources),
        prompts=_items(override.prompts),
        middleware=override.middleware,
        handler_name=handler_name,
    )


def _resolve_default(
    registry: Registry, override: HandlerOverride, config: McpConfig
) -> ResolvedHandler:
    return ResolvedHandler(
        name=override.name or config.name or DEFAULT_SERVER_NAME,
        version=override.version or config.version,
        browser_redirect=override.browser_redirect or config.browser_redirect,
        tools=_items(override.tools, registry.tools),
        resources=_items(override.resources, registry.resources),
        prompts=_items(override.prompts, registry.prompts),
        middleware=override.middleware,
    )


def _resolve_global(registry: Registry, config: McpConfig) -> ResolvedHandler:
    return ResolvedHandler(
        name=config.name or DEFAULT_SERVER_NAME,
        version=config.version,
        browser_redirect=config.browser_redirect,
        tools=registry.tools,
        resources=registry.resources,
        prompts=registry.prompts,
    )


def resolve_handler(
    registry: Registry,
    config: McpConfig,
    handler_name: str | None = None,
) -> ResolvedHandler:
    """Pick the capability subset and identity for a request.

    Args:
        registry: Compiled registry.
        config: Server configuration supplying fallback values.
        handler_name: Named handler from the request path, if any.

    Returns:
        The resolved handler.

    Raises:
        HandlerNotFoundError: If ``handler_name`` is not registered.
    """
    if handler_name:
        override = registry.handler_overrides.get(handler_name)
        if override is None:
            logger.debug(f"Unknown handler requested: {handler_name}")
            raise HandlerNotFoundError(handler_name)
        return _resolve_named(override, config, handler_name)

    if registry.default_handler is not None:
        return _resolve_default(registry, registry.default_handler, config)

    return _resolve_global(registry, config)
