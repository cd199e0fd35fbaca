"""Handler overrides: named and default routing bundles."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

    from mcpkit.definitions.prompts import PromptDefinition
    from mcpkit.definitions.resources import ResourceDefinition
    from mcpkit.definitions.tools import ToolDefinition

CallNext = Callable[[], Awaitable["Response"]]

# Runs around protocol handling. If the middleware neither returns a response
# nor awaits call_next, the handler still runs afterwards.
Middleware = Callable[
    ["Request", CallNext], "Awaitable[Response | None] | Response | None"
]


@dataclass(kw_only=True)
class HandlerOverride:
    """A bundle that curates or augments what a route exposes.

    Named handlers (files in the definitions directory) are served at
    ``<route>/<name>`` and expose exactly the capabilities they list. The
    default override (``index.py``) reconfigures the main route; any
    capability list it leaves as None falls back to the global registry.
    """

    name: str | None = None
    version: str | None = None
    # Extra route for a named handler; ignored for the default override
    route: str | None = None
    browser_redirect: str | None = None
    middleware: Middleware | None = None
    tools: list[ToolDefinition] | None = None
    resources: list[ResourceDefinition] | None = None
    prompts: list[PromptDefinition] | None = None
    meta: dict[str, Any] = field(default_factory=dict)


def define_handler(**options: Any) -> HandlerOverride:
    """Define a named handler or, in ``index.py``, the default override.

    Example:
        definition = define_handler(
            name="admin",
            tools=[purge_cache.definition],
            middleware=require_admin,
        )
    """
    return HandlerOverride(**options)
