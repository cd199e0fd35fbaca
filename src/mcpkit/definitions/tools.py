"""Tool definitions."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pydantic import BaseModel

    from mcpkit.cache import CachePolicy


@dataclass(slots=True)
class ToolAnnotations:
    """Behavior hints for clients (e.g. whether to ask before calling).

    None of these are enforced; they are passed through to clients as-is.
    """

    read_only_hint: bool | None = None
    destructive_hint: bool | None = None
    idempotent_hint: bool | None = None
    open_world_hint: bool | None = None

    def to_dict(self) -> dict[str, bool]:
        hints = {
            "readOnlyHint": self.read_only_hint,
            "destructiveHint": self.destructive_hint,
            "idempotentHint": self.idempotent_hint,
            "openWorldHint": self.open_world_hint,
        }
        return {key: value for key, value in hints.items() if value is not None}


@dataclass(kw_only=True)
class ToolDefinition:
    """A tool: an invocable action exposed to clients.

    ``name`` and ``title`` are derived from the filename when omitted.
    ``handler`` receives the (validated) arguments and the request context;
    it may declare fewer parameters than that.
    """

    handler: Callable[..., Any] | None = None
    name: str | None = None
    title: str | None = None
    description: str | None = None
    input_schema: dict[str, Any] | type[BaseModel] | None = None
    output_schema: dict[str, Any] | type[BaseModel] | None = None
    annotations: ToolAnnotations | None = None
    input_examples: list[dict[str, Any]] = field(default_factory=list)
    # Duration string ("1h"), seconds, or a CachePolicy
    cache: str | int | float | CachePolicy | None = None
    meta: dict[str, Any] = field(default_factory=dict)


def define_tool(
    handler: Callable[..., Any] | None = None, /, **options: Any
) -> Any:
    """Define a tool, directly or as a decorator.

    Examples:
        definition = define_tool(echo, description="Echo a message")

        @define_tool(description="Echo a message", input_schema=EchoArgs)
        async def definition(args):
            return text_result(args.message)
    """
    if handler is None:
        handler = options.pop("handler", None)
    if handler is None:

        def decorator(fn: Callable[..., Any]) -> ToolDefinition:
            return ToolDefinition(handler=fn, **options)

        return decorator
    return ToolDefinition(handler=handler, **options)
