"""Prompt definitions."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pydantic import BaseModel


@dataclass(kw_only=True)
class PromptDefinition:
    """A reusable message template.

    ``input_schema`` describes the prompt arguments. The handler returns a
    ``{"messages": [...]}`` dict, or a plain string that becomes a single
    user message.
    """

    handler: Callable[..., Any] | None = None
    name: str | None = None
    title: str | None = None
    description: str | None = None
    input_schema: dict[str, Any] | type[BaseModel] | None = None
    meta: dict[str, Any] = field(default_factory=dict)


def define_prompt(
    handler: Callable[..., Any] | None = None, /, **options: Any
) -> Any:
    """Define a prompt, directly or as a decorator."""
    if handler is None:
        handler = options.pop("handler", None)
    if handler is None:

        def decorator(fn: Callable[..., Any]) -> PromptDefinition:
            return PromptDefinition(handler=fn, **options)

        return decorator
    return PromptDefinition(handler=handler, **options)
