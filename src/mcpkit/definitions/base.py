"""Capability kinds and helpers shared by all definition types."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from enum import Enum
from typing import Any


class CapabilityKind(Enum):
    """Kind of definition discovered from an overlay.

    ``HANDLER`` is a pseudo-kind: handler files live in the base definitions
    directory and describe routing overrides rather than capabilities.
    """

    TOOL = "tool"
    RESOURCE = "resource"
    PROMPT = "prompt"
    HANDLER = "handler"

    @property
    def plural(self) -> str:
        return f"{self.value}s"

    @property
    def is_capability(self) -> bool:
        return self is not CapabilityKind.HANDLER


def _positional_arity(fn: Callable[..., Any]) -> int | None:
    """Number of positional parameters ``fn`` accepts, None if unbounded."""
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return None

    count = 0
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return None
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            count += 1
    return count


async def invoke(fn: Callable[..., Any], *args: Any) -> Any:
    """Call a user handler with as many leading args as it accepts.

    Handlers may be sync or async and may ignore trailing arguments such as
    the request context: ``def handler(args)`` and
    ``async def handler(args, ctx)`` both work.
    """
    arity = _positional_arity(fn)
    call_args = args if arity is None else args[:arity]
    result = fn(*call_args)
    if inspect.isawaitable(result):
        result = await result
    return result
