"""Argument schemas: JSON-schema rendering and validation.

Schemas are either plain JSON-schema dicts, passed through untouched, or
pydantic model classes, rendered with ``model_json_schema()`` and used to
validate incoming arguments.
"""

from __future__ import annotations

from typing import Any

from mcp import types
from mcp.shared.exceptions import McpError
from pydantic import BaseModel, ValidationError

EMPTY_OBJECT_SCHEMA: dict[str, Any] = {"type": "object", "properties": {}}


def is_model(schema: Any) -> bool:
    return isinstance(schema, type) and issubclass(schema, BaseModel)


def schema_to_json(schema: dict[str, Any] | type[BaseModel] | None) -> dict[str, Any]:
    if schema is None:
        return dict(EMPTY_OBJECT_SCHEMA)
    if is_model(schema):
        return schema.model_json_schema()  # type: ignore[union-attr]
    return schema  # type: ignore[return-value]


def validate_arguments(
    schema: dict[str, Any] | type[BaseModel] | None,
    arguments: dict[str, Any] | None,
) -> Any:
    """Validate ``arguments`` against a model schema.

    Returns:
        A model instance for pydantic schemas, otherwise the arguments dict.

    Raises:
        McpError: INVALID_PARAMS when model validation fails.
    """
    arguments = arguments or {}
    if not is_model(schema):
        return arguments
    try:
        return schema.model_validate(arguments)  # type: ignore[union-attr]
    except ValidationError as e:
        raise McpError(
            types.ErrorData(
                code=types.INVALID_PARAMS,
                message=f"Invalid arguments: {e.error_count()} validation error(s)",
                data=e.errors(include_url=False, include_context=False),
            )
        ) from e


def prompt_arguments(
    schema: dict[str, Any] | type[BaseModel] | None,
) -> list[dict[str, Any]]:
    """Describe prompt arguments as the ``prompts/list`` entries expect."""
    if schema is None:
        return []
    rendered = schema_to_json(schema)
    required = set(rendered.get("required", []))
    arguments = []
    for name, prop in rendered.get("properties", {}).items():
        argument: dict[str, Any] = {"name": name, "required": name in required}
        if isinstance(prop, dict) and prop.get("description"):
            argument["description"] = prop["description"]
        arguments.append(argument)
    return arguments
