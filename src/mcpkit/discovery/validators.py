"""Structural checks applied to definitions before they enter the registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from mcpkit.cache import create_cache_policy
from mcpkit.definitions.handlers import HandlerOverride
from mcpkit.definitions.prompts import PromptDefinition
from mcpkit.definitions.resources import ResourceDefinition, ResourceTemplate
from mcpkit.definitions.tools import ToolDefinition


@dataclass(slots=True)
class ValidationError:
    """One problem found in a definition."""

    message: str
    suggestion: str | None = None

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message} ({self.suggestion})"
        return self.message


def _is_schema(value: Any) -> bool:
    return isinstance(value, dict) or (
        isinstance(value, type) and issubclass(value, BaseModel)
    )


def _check_handler(handler: Any, kind: str) -> list[ValidationError]:
    if handler is None:
        return [
            ValidationError(
                f"{kind.capitalize()} definition is missing a handler function",
                "pass handler=... or use the decorator form",
            )
        ]
    if not callable(handler):
        return [ValidationError(f"{kind.capitalize()} handler must be callable")]
    return []


def validate_tool(tool: ToolDefinition) -> list[ValidationError]:
    errors = _check_handler(tool.handler, "tool")

    schemas = {"input_schema": tool.input_schema, "output_schema": tool.output_schema}
    for label, schema in schemas.items():
        if schema is not None and not _is_schema(schema):
            errors.append(
                ValidationError(
                    f"Tool {label} must be a JSON schema dict or a pydantic model",
                    f"got {type(schema).__name__}",
                )
            )

    if tool.cache is not None:
        try:
            create_cache_policy(tool.cache, "validate")
        except (TypeError, ValueError) as e:
            errors.append(ValidationError(f"Invalid cache option: {e}"))

    return errors


def validate_resource(resource: ResourceDefinition) -> list[ValidationError]:
    if resource.file:
        # URI and reader are generated from the file
        errors: list[ValidationError] = []
    else:
        errors = _check_handler(resource.handler, "resource")
        if resource.uri is None:
            errors.append(
                ValidationError(
                    "Resource definition is missing a URI",
                    "set uri=... or file=...",
                )
            )

    if resource.uri is not None and not isinstance(
        resource.uri, str | ResourceTemplate
    ):
        errors.append(
            ValidationError("Resource uri must be a string or ResourceTemplate")
        )
    return errors


def validate_prompt(prompt: PromptDefinition) -> list[ValidationError]:
    errors = _check_handler(prompt.handler, "prompt")
    if prompt.input_schema is not None and not _is_schema(prompt.input_schema):
        errors.append(
            ValidationError(
                "Prompt input_schema must be a JSON schema dict or a pydantic model"
            )
        )
    return errors


def validate_handler(handler: HandlerOverride) -> list[ValidationError]:
    errors: list[ValidationError] = []
    if handler.middleware is not None and not callable(handler.middleware):
        errors.append(ValidationError("Handler middleware must be callable"))

    checks: list[tuple[str, list[Any] | None, type]] = [
        ("tools", handler.tools, ToolDefinition),
        ("resources", handler.resources, ResourceDefinition),
        ("prompts", handler.prompts, PromptDefinition),
    ]
    for field_name, items, expected in checks:
        if items is None:
            continue
        for item in items:
            if not isinstance(item, expected):
                errors.append(
                    ValidationError(
                        f"Handler {field_name} must contain {expected.__name__} items",
                        f"got {type(item).__name__}",
                    )
                )
    for tool in handler.tools or []:
        if isinstance(tool, ToolDefinition):
            errors.extend(validate_tool(tool))
    for resource in handler.resources or []:
        if isinstance(resource, ResourceDefinition):
            errors.extend(validate_resource(resource))
    for prompt in handler.prompts or []:
        if isinstance(prompt, PromptDefinition):
            errors.extend(validate_prompt(prompt))
    return errors
