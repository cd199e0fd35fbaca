"""Definition types for tools, resources, prompts and handler overrides."""

from mcpkit.definitions.base import CapabilityKind, invoke
from mcpkit.definitions.handlers import (
    CallNext,
    HandlerOverride,
    Middleware,
    define_handler,
)
from mcpkit.definitions.naming import (
    enrich_name_title,
    kebab_case,
    title_case,
    to_identifier,
)
from mcpkit.definitions.prompts import PromptDefinition, define_prompt
from mcpkit.definitions.resources import (
    ResourceDefinition,
    ResourceTemplate,
    define_resource,
)
from mcpkit.definitions.results import (
    error_result,
    image_result,
    json_result,
    text_result,
)
from mcpkit.definitions.tools import ToolAnnotations, ToolDefinition, define_tool

__all__ = [
    # Kinds
    "CapabilityKind",
    "invoke",
    # Definitions
    "HandlerOverride",
    "PromptDefinition",
    "ResourceDefinition",
    "ResourceTemplate",
    "ToolAnnotations",
    "ToolDefinition",
    "define_handler",
    "define_prompt",
    "define_resource",
    "define_tool",
    # Middleware
    "CallNext",
    "Middleware",
    # Naming
    "enrich_name_title",
    "kebab_case",
    "title_case",
    "to_identifier",
    # Results
    "error_result",
    "image_result",
    "json_result",
    "text_result",
]
