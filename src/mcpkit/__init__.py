"""mcpkit - serve MCP capabilities discovered from layered directories."""

from mcpkit.cache import CachePolicy
from mcpkit.definitions import (
    HandlerOverride,
    PromptDefinition,
    ResourceDefinition,
    ResourceTemplate,
    ToolAnnotations,
    ToolDefinition,
    define_handler,
    define_prompt,
    define_resource,
    define_tool,
    error_result,
    image_result,
    json_result,
    text_result,
)
from mcpkit.protocol import RequestContext

__version__ = "0.1.0"

__all__ = [
    "CachePolicy",
    "HandlerOverride",
    "PromptDefinition",
    "RequestContext",
    "ResourceDefinition",
    "ResourceTemplate",
    "ToolAnnotations",
    "ToolDefinition",
    "__version__",
    "define_handler",
    "define_prompt",
    "define_resource",
    "define_tool",
    "error_result",
    "image_result",
    "json_result",
    "text_result",
]
