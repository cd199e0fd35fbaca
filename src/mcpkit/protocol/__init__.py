"""MCP protocol runtime: capability registration on the MCP SDK server."""

from mcpkit.protocol.schema import prompt_arguments, schema_to_json, validate_arguments
from mcpkit.protocol.server import (
    RESOURCE_NOT_FOUND,
    McpServer,
    RegisteredPrompt,
    RegisteredResource,
    RegisteredTool,
    RequestContext,
)

__all__ = [
    "RESOURCE_NOT_FOUND",
    "McpServer",
    "RegisteredPrompt",
    "RegisteredResource",
    "RegisteredTool",
    "RequestContext",
    "prompt_arguments",
    "schema_to_json",
    "validate_arguments",
]
