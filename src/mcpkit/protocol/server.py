"""Register capabilities on an MCP SDK server.

One ``McpServer`` holds the capabilities exposed on one route. It owns a
low-level ``mcp`` server and installs the list/call/read/get handlers for a
capability kind the first time one of that kind is registered, so a route
only advertises the capabilities it actually serves.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.shared.exceptions import McpError

from mcpkit.cache import (
    CacheStore,
    create_cache_policy,
    default_cache_key,
    wrap_with_cache,
)
from mcpkit.definitions.base import invoke
from mcpkit.definitions.naming import enrich_name_title
from mcpkit.definitions.prompts import PromptDefinition
from mcpkit.definitions.resources import (
    ResourceDefinition,
    ResourceTemplate,
    resolve_file_resource,
)
from mcpkit.definitions.results import error_result, json_result, text_result
from mcpkit.definitions.tools import ToolDefinition
from mcpkit.protocol.schema import prompt_arguments, schema_to_json, validate_arguments

if TYPE_CHECKING:
    from pydantic import AnyUrl
    from starlette.requests import Request

logger = logging.getLogger(__name__)

# MCP extension code for resources/read on an unknown URI
RESOURCE_NOT_FOUND = -32002


@dataclass
class RequestContext:
    """Passed to capability handlers as their last argument."""

    request: Request | None = None
    handler_name: str | None = None
    request_id: str | int | None = None


@dataclass(slots=True)
class RegisteredTool:
    definition: ToolDefinition
    name: str
    title: str | None
    call: Callable[..., Any]

    def describe(self) -> dict[str, Any]:
        tool = self.definition
        entry: dict[str, Any] = {
            "name": self.name,
            "inputSchema": schema_to_json(tool.input_schema),
        }
        if self.title:
            entry["title"] = self.title
        if tool.description:
            entry["description"] = tool.description
        if tool.output_schema is not None:
            entry["outputSchema"] = schema_to_json(tool.output_schema)
        if tool.annotations is not None:
            entry["annotations"] = tool.annotations.to_dict()

        # filename is bookkeeping from discovery, not client metadata
        meta = {key: value for key, value in tool.meta.items() if key != "filename"}
        if tool.input_examples:
            meta["inputExamples"] = tool.input_examples
        if meta:
            entry["_meta"] = meta
        return entry


@dataclass(slots=True)
class RegisteredResource:
    definition: ResourceDefinition
    name: str
    title: str | None
    uri: str | ResourceTemplate
    handler: Callable[..., Any]

    @property
    def is_template(self) -> bool:
        return isinstance(self.uri, ResourceTemplate)

    def describe(self) -> dict[str, Any]:
        resource = self.definition
        if isinstance(self.uri, ResourceTemplate):
            entry: dict[str, Any] = {"uriTemplate": self.uri.uri_template}
        else:
            entry = {"uri": self.uri}
        entry["name"] = self.name
        if self.title:
            entry["title"] = self.title
        if resource.description:
            entry["description"] = resource.description
        if resource.mime_type:
            entry["mimeType"] = resource.mime_type
        if resource.annotations:
            entry["annotations"] = resource.annotations
        return entry


@dataclass(slots=True)
class RegisteredPrompt:
    definition: PromptDefinition
    name: str
    title: str | None
    handler: Callable[..., Any]

    def describe(self) -> dict[str, Any]:
        prompt = self.definition
        entry: dict[str, Any] = {
            "name": self.name,
            "arguments": prompt_arguments(prompt.input_schema),
        }
        if self.title:
            entry["title"] = self.title
        if prompt.description:
            entry["description"] = prompt.description
        return entry


def _normalize_tool_result(result: Any) -> dict[str, Any]:
    if result is None:
        return {"content": []}
    if isinstance(result, str):
        return text_result(result)
    if isinstance(result, dict) and "content" in result:
        return result
    return json_result(result)


def _resource_contents(result: Any, mime_type: str) -> list[ReadResourceContents]:
    if isinstance(result, dict) and "contents" in result:
        contents = []
        for item in result["contents"]:
            if "blob" in item:
                data: str | bytes = base64.b64decode(item["blob"])
            else:
                data = item.get("text", "")
            item_mime = item.get("mimeType", mime_type)
            contents.append(ReadResourceContents(content=data, mime_type=item_mime))
        return contents
    if isinstance(result, bytes):
        return [ReadResourceContents(content=result, mime_type=mime_type)]
    text = result if isinstance(result, str) else str(result)
    return [ReadResourceContents(content=text, mime_type=mime_type)]


def _error(code: int, message: str, data: Any = None) -> McpError:
    return McpError(types.ErrorData(code=code, message=message, data=data))


class McpServer:
    """Capabilities for one route, served by a low-level MCP server."""

    def __init__(
        self,
        name: str,
        version: str,
        cache_store: CacheStore | None = None,
        handler_name: str | None = None,
    ):
        """Initialize the server.

        Args:
            name: Server name reported in ``initialize``.
            version: Server version reported in ``initialize``.
            cache_store: Store backing tools that declare a cache policy.
                Without one, cache policies are ignored.
            handler_name: Named handler this server backs, passed to
                capability handlers through the request context.
        """
        self.name = name
        self.version = version
        self.handler_name = handler_name
        self._cache_store = cache_store
        self._server: Server = Server(name, version=version)
        self._tools: dict[str, RegisteredTool] = {}
        self._resources: dict[str, RegisteredResource] = {}
        self._prompts: dict[str, RegisteredPrompt] = {}

    @classmethod
    def build(
        cls,
        name: str,
        version: str,
        tools: Iterable[ToolDefinition] = (),
        resources: Iterable[ResourceDefinition] = (),
        prompts: Iterable[PromptDefinition] = (),
        cache_store: CacheStore | None = None,
        handler_name: str | None = None,
    ) -> McpServer:
        server = cls(name, version, cache_store, handler_name)
        for tool in tools:
            server.register_tool(tool)
        for resource in resources:
            server.register_resource(resource)
        for prompt in prompts:
            server.register_prompt(prompt)
        return server

    @property
    def lowlevel(self) -> Server:
        """The SDK server, for transports and in-memory sessions."""
        return self._server

    @property
    def tools(self) -> list[RegisteredTool]:
        return list(self._tools.values())

    @property
    def resources(self) -> list[RegisteredResource]:
        return list(self._resources.values())

    @property
    def prompts(self) -> list[RegisteredPrompt]:
        return list(self._prompts.values())

    def register_tool(self, tool: ToolDefinition) -> RegisteredTool:
        name, title = enrich_name_title(tool.name, tool.title, tool.meta, "tool")
        if tool.handler is None:
            raise ValueError(f"Tool '{name}' has no handler")

        call = tool.handler
        if tool.cache is not None and self._cache_store is not None:
            policy = create_cache_policy(
                tool.cache, f"mcp-tool:{name}", default_cache_key
            )
            call = wrap_with_cache(call, policy, self._cache_store)

        if not self._tools:
            self._server.list_tools()(self._list_tools)
            self._server.call_tool()(self._call_tool)
        if name in self._tools:
            logger.warning(f"Tool '{name}' registered twice, keeping the last")
        registered = RegisteredTool(tool, name, title, call)
        self._tools[name] = registered
        return registered

    def register_resource(self, resource: ResourceDefinition) -> RegisteredResource:
        name, title = enrich_name_title(
            resource.name, resource.title, resource.meta, "resource"
        )
        uri, handler = resolve_file_resource(resource)
        if uri is None or handler is None:
            raise ValueError(f"Resource '{name}' needs a uri and a handler, or a file")

        if not self._resources:
            self._server.list_resources()(self._list_resources)
            self._server.list_resource_templates()(self._list_resource_templates)
            self._server.read_resource()(self._read_resource)
        if name in self._resources:
            logger.warning(f"Resource '{name}' registered twice, keeping the last")
        registered = RegisteredResource(resource, name, title, uri, handler)
        self._resources[name] = registered
        return registered

    def register_prompt(self, prompt: PromptDefinition) -> RegisteredPrompt:
        name, title = enrich_name_title(
            prompt.name, prompt.title, prompt.meta, "prompt"
        )
        if prompt.handler is None:
            raise ValueError(f"Prompt '{name}' has no handler")

        if not self._prompts:
            self._server.list_prompts()(self._list_prompts)
            self._server.get_prompt()(self._get_prompt)
        if name in self._prompts:
            logger.warning(f"Prompt '{name}' registered twice, keeping the last")
        registered = RegisteredPrompt(prompt, name, title, prompt.handler)
        self._prompts[name] = registered
        return registered

    def _context(self) -> RequestContext:
        try:
            current = self._server.request_context
        except LookupError:
            return RequestContext(handler_name=self.handler_name)
        return RequestContext(
            request=current.request,
            handler_name=self.handler_name,
            request_id=current.request_id,
        )

    async def _list_tools(self) -> list[types.Tool]:
        return [types.Tool.model_validate(tool.describe()) for tool in self.tools]

    async def _call_tool(
        self, name: str, arguments: dict[str, Any]
    ) -> types.CallToolResult:
        tool = self._tools.get(name)
        if tool is None:
            raise _error(types.INVALID_PARAMS, f"Tool {name} not found")

        validated = validate_arguments(tool.definition.input_schema, arguments)
        try:
            result = await invoke(tool.call, validated, self._context())
        except Exception as e:
            logger.exception(f"Tool execution failed: {name}")
            result = error_result(f"Tool {name} failed: {e}")

        return types.CallToolResult.model_validate(_normalize_tool_result(result))

    async def _list_resources(self) -> list[types.Resource]:
        return [
            types.Resource.model_validate(resource.describe())
            for resource in self.resources
            if not resource.is_template
        ]

    async def _list_resource_templates(self) -> list[types.ResourceTemplate]:
        return [
            types.ResourceTemplate.model_validate(resource.describe())
            for resource in self.resources
            if resource.is_template
        ]

    async def _read_resource(self, uri: AnyUrl) -> list[ReadResourceContents]:
        target = str(uri)
        context = self._context()

        # Exact URIs take priority over templates
        for resource in self.resources:
            if resource.uri == target:
                result = await self._invoke_reader(resource, target, context)
                return _resource_contents(result, self._mime_type(resource))

        for resource in self.resources:
            if isinstance(resource.uri, ResourceTemplate):
                variables = resource.uri.match(target)
                if variables is not None:
                    result = await self._invoke_reader(
                        resource, target, context, variables
                    )
                    return _resource_contents(result, self._mime_type(resource))

        raise _error(
            RESOURCE_NOT_FOUND, f"Resource {target} not found", {"uri": target}
        )

    @staticmethod
    def _mime_type(resource: RegisteredResource) -> str:
        return resource.definition.mime_type or "text/plain"

    async def _invoke_reader(
        self,
        resource: RegisteredResource,
        uri: str,
        context: RequestContext,
        variables: dict[str, str] | None = None,
    ) -> Any:
        args = (uri, context) if variables is None else (uri, variables, context)
        try:
            return await invoke(resource.handler, *args)
        except McpError:
            raise
        except Exception as e:
            logger.exception(f"Resource read failed: {uri}")
            raise _error(types.INTERNAL_ERROR, f"Resource {uri} failed: {e}") from e

    async def _list_prompts(self) -> list[types.Prompt]:
        return [
            types.Prompt.model_validate(prompt.describe()) for prompt in self.prompts
        ]

    async def _get_prompt(
        self, name: str, arguments: dict[str, str] | None
    ) -> types.GetPromptResult:
        prompt = self._prompts.get(name)
        if prompt is None:
            raise _error(types.INVALID_PARAMS, f"Prompt {name} not found")

        validated = validate_arguments(prompt.definition.input_schema, arguments)
        try:
            result = await invoke(prompt.handler, validated, self._context())
        except McpError:
            raise
        except Exception as e:
            logger.exception(f"Prompt failed: {name}")
            raise _error(types.INTERNAL_ERROR, f"Prompt {name} failed: {e}") from e

        if isinstance(result, str):
            result = {
                "messages": [
                    {"role": "user", "content": {"type": "text", "text": result}}
                ]
            }
        if prompt.definition.description and "description" not in result:
            result = {"description": prompt.definition.description, **result}
        return types.GetPromptResult.model_validate(result)
