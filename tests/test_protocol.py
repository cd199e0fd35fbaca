"""Tests for the MCP protocol server."""

import json

import pytest
from mcp import types
from mcp.server.lowlevel import NotificationOptions
from mcp.shared.exceptions import McpError
from mcp.shared.memory import create_connected_server_and_client_session
from pydantic import AnyUrl, BaseModel, Field

from mcpkit import (
    PromptDefinition,
    ResourceDefinition,
    ResourceTemplate,
    ToolAnnotations,
    ToolDefinition,
    define_tool,
    text_result,
)
from mcpkit.cache import CacheStore
from mcpkit.errors import IdentifierError
from mcpkit.protocol import RESOURCE_NOT_FOUND, McpServer


class SearchArgs(BaseModel):
    query: str = Field(description="Search text")
    limit: int = 5


@pytest.fixture
def server() -> McpServer:
    def search(args: SearchArgs):
        return {"content": [{"type": "text", "text": f"{args.query}:{args.limit}"}]}

    def explode(args):
        raise RuntimeError("kaboom")

    def readme(uri):
        return "# Readme"

    def doc_page(uri, variables):
        return {"contents": [{"uri": uri, "text": variables["page"]}]}

    def review(args):
        return f"Review {args['file']}"

    return McpServer.build(
        "Test Server",
        "1.2.3",
        tools=[
            ToolDefinition(
                handler=search,
                input_schema=SearchArgs,
                annotations=ToolAnnotations(read_only_hint=True),
                meta={"filename": "search_docs.py"},
            ),
            ToolDefinition(handler=explode, name="explode"),
            ToolDefinition(handler=lambda: {"total": 3}, name="stats"),
            ToolDefinition(
                handler=lambda args: "ok",
                name="annotated",
                input_examples=[{"query": "install"}],
                meta={"filename": "annotated.py", "owner": "docs"},
            ),
        ],
        resources=[
            ResourceDefinition(
                handler=readme,
                uri="docs://readme",
                mime_type="text/markdown",
                meta={"filename": "readme.py"},
            ),
            ResourceDefinition(
                handler=doc_page,
                uri=ResourceTemplate("docs://pages/{page}"),
                name="page",
            ),
            ResourceDefinition(
                handler=lambda uri: 1 / 0, uri="docs://broken", name="broken"
            ),
        ],
        prompts=[
            PromptDefinition(
                handler=review,
                description="Review a file",
                input_schema={
                    "type": "object",
                    "properties": {"file": {"type": "string"}},
                    "required": ["file"],
                },
                meta={"filename": "code_review.py"},
            )
        ],
    )


class TestCapabilities:
    """Capabilities follow what was registered."""

    def test_all_kinds(self, server):
        capabilities = server.lowlevel.get_capabilities(NotificationOptions(), {})

        assert capabilities.tools is not None
        assert capabilities.resources is not None
        assert capabilities.prompts is not None

    def test_only_registered_kinds(self):
        server = McpServer.build(
            "s", "1", tools=[ToolDefinition(handler=lambda: "ok", name="t")]
        )
        capabilities = server.lowlevel.get_capabilities(NotificationOptions(), {})

        assert capabilities.tools is not None
        assert capabilities.resources is None
        assert capabilities.prompts is None

    async def test_ping(self, server):
        async with create_connected_server_and_client_session(
            server.lowlevel
        ) as client:
            assert isinstance(await client.send_ping(), types.EmptyResult)


class TestTools:
    """tools/list and tools/call."""

    async def test_list_derives_names(self, server):
        async with create_connected_server_and_client_session(
            server.lowlevel
        ) as client:
            result = await client.list_tools()

        tools = {tool.name: tool for tool in result.tools}
        assert set(tools) == {"search-docs", "explode", "stats", "annotated"}
        search = tools["search-docs"]
        assert search.title == "Search Docs"
        assert search.annotations.readOnlyHint is True
        assert search.inputSchema["properties"]["query"]["type"] == "string"

    async def test_list_carries_meta_and_examples(self, server):
        async with create_connected_server_and_client_session(
            server.lowlevel
        ) as client:
            result = await client.list_tools()

        tools = {tool.name: tool for tool in result.tools}
        assert tools["annotated"].meta == {
            "owner": "docs",
            "inputExamples": [{"query": "install"}],
        }
        assert tools["search-docs"].meta is None

    def test_describe_drops_filename(self, server):
        described = {tool.name: tool.describe() for tool in server.tools}

        assert "_meta" not in described["search-docs"]
        assert described["annotated"]["_meta"]["inputExamples"] == [
            {"query": "install"}
        ]
        assert "filename" not in described["annotated"]["_meta"]

    async def test_call_validates_model_arguments(self, server):
        async with create_connected_server_and_client_session(
            server.lowlevel
        ) as client:
            result = await client.call_tool("search-docs", {"query": "mcp"})

        assert result.isError is False
        assert result.content[0].text == "mcp:5"

    async def test_call_with_invalid_arguments(self, server):
        async with create_connected_server_and_client_session(
            server.lowlevel
        ) as client:
            result = await client.call_tool("search-docs", {"limit": "x"})

        assert result.isError is True

    async def test_call_unknown_tool(self, server):
        async with create_connected_server_and_client_session(
            server.lowlevel
        ) as client:
            result = await client.call_tool("missing", {})

        assert result.isError is True
        assert "missing" in result.content[0].text
        assert "not found" in result.content[0].text

    async def test_tool_exception_becomes_error_result(self, server):
        async with create_connected_server_and_client_session(
            server.lowlevel
        ) as client:
            result = await client.call_tool("explode", {})

        assert result.isError is True
        assert "kaboom" in result.content[0].text

    async def test_plain_values_serialized_as_json(self, server):
        async with create_connected_server_and_client_session(
            server.lowlevel
        ) as client:
            result = await client.call_tool("stats", {})

        assert json.loads(result.content[0].text) == {"total": 3}

    async def test_context_passed_to_handler(self):
        seen = []

        def handler(args, ctx):
            seen.append((ctx.handler_name, ctx.request_id is not None))
            return "ok"

        server = McpServer.build(
            "s",
            "1",
            tools=[ToolDefinition(handler=handler, name="t")],
            handler_name="admin",
        )
        async with create_connected_server_and_client_session(
            server.lowlevel
        ) as client:
            await client.call_tool("t", {})

        assert seen == [("admin", True)]

    async def test_cached_tool(self):
        calls = 0

        def handler(args):
            nonlocal calls
            calls += 1
            return text_result(str(calls))

        store = CacheStore()
        server = McpServer.build(
            "s",
            "1",
            tools=[define_tool(handler, name="counter", cache="1h")],
            cache_store=store,
        )
        async with create_connected_server_and_client_session(
            server.lowlevel
        ) as client:
            first = await client.call_tool("counter", {"x": 1})
            second = await client.call_tool("counter", {"x": 1})

        assert first.content[0].text == second.content[0].text == "1"
        assert calls == 1
        assert store.get("mcp-tool:counter:1") is not None

    def test_registration_requires_name(self):
        server = McpServer("s", "1")
        with pytest.raises(IdentifierError):
            server.register_tool(ToolDefinition(handler=lambda: None))


class TestResources:
    """resources/list, resources/templates/list and resources/read."""

    async def test_list_static(self, server):
        async with create_connected_server_and_client_session(
            server.lowlevel
        ) as client:
            result = await client.list_resources()

        assert [str(resource.uri) for resource in result.resources] == [
            "docs://readme",
            "docs://broken",
        ]

    async def test_list_templates(self, server):
        async with create_connected_server_and_client_session(
            server.lowlevel
        ) as client:
            result = await client.list_resource_templates()

        [template] = result.resourceTemplates
        assert template.uriTemplate == "docs://pages/{page}"
        assert template.name == "page"

    async def test_read_static(self, server):
        async with create_connected_server_and_client_session(
            server.lowlevel
        ) as client:
            result = await client.read_resource(AnyUrl("docs://readme"))

        [content] = result.contents
        assert content.text == "# Readme"
        assert content.mimeType == "text/markdown"

    async def test_read_template(self, server):
        async with create_connected_server_and_client_session(
            server.lowlevel
        ) as client:
            result = await client.read_resource(AnyUrl("docs://pages/intro"))

        assert result.contents[0].text == "intro"

    async def test_read_unknown(self, server):
        async with create_connected_server_and_client_session(
            server.lowlevel
        ) as client:
            with pytest.raises(McpError) as exc_info:
                await client.read_resource(AnyUrl("docs://nope"))

        assert exc_info.value.error.code == RESOURCE_NOT_FOUND

    async def test_reader_failure_is_internal_error(self, server):
        async with create_connected_server_and_client_session(
            server.lowlevel
        ) as client:
            with pytest.raises(McpError) as exc_info:
                await client.read_resource(AnyUrl("docs://broken"))

        assert exc_info.value.error.code == types.INTERNAL_ERROR

    async def test_file_resource(self, tmp_path, monkeypatch):
        (tmp_path / "NOTES.md").write_text("hello")
        monkeypatch.chdir(tmp_path)
        server = McpServer.build(
            "s", "1", resources=[ResourceDefinition(file="NOTES.md", name="notes")]
        )
        uri = (tmp_path / "NOTES.md").resolve().as_uri()

        async with create_connected_server_and_client_session(
            server.lowlevel
        ) as client:
            result = await client.read_resource(AnyUrl(uri))

        content = result.contents[0]
        assert content.text == "hello"
        assert content.mimeType == "text/markdown"


class TestPrompts:
    """prompts/list and prompts/get."""

    async def test_list(self, server):
        async with create_connected_server_and_client_session(
            server.lowlevel
        ) as client:
            result = await client.list_prompts()

        [prompt] = result.prompts
        assert prompt.name == "code-review"
        assert [(arg.name, arg.required) for arg in prompt.arguments] == [
            ("file", True)
        ]

    async def test_get_wraps_string(self, server):
        async with create_connected_server_and_client_session(
            server.lowlevel
        ) as client:
            result = await client.get_prompt("code-review", {"file": "a.py"})

        assert result.description == "Review a file"
        assert result.messages[0].role == "user"
        assert result.messages[0].content.text == "Review a.py"

    async def test_get_unknown(self, server):
        async with create_connected_server_and_client_session(
            server.lowlevel
        ) as client:
            with pytest.raises(McpError) as exc_info:
                await client.get_prompt("nope")

        assert exc_info.value.error.code == types.INVALID_PARAMS
