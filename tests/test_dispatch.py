"""Tests for handler resolution and the middleware wrapper."""

from types import MappingProxyType

import pytest
from starlette.responses import PlainTextResponse

from mcpkit import (
    HandlerOverride,
    PromptDefinition,
    ResourceDefinition,
    ToolDefinition,
)
from mcpkit.config import McpConfig
from mcpkit.discovery import Registry
from mcpkit.errors import HandlerNotFoundError
from mcpkit.server import (
    Continuation,
    MiddlewareOutcome,
    resolve_handler,
    run_with_middleware,
)


def tool(name: str) -> ToolDefinition:
    return ToolDefinition(handler=lambda: name, name=name)


GLOBAL_TOOLS = (tool("search"), tool("echo"))
GLOBAL_RESOURCES = (ResourceDefinition(handler=lambda: "", uri="x://r", name="r"),)
GLOBAL_PROMPTS = (PromptDefinition(handler=lambda: "", name="p"),)


def make_registry(
    named: dict[str, HandlerOverride] | None = None,
    default: HandlerOverride | None = None,
) -> Registry:
    return Registry(
        tools=GLOBAL_TOOLS,
        resources=GLOBAL_RESOURCES,
        prompts=GLOBAL_PROMPTS,
        handler_overrides=MappingProxyType(named or {}),
        default_handler=default,
    )


@pytest.fixture
def config() -> McpConfig:
    return McpConfig(name="Docs", version="1.0.0", browser_redirect="/docs")


class TestResolveHandler:
    """Tests for resolve_handler."""

    def test_global_registry(self, config):
        resolved = resolve_handler(make_registry(), config)

        assert resolved.name == "Docs"
        assert resolved.version == "1.0.0"
        assert resolved.browser_redirect == "/docs"
        assert resolved.tools == GLOBAL_TOOLS
        assert resolved.middleware is None
        assert resolved.handler_name is None

    def test_global_registry_default_name(self):
        resolved = resolve_handler(make_registry(), McpConfig())
        assert resolved.name == "MCP Server"

    def test_named_handler_uses_own_subset(self, config):
        admin = HandlerOverride(name="admin", tools=[tool("purge")])
        registry = make_registry(named={"admin": admin}, default=HandlerOverride())

        resolved = resolve_handler(registry, config, "admin")

        assert [t.name for t in resolved.tools] == ["purge"]
        assert resolved.resources == ()
        assert resolved.prompts == ()
        assert resolved.handler_name == "admin"

    def test_named_handler_empty_subset_stays_empty(self, config):
        empty = HandlerOverride(name="empty", tools=[])
        registry = make_registry(named={"empty": empty}, default=HandlerOverride())

        resolved = resolve_handler(registry, config, "empty")

        assert resolved.tools == ()

    def test_named_handler_falls_back_to_config_identity(self, config):
        registry = make_registry(named={"admin": HandlerOverride(name="admin")})

        resolved = resolve_handler(registry, config, "admin")

        assert resolved.name == "admin"
        assert resolved.version == "1.0.0"
        assert resolved.browser_redirect == "/docs"

    def test_named_handler_name_falls_back_to_requested(self, config):
        registry = make_registry(named={"ops": HandlerOverride()})
        assert resolve_handler(registry, config, "ops").name == "ops"

    def test_named_handler_not_found(self, config):
        with pytest.raises(HandlerNotFoundError, match='Handler "nope" not found'):
            resolve_handler(make_registry(), config, "nope")

    def test_default_override_version_only_keeps_globals(self, config):
        registry = make_registry(default=HandlerOverride(version="2.0.0"))

        resolved = resolve_handler(registry, config)

        assert resolved.version == "2.0.0"
        assert resolved.name == "Docs"
        assert resolved.tools == GLOBAL_TOOLS
        assert resolved.resources == GLOBAL_RESOURCES
        assert resolved.prompts == GLOBAL_PROMPTS

    def test_default_override_fields_fall_back_individually(self, config):
        default = HandlerOverride(
            name="Curated", tools=[tool("echo")], browser_redirect="/home"
        )

        resolved = resolve_handler(make_registry(default=default), config)

        assert resolved.name == "Curated"
        assert resolved.browser_redirect == "/home"
        assert [t.name for t in resolved.tools] == ["echo"]
        assert resolved.resources == GLOBAL_RESOURCES

    def test_default_override_name_chain(self):
        registry = make_registry(default=HandlerOverride())
        assert resolve_handler(registry, McpConfig()).name == "MCP Server"


class FakeRequest:
    def __init__(self):
        self.state = {}


class TestRunWithMiddleware:
    """Tests for run_with_middleware."""

    @pytest.fixture
    def handler(self):
        calls = []

        async def handle():
            calls.append(1)
            return PlainTextResponse("handled")

        handle.calls = calls
        return handle

    async def test_no_middleware(self, handler):
        response, outcome = await run_with_middleware(FakeRequest(), None, handler)

        assert response.body == b"handled"
        assert outcome is MiddlewareOutcome.NO_MIDDLEWARE
        assert len(handler.calls) == 1

    async def test_auto_continuation(self, handler):
        request = FakeRequest()

        async def mutate_only(req, call_next):
            req.state["user"] = "alice"

        response, outcome = await run_with_middleware(request, mutate_only, handler)

        assert outcome is MiddlewareOutcome.AUTO_CONTINUATION
        assert response.body == b"handled"
        assert request.state["user"] == "alice"
        assert len(handler.calls) == 1

    async def test_sync_middleware(self, handler):
        def noop(req, call_next):
            return None

        _, outcome = await run_with_middleware(FakeRequest(), noop, handler)

        assert outcome is MiddlewareOutcome.AUTO_CONTINUATION
        assert len(handler.calls) == 1

    async def test_continuation_result(self, handler):
        async def timing(req, call_next):
            await call_next()

        response, outcome = await run_with_middleware(FakeRequest(), timing, handler)

        assert outcome is MiddlewareOutcome.CONTINUATION_RESULT
        assert response.body == b"handled"
        assert len(handler.calls) == 1

    async def test_explicit_response(self, handler):
        async def wrap(req, call_next):
            inner = await call_next()
            inner.headers["X-Wrapped"] = "1"
            return inner

        response, outcome = await run_with_middleware(FakeRequest(), wrap, handler)

        assert outcome is MiddlewareOutcome.EXPLICIT_RESPONSE
        assert response.headers["X-Wrapped"] == "1"
        assert len(handler.calls) == 1

    async def test_short_circuit(self, handler):
        async def deny(req, call_next):
            return PlainTextResponse("denied", status_code=403)

        response, outcome = await run_with_middleware(FakeRequest(), deny, handler)

        assert outcome is MiddlewareOutcome.EXPLICIT_RESPONSE
        assert response.status_code == 403
        assert handler.calls == []

    async def test_call_next_runs_handler_once(self, handler):
        call_next = Continuation(handler)

        first = await call_next()
        second = await call_next()

        assert first is second
        assert call_next.called
        assert len(handler.calls) == 1

    async def test_swallowed_handler_error_is_reraised(self):
        calls = []

        async def failing():
            calls.append(1)
            raise ValueError("handler broke")

        async def lenient(req, call_next):
            try:
                await call_next()
            except ValueError:
                pass

        with pytest.raises(ValueError, match="handler broke"):
            await run_with_middleware(FakeRequest(), lenient, failing)
        assert len(calls) == 1

    async def test_call_next_repeats_failure(self):
        async def failing():
            raise ValueError("handler broke")

        call_next = Continuation(failing)

        with pytest.raises(ValueError):
            await call_next()
        with pytest.raises(ValueError, match="handler broke"):
            await call_next()
        assert call_next.error is not None
