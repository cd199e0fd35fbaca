"""FastAPI application serving MCP endpoints."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
from mcp import types

from mcpkit.cache import CacheStore
from mcpkit.errors import HandlerNotFoundError
from mcpkit.protocol.server import McpServer
from mcpkit.server.handler import ResolvedHandler, resolve_handler
from mcpkit.server.middleware import run_with_middleware
from mcpkit.server.routes import health
from mcpkit.server.transport import McpEndpoint

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from mcpkit.config import McpConfig
    from mcpkit.discovery import Registry

logger = logging.getLogger(__name__)

MCP_METHODS = ["GET", "POST", "DELETE"]


def _wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "")


def _error_response(code: int, message: str, status_code: int) -> JSONResponse:
    error = types.ErrorData(code=code, message=message)
    body = {"jsonrpc": "2.0", "id": None, "error": error.model_dump(exclude_none=True)}
    return JSONResponse(body, status_code=status_code)


class McpKitServer:
    """Main server application.

    Builds one MCP endpoint per route up front (the main route plus every
    named handler) and dispatches requests to them.
    """

    def __init__(
        self,
        config: McpConfig,
        registry: Registry,
        cache_store: CacheStore | None = None,
    ):
        self._config = config
        self._registry = registry
        self._cache_store = cache_store or CacheStore(config.cache.max_entries)
        self._endpoints: dict[str | None, tuple[ResolvedHandler, McpEndpoint]] = {}

        if config.enabled:
            self._build_endpoints()
        self._app = self._create_app()

    @property
    def app(self) -> FastAPI:
        """Get the FastAPI application."""
        return self._app

    @property
    def cache_store(self) -> CacheStore:
        return self._cache_store

    def _build_endpoints(self) -> None:
        names: list[str | None] = [None, *self._registry.handler_overrides]
        for handler_name in names:
            resolved = resolve_handler(self._registry, self._config, handler_name)
            server = McpServer.build(
                resolved.name,
                resolved.version,
                tools=resolved.tools,
                resources=resolved.resources,
                prompts=resolved.prompts,
                cache_store=self._cache_store,
                handler_name=handler_name,
            )
            self._endpoints[handler_name] = (resolved, McpEndpoint(server))

    def get_endpoint(
        self, handler_name: str | None
    ) -> tuple[ResolvedHandler, McpEndpoint]:
        """Get the resolved handler and MCP endpoint for a route.

        Raises:
            HandlerNotFoundError: If ``handler_name`` is not registered.
        """
        entry = self._endpoints.get(handler_name or None)
        if entry is None:
            raise HandlerNotFoundError(handler_name or "")
        return entry

    async def dispatch(self, request: Request, handler_name: str | None) -> Response:
        """Serve one MCP request."""
        try:
            resolved, endpoint = self.get_endpoint(handler_name)
        except HandlerNotFoundError as e:
            logger.info(f"MCP request for unknown handler: {e.name}")
            return _error_response(types.INVALID_REQUEST, e.message, 404)

        if _wants_html(request):
            return RedirectResponse(resolved.browser_redirect, status_code=307)

        async def handle() -> Response:
            if request.method == "GET":
                # Stateless sessions have no standalone SSE stream to open
                response = _error_response(
                    types.INVALID_REQUEST, "Method not allowed", 405
                )
                response.headers["Allow"] = "POST"
                return response
            return await endpoint.handle(request)

        response, outcome = await run_with_middleware(
            request, resolved.middleware, handle
        )
        logger.debug(f"MCP request served ({resolved.name}, {outcome.value})")
        return response

    def _create_app(self) -> FastAPI:
        """Create and configure the FastAPI app."""

        @asynccontextmanager
        async def lifespan(app: FastAPI) -> AsyncIterator[None]:
            # Startup
            logger.info(f"Starting MCP server ({self._registry.summary()})")

            async with AsyncExitStack() as stack:
                for _, endpoint in self._endpoints.values():
                    await stack.enter_async_context(endpoint.run())

                yield

                # Shutdown
                logger.info("Shutting down MCP server")
                await self._cache_store.drain()

        app = FastAPI(
            title=self._config.name or "mcpkit",
            version=self._config.version,
            lifespan=lifespan,
        )

        # Store references in app state
        app.state.server = self
        app.state.registry = self._registry
        app.state.config = self._config

        # Include routes
        app.include_router(health.router, tags=["health"])

        if not self._config.enabled:
            logger.info("MCP server disabled, no MCP routes mounted")
            return app

        self._mount_routes(app)
        return app

    def _mount_routes(self, app: FastAPI) -> None:
        route = self._config.route

        async def main_endpoint(request: Request) -> Response:
            return await self.dispatch(request, None)

        async def named_endpoint(request: Request) -> Response:
            return await self.dispatch(request, request.path_params["handler"])

        app.add_api_route(route, main_endpoint, methods=MCP_METHODS, tags=["mcp"])
        app.add_api_route(
            f"{route.rstrip('/')}/{{handler}}",
            named_endpoint,
            methods=MCP_METHODS,
            tags=["mcp"],
        )

        for name, override in self._registry.handler_overrides.items():
            if override.route:
                app.add_api_route(
                    override.route,
                    self._fixed_endpoint(name),
                    methods=MCP_METHODS,
                    tags=["mcp"],
                )
                logger.debug(f"Handler '{name}' mounted at {override.route}")

    def _fixed_endpoint(self, handler_name: str):
        async def endpoint(request: Request) -> Response:
            return await self.dispatch(request, handler_name)

        return endpoint


def create_app(
    config: McpConfig,
    registry: Registry,
    cache_store: CacheStore | None = None,
) -> FastAPI:
    """Create the FastAPI application."""
    server = McpKitServer(config=config, registry=registry, cache_store=cache_store)
    return server.app
