"""HTTP serving: handler resolution, middleware and the FastAPI app."""

from mcpkit.server.app import McpKitServer, create_app
from mcpkit.server.handler import ResolvedHandler, resolve_handler
from mcpkit.server.middleware import (
    Continuation,
    MiddlewareOutcome,
    run_with_middleware,
)
from mcpkit.server.runner import ServerRunner
from mcpkit.server.transport import McpEndpoint

__all__ = [
    "Continuation",
    "McpEndpoint",
    "McpKitServer",
    "MiddlewareOutcome",
    "ResolvedHandler",
    "ServerRunner",
    "create_app",
    "resolve_handler",
    "run_with_middleware",
]
