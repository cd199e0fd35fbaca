"""Serve an MCP server over stateless streamable HTTP.

The SDK session manager speaks raw ASGI. ``McpEndpoint.handle`` replays the
request body into it and collects what it sends into a ``Response``, so
handler middleware can inspect or replace the result like any other
response.
"""

from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING

from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.responses import Response

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.types import Message

    from mcpkit.protocol.server import McpServer

logger = logging.getLogger(__name__)


class McpEndpoint:
    """One protocol server and the session manager serving it."""

    def __init__(self, server: McpServer):
        self.server = server
        self.session_manager = StreamableHTTPSessionManager(
            app=server.lowlevel,
            stateless=True,
            json_response=True,
        )

    def run(self) -> AbstractAsyncContextManager[None]:
        """Start the session manager; must wrap every ``handle`` call."""
        return self.session_manager.run()

    async def handle(self, request: Request) -> Response:
        """Serve one HTTP request and return the captured response."""
        body = await request.body()
        body_sent = False

        async def receive() -> Message:
            nonlocal body_sent
            if body_sent:
                return {"type": "http.disconnect"}
            body_sent = True
            return {"type": "http.request", "body": body, "more_body": False}

        start: Message = {}
        chunks: list[bytes] = []

        async def send(message: Message) -> None:
            if message["type"] == "http.response.start":
                start.update(message)
            elif message["type"] == "http.response.body":
                chunks.append(message.get("body", b""))

        await self.session_manager.handle_request(request.scope, receive, send)

        if not start:
            logger.error(f"MCP transport sent no response ({self.server.name})")
            return Response(status_code=500)
        response = Response(b"".join(chunks), status_code=start["status"])
        response.raw_headers = list(start.get("headers", []))
        return response
