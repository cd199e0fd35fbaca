"""Run handler middleware around protocol handling.

Middleware has the shape ``(request, call_next) -> response | None``. After
it finishes, the response is chosen in this order:

- the response the middleware returned,
- the response ``call_next`` produced,
- the handler run automatically, for middleware that only prepares the
  request (sets state, logs) and returns nothing.

If the handler raised inside ``call_next`` and the middleware swallowed the
error, that error is re-raised rather than running the handler again.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

    from mcpkit.definitions.handlers import Middleware

logger = logging.getLogger(__name__)

Handler = Callable[[], Awaitable["Response"]]


class MiddlewareOutcome(Enum):
    """How the final response of a middleware run was obtained."""

    NO_MIDDLEWARE = "no_middleware"
    EXPLICIT_RESPONSE = "explicit_response"
    CONTINUATION_RESULT = "continuation_result"
    AUTO_CONTINUATION = "auto_continuation"


class Continuation:
    """The ``call_next`` given to middleware.

    Runs the handler at most once; later calls return the first response,
    or re-raise the error the handler failed with.
    """

    def __init__(self, handler: Handler):
        self._handler = handler
        self._response: Response | None = None
        self._error: Exception | None = None
        self._called = False

    @property
    def called(self) -> bool:
        return self._called

    @property
    def response(self) -> Response | None:
        return self._response

    @property
    def error(self) -> Exception | None:
        return self._error

    async def __call__(self) -> Response:
        if self._called:
            if self._error is not None:
                raise self._error
            if self._response is None:
                raise RuntimeError("call_next() awaited again before it finished")
            return self._response
        self._called = True
        try:
            self._response = await self._handler()
        except Exception as e:
            self._error = e
            raise
        return self._response


async def run_with_middleware(
    request: Request,
    middleware: Middleware | None,
    handler: Handler,
) -> tuple[Response, MiddlewareOutcome]:
    """Run ``handler`` behind ``middleware``.

    Args:
        request: Incoming request, passed to the middleware.
        middleware: Sync or async middleware, or None.
        handler: Produces the protocol response.

    Returns:
        Tuple of (response, outcome).
    """
    if middleware is None:
        return await handler(), MiddlewareOutcome.NO_MIDDLEWARE

    call_next = Continuation(handler)
    result = middleware(request, call_next)
    if inspect.isawaitable(result):
        result = await result

    if result is not None:
        return result, MiddlewareOutcome.EXPLICIT_RESPONSE

    if call_next.called:
        # Never run the handler twice; surface a failure the middleware swallowed
        if call_next.error is not None:
            raise call_next.error
        if call_next.response is not None:
            return call_next.response, MiddlewareOutcome.CONTINUATION_RESULT

    logger.debug("Middleware returned without calling call_next, running handler")
    return await call_next(), MiddlewareOutcome.AUTO_CONTINUATION
