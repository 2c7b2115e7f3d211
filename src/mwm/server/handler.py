"""ASGI handler: translates ASGI scope/messages to mwm types.

The only component that touches raw ASGI directly. Converts scope dicts
to typed Request objects, dispatches through middleware to the API
router or the page dispatcher, and sends the Response back through
ASGI send().
"""

from collections.abc import Callable
from typing import Any

from kida import Environment

from mwm._internal.asgi import Receive, Scope, Send
from mwm.api.router import ApiRouter
from mwm.errors import HTTPError
from mwm.http.request import Request
from mwm.http.response import Response
from mwm.middleware.protocol import Next
from mwm.routing.dispatcher import Dispatcher
from mwm.server.errors import handle_http_error, handle_internal_error
from mwm.server.sender import send_response

OPENAPI_PATH = "/openapi.json"


def build_pipeline(
    endpoint: Next,
    middleware: tuple[Callable[..., Any], ...],
) -> Next:
    """Wrap *endpoint* so the first middleware is the outermost."""
    handler = endpoint
    for mw in reversed(middleware):
        outer = handler

        async def make_next(req: Request, _mw: Any = mw, _next: Next = outer) -> Response:
            return await _mw(req, _next)

        handler = make_next
    return handler


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    dispatcher: Dispatcher,
    api: ApiRouter,
    openapi: dict[str, Any],
    middleware: tuple[Callable[..., Any], ...],
    error_handlers: dict[int | type, Callable[..., Any]],
    env: Environment,
    debug: bool,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)

    async def dispatch(req: Request) -> Response:
        if req.path == OPENAPI_PATH:
            return Response.json(openapi)
        # /api/* never reaches the page dispatcher
        if api.owns(req.path):
            return await api.handle(req)
        return await dispatcher.dispatch(req)

    try:
        response = await build_pipeline(dispatch, middleware)(request)
    except HTTPError as exc:
        response = await handle_http_error(exc, request, error_handlers, env)
    except Exception as exc:
        response = await handle_internal_error(exc, request, error_handlers, env, debug)

    await send_response(response, send, head=request.method == "HEAD")
