"""Error handling pipeline for mwm requests.

Maps HTTPError exceptions and unexpected failures to Response objects,
using registered error handlers or plain defaults. API paths always get
JSON bodies.
"""

import html
import logging
import traceback
from collections.abc import Callable
from typing import Any

from kida import Environment

from mwm._internal.invoke import invoke
from mwm.context import is_partial_request
from mwm.errors import HTTPError
from mwm.http.request import Request
from mwm.http.response import Response
from mwm.server.negotiation import negotiate

logger = logging.getLogger("mwm.server")

API_PREFIX = "/api"


def is_api_request(request: Request) -> bool:
    return request.path == API_PREFIX or request.path.startswith(API_PREFIX + "/")


def default_fragment_error(status: int, detail: str) -> str:
    """Minimal HTML snippet for partial error responses."""
    return f'<div class="mwm-error" data-status="{status}">{html.escape(detail)}</div>'


def _with_htmx_error_headers(response: Response, request: Request) -> Response:
    """Retarget htmx swaps of an error into ``#mwm-error``."""
    if not request.is_htmx:
        return response
    return (
        response
        .with_header("HX-Retarget", "#mwm-error")
        .with_header("HX-Reswap", "innerHTML")
    )


async def call_error_handler(
    handler: Callable[..., Any],
    request: Request,
    exc: Exception,
    env: Environment,
) -> Response:
    """Invoke a registered error handler as ``handler(request, exc)``."""
    result = await invoke(handler, request, exc)
    return negotiate(result, env=env)


async def handle_http_error(
    exc: HTTPError,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
    env: Environment,
) -> Response:
    """Map an HTTPError to a Response using registered error handlers."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)

    handler = error_handlers.get(type(exc)) or error_handlers.get(exc.status)
    if handler is not None:
        response = await call_error_handler(handler, request, exc, env)
        if response.status == 200:
            response = response.with_status(exc.status)
        return response

    detail = exc.detail or f"Error {exc.status}"
    if is_api_request(request):
        resp = Response.json({"error": detail}, status=exc.status)
    elif is_partial_request(request):
        resp = Response(body=default_fragment_error(exc.status, detail), status=exc.status)
    else:
        resp = Response(body=detail, status=exc.status, content_type="text/plain; charset=utf-8")
    for name, value in exc.headers:
        resp = resp.with_header(name, value)
    return _with_htmx_error_headers(resp, request)


async def handle_internal_error(
    exc: Exception,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
    env: Environment,
    debug: bool,
) -> Response:
    """Handle unexpected exceptions as 500 errors."""
    logger.exception("500 %s %s", request.method, request.path)

    handler = error_handlers.get(500) or error_handlers.get(type(exc))
    if handler is not None:
        return await call_error_handler(handler, request, exc, env)

    if is_api_request(request):
        return Response.json({"error": "Internal server error"}, status=500)

    if debug:
        trace = "".join(traceback.format_exception(exc))
        body = f"<h1>Internal Server Error</h1><pre>{html.escape(trace)}</pre>"
        return _with_htmx_error_headers(Response(body=body, status=500), request)

    if is_partial_request(request):
        resp = Response(body=default_fragment_error(500, "Internal Server Error"), status=500)
        return _with_htmx_error_headers(resp, request)

    return Response(body="Internal Server Error", status=500, content_type="text/plain; charset=utf-8")
