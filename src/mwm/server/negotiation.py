"""Content negotiation: maps handler return values to Response objects.

isinstance-based dispatch over a closed set of return types. HTML
results (``Template``, ``Fragment``, ``str``) pass through ``wrap``,
which the page dispatcher uses to apply layouts and the root shell;
everything else is already a complete response.
"""

from collections.abc import Callable
from typing import Any

from kida import Environment

from mwm.http.response import Redirect, Response
from mwm.templating.integration import render_fragment, render_template
from mwm.templating.returns import Fragment, Template


def _identity(html: str) -> str:
    return html


def negotiate(
    value: Any,
    *,
    env: Environment,
    context: dict[str, Any] | None = None,
    wrap: Callable[[str], str] = _identity,
) -> Response:
    """Convert a route handler's return value to a Response.

    Dispatch order:

    1. ``Response``            -> pass through
    2. ``Redirect``            -> 3xx with Location header
    3. ``Template``            -> render via kida, then wrap
    4. ``Fragment``            -> render block via kida, then wrap
    5. ``str``                 -> wrap, 200 text/html
    6. ``bytes``               -> 200, application/octet-stream
    7. ``dict`` / ``list``     -> 200, application/json
    8. ``(value, int)``        -> negotiate value, override status
    9. ``(value, int, dict)``  -> negotiate value, override status + headers
    """
    match value:
        case Response():
            return value
        case Redirect():
            return value.to_response()
        case Template():
            return Response(body=wrap(render_template(env, value, context)))
        case Fragment():
            return Response(body=wrap(render_fragment(env, value, context)))
        case str():
            return Response(body=wrap(value))
        case bytes():
            return Response(body=value, content_type="application/octet-stream")
        case dict() | list():
            return Response.json(value)
        case (inner, int() as status):
            return negotiate(inner, env=env, context=context, wrap=wrap).with_status(status)
        case (inner, int() as status, dict() as headers):
            response = negotiate(inner, env=env, context=context, wrap=wrap)
            return response.with_status(status).with_headers(headers)
        case _:
            msg = (
                f"Cannot convert {type(value).__name__} to a response. "
                "Return str, dict, bytes, Template, Fragment, Response, or Redirect."
            )
            raise TypeError(msg)


def is_response(value: Any) -> bool:
    """True for values a guard layout returns to short-circuit a page."""
    return isinstance(value, (Response, Redirect))
