"""Typed REST endpoints under ``/api``.

Endpoints are registered during setup and compiled into an immutable
trie. Each endpoint declares dataclass schemas for its path params,
query string and JSON body; the router validates all three before the
handler runs and serializes the handler's return value back to JSON.

Usage::

    api = ApiRouter()

    @api.endpoint("GET", "/posts/{id}", params=PostParams, response=PostWithAuthor)
    def get_post(input: ApiInput[PostParams, None, None], ctx: ApiContext) -> PostWithAuthor:
        ...

    api.compile()
    response = await api.handle(request)
"""

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import unquote

from mwm._internal.invoke import invoke
from mwm.errors import MethodNotAllowed, NotFound
from mwm.http.request import Request
from mwm.http.response import Response
from mwm.validation import dump, parse

logger = logging.getLogger("mwm.api")

API_PREFIX = "/api"


@dataclass(frozen=True, slots=True)
class ApiContext:
    """Per-request context handed to every API handler."""

    request_id: str
    request: Request | None = None


@dataclass(frozen=True, slots=True)
class ApiInput[P, Q, B]:
    """Validated input, one dataclass (or ``None``) per input part."""

    params: P
    query: Q
    body: B


@dataclass(frozen=True, slots=True)
class Endpoint:
    """A frozen endpoint definition.

    ``path`` is relative to the router prefix and uses ``{name}`` for
    path parameters. ``response`` is the declared output annotation
    (a dataclass or ``list[...]`` of one), used for the OpenAPI document.
    """

    method: str
    path: str
    handler: Callable[..., Any]
    summary: str = ""
    tags: tuple[str, ...] = ()
    params: type | None = None
    query: type | None = None
    body: type | None = None
    response: Any = None
    status: int = 200

    @property
    def operation_id(self) -> str:
        return self.handler.__name__


# ---------------------------------------------------------------------------
# Trie
# ---------------------------------------------------------------------------


def parse_path(path: str) -> list[tuple[str, bool]]:
    """Split a route path into ``(segment, is_param)`` pairs.

    Examples::

        "/users"       -> [("users", False)]
        "/users/{id}"  -> [("users", False), ("id", True)]
    """
    segments: list[tuple[str, bool]] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if part.startswith("{") and part.endswith("}"):
            segments.append((part[1:-1], True))
        else:
            segments.append((part, False))
    return segments


class _TrieNode:
    """A node in the endpoint trie. Mutable during compilation only."""

    __slots__ = ("children", "endpoints", "param_child", "param_name")

    def __init__(self) -> None:
        # Static segment children: "users" -> node
        self.children: dict[str, _TrieNode] = {}
        # Single parameter child (only one param name per level)
        self.param_child: _TrieNode | None = None
        self.param_name: str = ""
        # Endpoints at this node, keyed by HTTP method
        self.endpoints: dict[str, Endpoint] = {}


@dataclass(frozen=True, slots=True)
class EndpointMatch:
    endpoint: Endpoint
    path_params: dict[str, str] = field(default_factory=dict)


class ApiRouter:
    """Registers endpoints and answers ``/api/*`` requests with JSON."""

    __slots__ = ("_compiled", "_endpoints", "_root", "prefix")

    def __init__(self, prefix: str = API_PREFIX) -> None:
        self.prefix = "/" + prefix.strip("/")
        self._root = _TrieNode()
        self._endpoints: list[Endpoint] = []
        self._compiled = False

    @property
    def endpoints(self) -> list[Endpoint]:
        return list(self._endpoints)

    def add(self, endpoint: Endpoint) -> None:
        """Add an endpoint. Must be called before compile()."""
        if self._compiled:
            msg = "Cannot add endpoints after compilation."
            raise RuntimeError(msg)

        node = self._root
        for value, is_param in parse_path(endpoint.path):
            if is_param:
                if node.param_child is None:
                    node.param_child = _TrieNode()
                    node.param_name = value
                elif node.param_name != value:
                    msg = (
                        f"Conflicting parameter names at {endpoint.path!r}: "
                        f"{{{node.param_name}}} vs {{{value}}}"
                    )
                    raise ValueError(msg)
                node = node.param_child
            else:
                node = node.children.setdefault(value, _TrieNode())

        if endpoint.method in node.endpoints:
            msg = f"Duplicate endpoint {endpoint.method} {endpoint.path}"
            raise ValueError(msg)
        node.endpoints[endpoint.method] = endpoint
        self._endpoints.append(endpoint)

    def endpoint(
        self,
        method: str,
        path: str,
        *,
        summary: str = "",
        tags: tuple[str, ...] = (),
        params: type | None = None,
        query: type | None = None,
        body: type | None = None,
        response: Any = None,
        status: int = 200,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator form of :meth:`add`."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self.add(
                Endpoint(
                    method=method.upper(),
                    path=path,
                    handler=func,
                    summary=summary or (func.__doc__ or "").strip().split("\n")[0],
                    tags=tags,
                    params=params,
                    query=query,
                    body=body,
                    response=response,
                    status=status,
                )
            )
            return func

        return decorator

    def compile(self) -> None:
        """Freeze the router. No more endpoints can be added."""
        self._compiled = True

    def owns(self, path: str) -> bool:
        return path == self.prefix or path.startswith(self.prefix + "/")

    def match(self, method: str, path: str) -> EndpointMatch:
        """Match a raw (percent-encoded) path relative to the prefix.

        Raises ``NotFound`` if no endpoint matches the path and
        ``MethodNotAllowed`` if the path matches but the method doesn't.
        """
        parts = [unquote(p) for p in path.strip("/").split("/") if p]
        node = self._root
        params: dict[str, str] = {}
        for part in parts:
            # Static children win over the parameter child
            if part in node.children:
                node = node.children[part]
            elif node.param_child is not None:
                params[node.param_name] = part
                node = node.param_child
            else:
                raise NotFound(f"No endpoint matches {method} {path!r}")

        if method in node.endpoints:
            return EndpointMatch(node.endpoints[method], params)
        if method == "HEAD" and "GET" in node.endpoints:
            return EndpointMatch(node.endpoints["GET"], params)
        if node.endpoints:
            raise MethodNotAllowed(frozenset(node.endpoints))
        raise NotFound(f"No endpoint matches {method} {path!r}")

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    async def handle(self, request: Request) -> Response:
        """Answer one API request. Never raises for client errors."""
        # Split before decoding so %2F stays inside one segment
        relative = request.raw_path[len(self.prefix) :] if self.owns(request.raw_path) else "/"
        try:
            found = self.match(request.method, relative)
        except NotFound:
            return Response.json({"error": "Not found"}, status=404)
        except MethodNotAllowed as exc:
            return Response.json({"error": "Method not allowed"}, status=405).with_headers(
                dict(exc.headers)
            )

        endpoint = found.endpoint
        parsed, errors = await _parse_input(endpoint, request, found.path_params)
        if errors is not None:
            logger.debug("400 %s %s: %s", request.method, request.path, errors)
            return Response.json({"error": "Validation failed", **errors}, status=400)

        ctx = ApiContext(request_id=str(uuid.uuid4()), request=request)
        result = await invoke(endpoint.handler, parsed, ctx)
        return Response.json(dump(result), status=endpoint.status).with_header(
            "X-Request-Id", ctx.request_id
        )


async def _parse_input(
    endpoint: Endpoint,
    request: Request,
    path_params: dict[str, str],
) -> tuple[ApiInput[Any, Any, Any], dict[str, Any] | None]:
    """Validate params, query and body; merge every part's errors."""
    field_errors: dict[str, list[str]] = {}
    form_errors: list[str] = []
    values: dict[str, Any] = {"params": None, "query": None, "body": None}

    sources: list[tuple[str, type | None, Any]] = [
        ("params", endpoint.params, path_params),
        ("query", endpoint.query, request.query),
    ]
    if endpoint.body is not None:
        # An empty body means no fields; a decoded null or array is not an object
        try:
            raw = await request.json() if await request.body() else {}
        except ValueError:
            form_errors.append("Malformed JSON body")
        else:
            sources.append(("body", endpoint.body, raw))

    for part, schema, raw in sources:
        if schema is None:
            continue
        result = parse(schema, raw)
        if result:
            values[part] = result.data
        else:
            for name, messages in result.field_errors.items():
                field_errors.setdefault(name, []).extend(messages)
            form_errors.extend(result.form_errors)

    if field_errors or form_errors:
        return ApiInput(None, None, None), {"fieldErrors": field_errors, "formErrors": form_errors}
    return ApiInput(values["params"], values["query"], values["body"]), None
