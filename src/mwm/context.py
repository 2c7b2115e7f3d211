"""Request-scoped context via ContextVar.

The dispatcher builds a ``RequestContext`` for every page request and
scopes it with ``run_with_context``. Any code running inside that
request (route handlers, guards, template globals, repository calls
after an ``await``) reads it back with ``get_request_context()`` and
friends instead of threading it through every signature.

``ContextVar`` is task-local under asyncio: concurrently handled
requests never observe each other's context, and a context is copied
into threads started through ``anyio.to_thread``.
"""

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from types import MappingProxyType
from urllib.parse import SplitResult, urlsplit

from mwm.errors import NoRequestContext
from mwm.http.query import QueryParams
from mwm.http.request import Request
from mwm.security.identity import AuthSession

PARTIAL_QUERY_FLAG = "partial"


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Everything a page handler may need about the current request."""

    request: Request
    url: SplitResult
    params: Mapping[str, str]
    query: QueryParams
    session: AuthSession = field(default_factory=AuthSession.guest)

    @classmethod
    def build(
        cls,
        request: Request,
        params: Mapping[str, str] | None = None,
        session: AuthSession | None = None,
    ) -> "RequestContext":
        host = request.headers.get("host", "localhost")
        return cls(
            request=request,
            url=urlsplit(f"http://{host}{request.url}"),
            params=MappingProxyType(dict(params or {})),
            query=request.query,
            session=session or AuthSession.guest(),
        )


_context_var: ContextVar[RequestContext] = ContextVar("mwm_request_context")


@contextmanager
def run_with_context(ctx: RequestContext) -> Iterator[RequestContext]:
    """Scope *ctx* to the current task for the duration of the block."""
    token = _context_var.set(ctx)
    try:
        yield ctx
    finally:
        _context_var.reset(token)


def get_request_context() -> RequestContext:
    """Return the active context.

    Raises:
        NoRequestContext: Called outside of request handling.
    """
    try:
        return _context_var.get()
    except LookupError:
        raise NoRequestContext() from None


def get_request() -> Request:
    return get_request_context().request


def get_params() -> Mapping[str, str]:
    return get_request_context().params


def get_search_params() -> QueryParams:
    return get_request_context().query


def get_session() -> AuthSession:
    return get_request_context().session


def is_partial_request(request: Request) -> bool:
    """True for htmx requests and for ``?partial=yes``."""
    return request.is_htmx or request.query.get(PARTIAL_QUERY_FLAG) == "yes"
