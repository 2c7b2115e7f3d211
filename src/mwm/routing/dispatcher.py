"""Page request dispatcher.

Resolves a request against the loaded route table::

    match path -> pick handler for method -> resolve session
    -> scope RequestContext -> run guard layouts (outermost first)
    -> run handler -> wrap in layouts + root shell unless partial

A guard layout that returns a response, or anything that raises
:class:`~mwm.errors.Halt`, ends the request with that response: inner
guards and the page handler never run. Other exceptions propagate to
the ASGI handler.
"""

from collections.abc import Sequence
from typing import Any

from kida import Environment

from mwm.context import RequestContext, is_partial_request, run_with_context
from mwm.data.database import Database
from mwm.errors import Halt, MethodNotAllowed, NotFound
from mwm.http.request import Request
from mwm.http.response import Response
from mwm.routing.loader import BoundHandler, GuardLayout, LoadedRoute
from mwm.routing.matcher import RouteMatcher
from mwm.security.sessions import SessionManager
from mwm.server.negotiation import is_response, negotiate
from mwm.templating.integration import render_with_layouts


class Dispatcher:
    """Dispatch page requests. Built once at startup; holds no per-request state."""

    __slots__ = ("_db", "_env", "_matcher", "_root", "_sessions")

    def __init__(
        self,
        routes: Sequence[LoadedRoute],
        *,
        env: Environment,
        db: Database,
        sessions: SessionManager,
        root_template: str | None = None,
    ) -> None:
        self._matcher = RouteMatcher((route.path, route) for route in routes)
        self._env = env
        self._db = db
        self._sessions = sessions
        self._root = root_template

    @property
    def patterns(self) -> list[str]:
        return self._matcher.patterns

    def find(self, path: str) -> tuple[LoadedRoute, dict[str, str]] | None:
        found = self._matcher.match(path)
        if found is None:
            return None
        return found.target, found.params

    async def dispatch(self, request: Request) -> Response:
        """Produce the response for *request*.

        Raises:
            NotFound: No route matches the path.
            MethodNotAllowed: The route has no handler for the method.
        """
        found = self.find(request.raw_path)
        if found is None:
            raise NotFound()
        loaded, params = found

        partial = is_partial_request(request)
        handler = loaded.route.resolve(request.method, partial)
        if handler is None:
            raise MethodNotAllowed(loaded.route.allowed or frozenset())

        session = await self._sessions.get_session_from_request(request)
        ctx = RequestContext.build(request, params, session)
        with run_with_context(ctx):
            try:
                return await self._render(loaded, handler, ctx, partial)
            except Halt as halt:
                return negotiate(halt.response, env=self._env)

    async def _render(
        self,
        loaded: LoadedRoute,
        handler: BoundHandler,
        ctx: RequestContext,
        partial: bool,
    ) -> Response:
        available: dict[str, Any] = {
            **ctx.params,
            "request": ctx.request,
            "ctx": ctx,
            "session": ctx.session,
            "db": self._db,
            "auth": self._sessions,
            "params": ctx.params,
        }
        context: dict[str, Any] = {
            "ctx": ctx,
            "request": ctx.request,
            "session": ctx.session,
            "params": dict(ctx.params),
        }

        chrome: list[str] = []
        for layout in loaded.layouts:
            if isinstance(layout, GuardLayout):
                outcome = await layout.guard(available)
                if is_response(outcome):
                    return negotiate(outcome, env=self._env)
                if isinstance(outcome, dict):
                    context.update(outcome)
                if layout.template is not None:
                    chrome.append(layout.template)
            else:
                chrome.append(layout.template)

        result = await handler(available)

        def wrap(html: str) -> str:
            if partial:
                return html
            html = render_with_layouts(self._env, chrome, html, context)
            if self._root is not None:
                html = render_with_layouts(self._env, [self._root], html, context)
            return html

        return negotiate(result, env=self._env, context=context, wrap=wrap)
