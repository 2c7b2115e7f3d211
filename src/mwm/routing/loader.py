"""Turn a compiled RouteTable into dispatchable routes.

Each route module and layout module is imported once here. Handlers
are bound at load time: the dispatcher never inspects a module, a
function signature or a layout's kind while serving a request.

Layouts are a closed variant:

- :class:`RenderableLayout`: a ``_layout.py`` that only names a
  ``template``; it wraps page content.
- :class:`GuardLayout`: a ``_layout.py`` that defines ``layout(...)``.
  The guard runs before the page handler and may return a response to
  short-circuit, a dict of extra template context, or ``None``. It may
  also name a ``template`` for its chrome.

Routes are a closed variant too:

- :class:`UniversalRoute`: the module exports only ``handler``, which
  serves every method.
- :class:`MethodRoute`: per-method ``get``/``post``/``put``/``delete``
  exports, with ``handler`` serving full-page GETs.
"""

import inspect
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType
from typing import Any

from mwm._internal.invoke import invoke
from mwm.errors import ConfigurationError
from mwm.routing.compiler import RouteEntry, RouteTable, load_module

logger = logging.getLogger("mwm.routes")

# Keyword arguments the dispatcher can supply, besides route params
INJECTABLE = frozenset({"request", "ctx", "session", "db", "auth", "params"})


@dataclass(frozen=True, slots=True)
class BoundHandler:
    """A route function plus the keyword names it asks for."""

    fn: Callable[..., Any]
    arg_names: tuple[str, ...]

    async def __call__(self, available: Mapping[str, Any]) -> Any:
        kwargs = {name: available[name] for name in self.arg_names if name in available}
        return await invoke(self.fn, **kwargs)


def bind(fn: Callable[..., Any]) -> BoundHandler:
    """Resolve which keyword arguments *fn* accepts, once."""
    sig = inspect.signature(fn)
    names = tuple(
        name
        for name, param in sig.parameters.items()
        if param.kind in (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY)
    )
    return BoundHandler(fn=fn, arg_names=names)


# ---------------------------------------------------------------------------
# Layout variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RenderableLayout:
    source: str
    template: str


@dataclass(frozen=True, slots=True)
class GuardLayout:
    source: str
    guard: BoundHandler
    template: str | None = None


type Layout = RenderableLayout | GuardLayout


def layout_from_module(source: str, module: ModuleType) -> Layout:
    template = getattr(module, "template", None)
    if template is not None and not isinstance(template, str):
        msg = f"{source}: 'template' must be a template name"
        raise ConfigurationError(msg)
    guard = getattr(module, "layout", None)
    if callable(guard):
        return GuardLayout(source=source, guard=bind(guard), template=template)
    if template is None:
        msg = f"{source}: a layout needs a 'layout' guard or a 'template'"
        raise ConfigurationError(msg)
    return RenderableLayout(source=source, template=template)


# ---------------------------------------------------------------------------
# Route variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class UniversalRoute:
    handler: BoundHandler

    @property
    def allowed(self) -> frozenset[str] | None:
        return None

    def resolve(self, method: str, partial: bool) -> BoundHandler | None:
        return self.handler


@dataclass(frozen=True, slots=True)
class MethodRoute:
    handlers: Mapping[str, BoundHandler]
    partial_get: BoundHandler | None = None

    @property
    def allowed(self) -> frozenset[str]:
        methods = set(self.handlers)
        if "GET" in methods:
            methods.add("HEAD")
        return frozenset(methods)

    def resolve(self, method: str, partial: bool) -> BoundHandler | None:
        if method == "HEAD":
            method = "GET"
        if method == "GET" and partial and self.partial_get is not None:
            return self.partial_get
        return self.handlers.get(method)


type RouteVariant = UniversalRoute | MethodRoute


def route_from_module(module: ModuleType, exports: tuple[str, ...]) -> RouteVariant:
    funcs = {name: getattr(module, name) for name in exports}
    if set(funcs) == {"handler"}:
        return UniversalRoute(bind(funcs["handler"]))

    handlers: dict[str, BoundHandler] = {}
    page = funcs.get("handler")
    get = funcs.get("get")
    if page is not None or get is not None:
        handlers["GET"] = bind(page if page is not None else get)
    for name in ("post", "put", "delete"):
        if name in funcs:
            handlers[name.upper()] = bind(funcs[name])
    partial_get = bind(get) if page is not None and get is not None else None
    return MethodRoute(handlers=handlers, partial_get=partial_get)


@dataclass(frozen=True, slots=True)
class LoadedRoute:
    entry: RouteEntry
    route: RouteVariant
    layouts: tuple[Layout, ...] = field(default=())

    @property
    def path(self) -> str:
        return self.entry.path


def load_routes(table: RouteTable, routes_dir: str | Path) -> list[LoadedRoute]:
    """Import every module named by *table* and bind its handlers.

    A route whose module no longer imports is logged and left out, the
    same rule the compiler applies. A layout that fails to import
    raises, since the pages beneath it cannot be served without it.
    """
    root = Path(routes_dir)
    layouts: dict[str, Layout] = {}
    for source in table.layouts:
        layouts[source] = layout_from_module(source, load_module(root, source))

    loaded: list[LoadedRoute] = []
    for entry in table.routes:
        try:
            module = load_module(root, entry.file)
        except Exception:
            logger.exception("Skipping route %s: import failed", entry.file)
            continue
        exports = tuple(name for name in entry.exports if callable(getattr(module, name, None)))
        if not exports:
            logger.warning("Skipping route %s: no handler exported", entry.file)
            continue
        loaded.append(
            LoadedRoute(
                entry=entry,
                route=route_from_module(module, exports),
                layouts=tuple(layouts[source] for source in entry.layouts),
            )
        )
    return loaded
