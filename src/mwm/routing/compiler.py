"""File-system route compiler.

Scans the routes directory and produces a :class:`RouteTable`: the
sorted list of page routes with their layout chains, plus the static
asset table built from ``public/``. The table can be used directly or
written out as a Python module (``routes_generated.py``) so that the
server never walks the file system at request time.

Path rules::

    index.py                 -> /
    users/index.py           -> /users
    users/$id.edit.py        -> /users/:id/edit
    admin/roles/$id.py       -> /admin/roles/:id
    admin/_layout.py         -> layout for everything under admin/
    -components/, __root.py  -> not routable
"""

import importlib.util
import logging
import mimetypes
import pprint
import re
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType

logger = logging.getLogger("mwm.routes")

LAYOUT_FILE = "_layout.py"
ROOT_TEMPLATE = "__root.html"

# Names a route module may export, in dispatch order
HANDLER_EXPORTS = ("handler", "get", "post", "put", "delete")

_RESERVED_PREFIXES = ("_", "-", ".")
_MODULE_NAME_RE = re.compile(r"\W")


@dataclass(frozen=True, slots=True)
class RouteEntry:
    """One compiled page route.

    Attributes:
        path: URL pattern, ``:name`` marks a dynamic segment.
        file: Route module path relative to the routes directory.
        layouts: Layout module paths, root-most first.
        exports: Handler names the module defines.
    """

    path: str
    file: str
    layouts: tuple[str, ...] = ()
    exports: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class StaticEntry:
    path: str
    file: str
    content_type: str


@dataclass(frozen=True, slots=True)
class RouteTable:
    """Result of one compilation run."""

    routes: tuple[RouteEntry, ...]
    static: tuple[StaticEntry, ...] = ()
    root: str | None = None

    @property
    def layouts(self) -> tuple[str, ...]:
        """Every layout referenced by some route, in first-use order."""
        seen: dict[str, None] = {}
        for entry in self.routes:
            for layout in entry.layouts:
                seen.setdefault(layout, None)
        return tuple(seen)

    def get(self, path: str) -> RouteEntry | None:
        for entry in self.routes:
            if entry.path == path:
                return entry
        return None


# ---------------------------------------------------------------------------
# Path translation
# ---------------------------------------------------------------------------


def path_to_pattern(relative_path: str) -> str:
    """Translate a route file path into a URL pattern.

    >>> path_to_pattern("index.py")
    '/'
    >>> path_to_pattern("admin/roles/$id.delete.py")
    '/admin/roles/:id/delete'
    """
    route = relative_path.replace("\\", "/").removesuffix(".py")
    if route == "index":
        return "/"
    if route.endswith("/index"):
        route = route.removesuffix("/index")
    else:
        route = route.replace(".", "/")
    segments = [
        ":" + part[1:] if part.startswith("$") else part
        for part in route.split("/")
    ]
    return "/" + "/".join(segments)


def is_routable(relative_path: str) -> bool:
    """False for layouts, the root shell, helpers and anything under ``-dir/``."""
    parts = relative_path.replace("\\", "/").split("/")
    if not parts[-1].endswith(".py"):
        return False
    if any(part == "__pycache__" for part in parts):
        return False
    return not any(part.startswith(_RESERVED_PREFIXES) for part in parts)


def _layout_chain(relative_path: str, available: set[str]) -> tuple[str, ...]:
    """Layouts that apply to *relative_path*, root-most first."""
    parts = relative_path.split("/")[:-1]
    chain: list[str] = []
    if LAYOUT_FILE in available:
        chain.append(LAYOUT_FILE)
    current = ""
    for part in parts:
        current = f"{current}/{part}" if current else part
        candidate = f"{current}/{LAYOUT_FILE}"
        if candidate in available:
            chain.append(candidate)
    return tuple(chain)


# ---------------------------------------------------------------------------
# Module loading
# ---------------------------------------------------------------------------


def module_name_for(relative_path: str) -> str:
    """Importable module name for a route file such as ``admin/roles/$id.py``."""
    stem = relative_path.removesuffix(".py")
    return "mwm_routes." + _MODULE_NAME_RE.sub("_", stem)


def load_module(routes_dir: Path, relative_path: str) -> ModuleType:
    """Import a route or layout file by path.

    Route files are not valid dotted module names (``$id.edit.py``), so
    they are loaded with ``spec_from_file_location`` under a synthetic
    name. Errors raised by the module body propagate.
    """
    path = routes_dir / relative_path
    spec = importlib.util.spec_from_file_location(module_name_for(relative_path), path)
    if spec is None or spec.loader is None:
        msg = f"Cannot load route module {path}"
        raise ImportError(msg)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _exports_of(module: ModuleType) -> tuple[str, ...]:
    return tuple(name for name in HANDLER_EXPORTS if callable(getattr(module, name, None)))


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


def _scan(directory: Path) -> list[str]:
    files: list[str] = []
    for item in directory.rglob("*"):
        if not item.is_file():
            continue
        rel = item.relative_to(directory).as_posix()
        if any(part.startswith(".") or part == "__pycache__" for part in rel.split("/")):
            continue
        files.append(rel)
    return sorted(files)


def compile_static(public_dir: Path) -> tuple[StaticEntry, ...]:
    """Map every file under *public_dir* to ``/<relative path>``."""
    if not public_dir.is_dir():
        return ()
    entries = []
    for rel in _scan(public_dir):
        content_type, _ = mimetypes.guess_type(rel)
        entries.append(
            StaticEntry(
                path="/" + rel,
                file=rel,
                content_type=content_type or "application/octet-stream",
            )
        )
    return tuple(entries)


def compile_routes(routes_dir: str | Path, public_dir: str | Path | None = None) -> RouteTable:
    """Scan *routes_dir* (and optionally *public_dir*) into a RouteTable.

    Every route module is imported once to record which handlers it
    exports. A module that fails to import, or exports no handler, is
    logged and skipped; the rest of the table is still produced.
    """
    root = Path(routes_dir).resolve()
    if not root.is_dir():
        msg = f"Routes directory not found: {root}"
        raise FileNotFoundError(msg)

    files = _scan(root)
    layouts = {rel for rel in files if rel.split("/")[-1] == LAYOUT_FILE}

    entries: list[RouteEntry] = []
    for rel in files:
        if not is_routable(rel):
            continue
        try:
            module = load_module(root, rel)
        except Exception:
            logger.exception("Skipping route %s: import failed", rel)
            continue
        exports = _exports_of(module)
        if not exports:
            logger.warning("Skipping route %s: no handler exported", rel)
            continue
        entries.append(
            RouteEntry(
                path=path_to_pattern(rel),
                file=rel,
                layouts=_layout_chain(rel, layouts),
                exports=exports,
            )
        )

    entries.sort(key=lambda entry: entry.path)
    _warn_duplicates(entries)

    return RouteTable(
        routes=tuple(entries),
        static=compile_static(Path(public_dir)) if public_dir is not None else (),
        root=ROOT_TEMPLATE if ROOT_TEMPLATE in files else None,
    )


def _warn_duplicates(entries: list[RouteEntry]) -> None:
    for previous, current in zip(entries, entries[1:], strict=False):
        if previous.path == current.path:
            logger.warning(
                "Route %s defined by both %s and %s; the first wins",
                current.path,
                previous.file,
                current.file,
            )


# ---------------------------------------------------------------------------
# Generated module
# ---------------------------------------------------------------------------

_HEADER = '''"""Generated by ``mwm routes build``. Do not edit."""

'''


def render_route_module(table: RouteTable) -> str:
    """Python source for *table*. Identical tables give identical bytes."""
    routes = [
        (entry.path, entry.file, entry.layouts, entry.exports) for entry in table.routes
    ]
    static = [(entry.path, entry.file, entry.content_type) for entry in table.static]
    parts = [
        _HEADER,
        f"ROOT = {table.root!r}\n\n",
        f"LAYOUTS = {pprint.pformat(table.layouts, width=88)}\n\n",
        f"ROUTES = {pprint.pformat(tuple(routes), width=88)}\n\n",
        f"STATIC_ROUTES = {pprint.pformat(tuple(static), width=88)}\n",
    ]
    return "".join(parts)


def write_route_module(table: RouteTable, target: str | Path) -> Path:
    """Write the generated module; skip the write when nothing changed."""
    path = Path(target)
    source = render_route_module(table)
    if path.is_file() and path.read_text(encoding="utf-8") == source:
        return path
    path.write_text(source, encoding="utf-8")
    logger.info("Wrote %d routes and %d static files to %s", len(table.routes), len(table.static), path)
    return path


def table_from_module(module: ModuleType) -> RouteTable:
    """Rebuild a RouteTable from a generated module's literals."""
    return RouteTable(
        routes=tuple(
            RouteEntry(path=path, file=file, layouts=tuple(layouts), exports=tuple(exports))
            for path, file, layouts, exports in module.ROUTES
        ),
        static=tuple(
            StaticEntry(path=path, file=file, content_type=content_type)
            for path, file, content_type in module.STATIC_ROUTES
        ),
        root=module.ROOT,
    )
