"""``mwm routes build`` and ``mwm routes list``."""

from pathlib import Path

from mwm.config import AppConfig
from mwm.routing.compiler import RouteTable, compile_routes, write_route_module


def _compile(config: AppConfig) -> RouteTable:
    return compile_routes(config.routes_dir, config.public_dir)


def build_routes(config: AppConfig, output: str | None = None) -> Path:
    """Compile the routes directory and write the generated module."""
    from mwm.app import GENERATED_PATH

    table = _compile(config)
    target = write_route_module(table, output or GENERATED_PATH)
    print(f"{len(table.routes)} routes, {len(table.static)} static files -> {target}")
    return target


def list_routes(config: AppConfig) -> None:
    """Print a table of PATH, METHODS, FILE and LAYOUTS."""
    table = _compile(config)
    if not table.routes:
        print("No routes found.")
        return

    rows = [
        (
            entry.path,
            ", ".join(entry.exports),
            entry.file,
            " > ".join(entry.layouts) or "-",
        )
        for entry in table.routes
    ]
    widths = [max(len(row[i]) for row in [*rows, ("PATH", "EXPORTS", "FILE", "")]) for i in range(3)]
    fmt = f"{{:<{widths[0]}}}  {{:<{widths[1]}}}  {{:<{widths[2]}}}  {{}}"
    print(fmt.format("PATH", "EXPORTS", "FILE", "LAYOUTS"))
    print("-" * min(sum(widths) + 6 + max(len(row[3]) for row in rows), 100))
    for row in rows:
        print(fmt.format(*row))

    if table.static:
        print()
        for entry in table.static:
            print(f"{entry.path}  ({entry.content_type})")
