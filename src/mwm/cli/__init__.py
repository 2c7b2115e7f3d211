"""mwm CLI: route compilation, database setup, and the dev server.

Entry point registered as ``mwm`` in ``pyproject.toml``::

    [project.scripts]
    mwm = "mwm.cli:main"

Configuration comes from ``MWM_*`` environment variables.
"""

import argparse
import logging
import sys

from mwm.config import AppConfig
from mwm.errors import ConfigurationError


def _load_config() -> AppConfig:
    try:
        return AppConfig.from_env()
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``mwm`` command."""
    parser = argparse.ArgumentParser(
        prog="mwm",
        description="mwm: file-system routed web app starter.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- mwm routes -------------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="Compile or list page routes")
    routes_sub = routes_parser.add_subparsers(dest="routes_command")
    build_parser = routes_sub.add_parser("build", help="Write the generated route module")
    build_parser.add_argument(
        "--output",
        default=None,
        help="Target file (default: mwm/routes_generated.py)",
    )
    routes_sub.add_parser("list", help="Print the compiled route table")

    # -- mwm migrate / seed -----------------------------------------------
    subparsers.add_parser("migrate", help="Apply pending SQL migrations")
    seed_parser = subparsers.add_parser("seed", help="Migrate, then upsert seed data")
    seed_parser.add_argument(
        "--admin-password",
        default=None,
        help="Password for admin@example.com (default: admin123)",
    )

    # -- mwm run ----------------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Build routes and start the server")
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    run_parser.add_argument(
        "--no-reload",
        action="store_true",
        help="Disable auto-reload in debug mode",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    config = _load_config()
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "routes":
        from mwm.cli._routes import build_routes, list_routes

        if args.routes_command == "build":
            build_routes(config, args.output)
        elif args.routes_command == "list":
            list_routes(config)
        else:
            routes_parser.print_help()
    elif args.command == "migrate":
        from mwm.cli._data import run_migrate

        run_migrate(config)
    elif args.command == "seed":
        from mwm.cli._data import run_seed

        run_seed(config, args.admin_password)
    elif args.command == "run":
        from mwm.cli._run import run_app

        run_app(config, args)
