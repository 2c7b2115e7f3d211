"""``mwm run``: rebuild the route module, then serve with pounce."""

import argparse

from mwm.cli._routes import build_routes
from mwm.config import AppConfig


def run_app(config: AppConfig, args: argparse.Namespace) -> None:
    from mwm.app import App

    build_routes(config)
    app = App(config)
    app.run(args.host, args.port, reload=config.debug and not args.no_reload)
