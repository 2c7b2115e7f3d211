"""Serve the app with pounce.

Pounce's ``run()`` takes an import string, but mwm has a live ``App``
object, so ``pounce.Server`` is used directly with the ASGI callable.
One worker only: the SQLite connection and its lock belong to a single
event loop.
"""

from pounce.config import ServerConfig
from pounce.server import Server


def run_server(
    app: object,
    host: str,
    port: int,
    *,
    reload: bool = True,
    reload_include: tuple[str, ...] = (".html", ".css", ".js"),
    log_level: str = "info",
) -> None:
    """Start a single-worker pounce server for *app*.

    Args:
        app: ASGI callable (mwm App instance).
        host: Bind host address.
        port: Bind port number.
        reload: Restart on file changes (development).
        reload_include: Extra file extensions to watch when reloading.
        log_level: Pounce log level.
    """
    config = ServerConfig(
        host=host,
        port=port,
        workers=1,
        reload=reload,
        reload_include=reload_include,
        log_level=log_level,
    )
    Server(config, app).run()
