"""mwm application class.

Mutable during setup (middleware, error handlers, template filters,
lifecycle hooks). Frozen on the first ASGI call: routes are loaded,
the kida environment is created and the request pipeline is compiled.
"""

import importlib
import inspect
import logging
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

from kida import Environment

from mwm._internal.asgi import Receive, Scope, Send
from mwm.api import ApiRouter, create_api_router, generate_openapi
from mwm.config import PACKAGE_DIR, AppConfig
from mwm.data.database import Database
from mwm.data.migrate import migrate
from mwm.middleware.protocol import Middleware
from mwm.middleware.static import StaticFiles
from mwm.routing.compiler import RouteTable, compile_routes, table_from_module
from mwm.routing.dispatcher import Dispatcher
from mwm.routing.loader import load_routes
from mwm.security.sessions import SessionManager
from mwm.server.handler import handle_request
from mwm.templating.integration import create_environment

logger = logging.getLogger("mwm.server")

GENERATED_MODULE = "mwm.routes_generated"
GENERATED_PATH = PACKAGE_DIR / "routes_generated.py"


def load_route_table(config: AppConfig) -> RouteTable:
    """The route table to serve.

    Production serves the generated module written by ``mwm routes
    build``. Debug mode, a custom routes directory, or a missing
    generated module compile the routes directory at startup instead.
    """
    routes_dir = Path(config.routes_dir).resolve()
    uses_package_routes = routes_dir == (PACKAGE_DIR / "routes").resolve()
    if not config.debug and uses_package_routes and GENERATED_PATH.is_file():
        return table_from_module(importlib.import_module(GENERATED_MODULE))
    return compile_routes(routes_dir, config.public_dir)


class App:
    """The mwm application.

    Usage::

        app = App(AppConfig.from_env())
        # pounce / any ASGI server: app(scope, receive, send)

    Thread safety:
        The freeze transition uses a Lock + double-check so exactly one
        caller compiles the app, even if several requests arrive first.
    """

    __slots__ = (
        "_api",
        "_db",
        "_dispatcher",
        "_error_handlers",
        "_freeze_lock",
        "_frozen",
        "_kida_env",
        "_middleware",
        "_middleware_list",
        "_openapi",
        "_route_table",
        "_sessions",
        "_shutdown_hooks",
        "_startup_hooks",
        "_template_filters",
        "_template_globals",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        db: Database | str | None = None,
        routes: RouteTable | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self.config.validate()

        if db is None:
            db = self.config.database_url
        self._db: Database = (
            Database(db, echo=self.config.echo_sql) if isinstance(db, str) else db
        )
        self._route_table: RouteTable | None = routes

        self._middleware_list: list[Middleware] = []
        self._error_handlers: dict[int | type, Callable[..., Any]] = {}
        self._template_filters: dict[str, Callable[..., Any]] = {}
        self._template_globals: dict[str, Any] = {}
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state, set during _freeze()
        self._api: ApiRouter | None = None
        self._openapi: dict[str, Any] = {}
        self._dispatcher: Dispatcher | None = None
        self._sessions: SessionManager | None = None
        self._middleware: tuple[Callable[..., Any], ...] = ()
        self._kida_env: Environment | None = None

    # -- Setup --

    @property
    def db(self) -> Database:
        return self._db

    @property
    def sessions(self) -> SessionManager:
        self._ensure_frozen()
        assert self._sessions is not None
        return self._sessions

    @property
    def route_table(self) -> RouteTable:
        self._ensure_frozen()
        assert self._route_table is not None
        return self._route_table

    @property
    def openapi(self) -> dict[str, Any]:
        self._ensure_frozen()
        return self._openapi

    def error(
        self,
        code_or_exception: int | type[Exception],
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register an error handler via decorator."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware; it runs after the static file middleware."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    def template_filter(
        self,
        name: str | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a kida template filter."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._template_filters[name or func.__name__] = func
            return func

        return decorator

    def template_global(
        self,
        name: str | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a kida template global."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._template_globals[name or func.__name__] = func
            return func

        return decorator

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a startup hook; runs after the database is migrated."""
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a shutdown hook; runs before the database disconnects."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    def run(self, host: str | None = None, port: int | None = None, *, reload: bool | None = None) -> None:
        """Serve with pounce. Reloads on file changes in debug mode."""
        from mwm.server.dev import run_server

        self._ensure_frozen()
        run_server(
            self,
            host or self.config.host,
            port or self.config.port,
            reload=self.config.debug if reload is None else reload,
            log_level=self.config.log_level,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()
        assert self._dispatcher is not None
        assert self._api is not None
        assert self._kida_env is not None

        await handle_request(
            scope,
            receive,
            send,
            dispatcher=self._dispatcher,
            api=self._api,
            openapi=self._openapi,
            middleware=self._middleware,
            error_handlers=self._error_handlers,
            env=self._kida_env,
            debug=self.config.debug,
        )

    async def startup(self) -> None:
        """Connect and migrate the database, then run startup hooks."""
        self._ensure_frozen()
        await self._db.connect()
        result = await migrate(self._db, self.config.migrations_dir)
        logger.info("Database ready: %s", result.summary)
        for hook in self._startup_hooks:
            outcome = hook()
            if inspect.isawaitable(outcome):
                await outcome

    async def shutdown(self) -> None:
        for hook in self._shutdown_hooks:
            outcome = hook()
            if inspect.isawaitable(outcome):
                await outcome
        await self._db.disconnect()

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol."""
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self.startup()
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        config = self.config

        # 1. Route table and template environment
        if self._route_table is None:
            self._route_table = load_route_table(config)
        table = self._route_table
        self._kida_env = create_environment(config, self._template_filters, self._template_globals)

        # 2. Sessions, pages and the API
        self._sessions = SessionManager(self._db, config)
        self._dispatcher = Dispatcher(
            load_routes(table, config.routes_dir),
            env=self._kida_env,
            db=self._db,
            sessions=self._sessions,
            root_template=table.root,
        )
        self._api = create_api_router()
        self._openapi = generate_openapi(self._api)

        # 3. Middleware: static files first, so assets skip everything else
        static = StaticFiles(
            table.static,
            directory=config.public_dir,
            cache_control=config.static_cache_control,
        )
        self._middleware = (static, *self._middleware_list)

        self._frozen = True
        logger.debug(
            "Loaded %d page routes, %d API endpoints, %d static files",
            len(self._dispatcher.patterns),
            len(self._api.endpoints),
            len(table.static),
        )

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = "Cannot modify the app after it has started serving requests."
            raise RuntimeError(msg)
