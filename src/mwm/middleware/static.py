"""Static file serving from the compiled static table.

Only URLs listed in the table are served; everything else falls
through to the next handler. The table is built by the route compiler,
so no request ever resolves an arbitrary path on disk.
"""

from collections.abc import Iterable
from pathlib import Path

import anyio

from mwm.http.request import Request
from mwm.http.response import Response
from mwm.middleware.protocol import Next
from mwm.routing.compiler import StaticEntry


class StaticFiles:
    """Middleware that serves the files named by a static table.

    Usage::

        app.add_middleware(StaticFiles(
            table.static,
            directory=config.public_dir,
            cache_control=config.static_cache_control,
        ))
    """

    __slots__ = ("_cache_control", "_directory", "_entries")

    def __init__(
        self,
        entries: Iterable[StaticEntry],
        *,
        directory: str | Path,
        cache_control: str = "no-cache",
    ) -> None:
        self._directory = Path(directory).resolve()
        self._entries = {entry.path: entry for entry in entries}
        self._cache_control = cache_control

    @property
    def paths(self) -> list[str]:
        return sorted(self._entries)

    async def __call__(self, request: Request, next: Next) -> Response:
        """Serve a static file or fall through."""
        if request.method not in ("GET", "HEAD"):
            return await next(request)

        entry = self._entries.get(request.path)
        if entry is None:
            return await next(request)

        file_path = self._directory / entry.file
        try:
            body = await anyio.to_thread.run_sync(file_path.read_bytes)
        except FileNotFoundError:
            # Deleted since the table was compiled
            return await next(request)

        return Response(body=body, content_type=entry.content_type).with_header(
            "Cache-Control", self._cache_control
        )
