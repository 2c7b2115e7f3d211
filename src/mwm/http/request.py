"""The incoming HTTP request.

Metadata is frozen when the request is built from the ASGI scope; the
body is read lazily and cached, so a guard and a handler can both call
``await request.form()``.
"""

from __future__ import annotations

import json
from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field
from typing import Any

from mwm._internal.asgi import Receive
from mwm.http.cookies import parse_cookies
from mwm.http.forms import FormData, parse_form_data
from mwm.http.headers import Headers
from mwm.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """An HTTP request.

    ``path`` is percent-decoded by the server; ``raw_path`` keeps the
    original encoding so dynamic route segments are split before
    decoding (``/users/a%2Fb`` has two segments, not three).
    """

    method: str
    path: str
    raw_path: str
    headers: Headers
    query: QueryParams
    cookies: Mapping[str, str]
    http_version: str = "1.1"
    client: tuple[str, int] | None = None
    _receive: Receive | None = field(default=None, repr=False, compare=False)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def is_htmx(self) -> bool:
        """True when the request was issued by htmx (``HX-Request: true``)."""
        return self.headers.get("hx-request") == "true"

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Path plus query string, as the client asked for it."""
        if self.query.raw:
            return f"{self.path}?{self.query.raw}"
        return self.path

    async def body(self) -> bytes:
        if "body" not in self._cache:
            self._cache["body"] = b"".join([chunk async for chunk in self.stream()])
        return self._cache["body"]

    async def stream(self) -> AsyncGenerator[bytes]:
        if self._receive is None:
            return
        while True:
            message = await self._receive()
            chunk = message.get("body", b"")
            if chunk:
                yield chunk
            if not message.get("more_body", False):
                break

    async def json(self) -> Any:
        """Decode the body as JSON; raises ``ValueError`` when malformed."""
        return json.loads(await self.body())

    async def form(self) -> FormData:
        """Parse the body as a form; empty for non-form content types."""
        if "form" not in self._cache:
            content_type = self.content_type or "application/x-www-form-urlencoded"
            raw = await self.body()
            try:
                self._cache["form"] = await parse_form_data(raw, content_type)
            except ValueError:
                self._cache["form"] = FormData()
        return self._cache["form"]

    @classmethod
    def from_asgi(cls, scope: Mapping[str, Any], receive: Receive | None = None) -> Request:
        headers = Headers(tuple(scope.get("headers", ())))
        raw_path = scope.get("raw_path") or scope["path"].encode("utf-8")
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            raw_path=raw_path.decode("latin-1"),
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            cookies=parse_cookies(headers.get("cookie", "")),
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
            _receive=receive,
        )
