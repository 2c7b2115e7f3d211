"""HTTP responses built through chainable ``.with_*()`` calls.

Each call returns a new value; handlers and guards construct a base
response and refine it without mutating anything shared.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from mwm.http.cookies import SetCookie

JSON_CONTENT_TYPE = "application/json; charset=utf-8"


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response.

    Construct with a body, then chain ``.with_*()`` calls to set the
    status, headers and cookies.
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[SetCookie, ...] = ()

    @classmethod
    def json(cls, data: Any, status: int = 200) -> "Response":
        """Serialize *data* as a JSON response."""
        return cls(
            body=json.dumps(data, default=str),
            status=status,
            content_type=JSON_CONTENT_TYPE,
        )

    def with_status(self, status: int) -> "Response":
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> "Response":
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> "Response":
        return replace(self, headers=(*self.headers, *headers.items()))

    def with_content_type(self, content_type: str) -> "Response":
        return replace(self, content_type=content_type)

    def with_cookie(self, cookie: SetCookie) -> "Response":
        """Attach a ``Set-Cookie`` directive."""
        return replace(self, cookies=(*self.cookies, cookie))

    def with_hx_redirect(self, url: str) -> "Response":
        """Tell htmx to navigate the whole page to *url*."""
        return self.with_header("HX-Redirect", url)

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive), if set."""
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None

    @property
    def body_bytes(self) -> bytes:
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body

    def json_body(self) -> Any:
        """Decode a JSON body (test assertions, API clients)."""
        return json.loads(self.body_bytes)


@dataclass(frozen=True, slots=True)
class Redirect:
    """A redirect to *url*.

    302 is the POST-redirect-GET default; sign-out uses 303.
    """

    url: str
    status: int = 302
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[SetCookie, ...] = ()

    def with_cookie(self, cookie: SetCookie) -> "Redirect":
        return replace(self, cookies=(*self.cookies, cookie))

    def to_response(self) -> Response:
        return Response(
            body="",
            status=self.status,
            headers=(("Location", self.url), *self.headers),
            cookies=self.cookies,
        )


def htmx_redirect(url: str, cookie: SetCookie | None = None) -> Response:
    """A 200 response carrying ``HX-Redirect`` so htmx performs a full navigation.

    htmx does not follow 3xx responses to a new page by itself; a form
    posted with ``hx-post`` needs the header instead.
    """
    response = Response(body="").with_hx_redirect(url)
    if cookie is not None:
        response = response.with_cookie(cookie)
    return response
