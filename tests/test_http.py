"""Tests for mwm.http: request, query, headers, cookies, forms, responses."""

import pytest

from mwm.http.cookies import SetCookie, parse_cookies
from mwm.http.forms import FormData, parse_form_data
from mwm.http.headers import Headers
from mwm.http.query import QueryParams
from mwm.http.request import Request
from mwm.http.response import Redirect, Response, htmx_redirect


def _request(
    body: bytes = b"",
    *,
    method: str = "POST",
    path: str = "/",
    query: bytes = b"",
    headers: list[tuple[bytes, bytes]] | None = None,
) -> Request:
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "headers": headers or [],
        "query_string": query,
    }
    chunks = [body[:3], body[3:]] if len(body) > 3 else [body]

    async def receive():
        chunk = chunks.pop(0)
        return {"type": "http.request", "body": chunk, "more_body": bool(chunks)}

    return Request.from_asgi(scope, receive)


class TestParseCookies:
    def test_empty(self) -> None:
        assert parse_cookies("") == {}

    def test_multiple_with_whitespace(self) -> None:
        assert parse_cookies("  session = abc ;  theme=dark") == {"session": "abc", "theme": "dark"}

    def test_value_with_equals(self) -> None:
        assert parse_cookies("token=abc=def=") == {"token": "abc=def="}

    def test_quoted_and_encoded(self) -> None:
        assert parse_cookies('name="a%20b"') == {"name": "a b"}

    def test_pairs_without_equals_skipped(self) -> None:
        assert parse_cookies("a=1; broken; b=2") == {"a": "1", "b": "2"}

    def test_first_occurrence_wins(self) -> None:
        assert parse_cookies("a=1; a=2") == {"a": "1"}


class TestSetCookie:
    def test_defaults(self) -> None:
        header = SetCookie(name="s", value="v").to_header_value()
        assert header == "s=v; Path=/; HttpOnly; SameSite=Lax"

    def test_all_attributes(self) -> None:
        header = SetCookie(
            name="s", value="v", max_age=60, domain="example.com", secure=True
        ).to_header_value()
        assert header == "s=v; Max-Age=60; Path=/; Domain=example.com; Secure; HttpOnly; SameSite=Lax"

    def test_expired(self) -> None:
        cookie = SetCookie(name="s", value="v", max_age=60).expired()
        assert cookie.value == ""
        assert cookie.max_age == 0


class TestQueryAndHeaders:
    def test_query_keeps_blank_values(self) -> None:
        query = QueryParams(b"partial=&tag=a&tag=b")
        assert query["partial"] == ""
        assert query.get_list("tag") == ["a", "b"]
        assert query.raw == "partial=&tag=a&tag=b"

    def test_headers_case_insensitive(self) -> None:
        headers = Headers(((b"Content-Type", b"text/html"), (b"X-A", b"1"), (b"x-a", b"2")))
        assert headers["content-type"] == "text/html"
        assert "CONTENT-TYPE" in headers
        assert headers.get_list("X-A") == ["1", "2"]


class TestRequest:
    def test_from_asgi(self) -> None:
        request = _request(
            method="get",
            path="/users/a b",
            query=b"x=1",
            headers=[(b"hx-request", b"true"), (b"cookie", b"s=abc")],
        )
        assert request.method == "GET"
        assert request.is_htmx is True
        assert request.cookies == {"s": "abc"}
        assert request.url == "/users/a b?x=1"

    async def test_body_is_cached(self) -> None:
        request = _request(b"hello world")
        assert await request.body() == b"hello world"
        assert await request.body() == b"hello world"

    async def test_json(self) -> None:
        request = _request(b'{"a": 1}')
        assert await request.json() == {"a": 1}

    async def test_malformed_json_raises(self) -> None:
        with pytest.raises(ValueError):
            await _request(b"{nope").json()

    async def test_form_urlencoded(self) -> None:
        request = _request(
            b"name=editor&permissions=1&permissions=2",
            headers=[(b"content-type", b"application/x-www-form-urlencoded")],
        )
        form = await request.form()
        assert form["name"] == "editor"
        assert form.get_list("permissions") == ["1", "2"]

    async def test_form_with_other_content_type_is_empty(self) -> None:
        request = _request(b"{}", headers=[(b"content-type", b"application/json")])
        assert len(await request.form()) == 0


class TestForms:
    async def test_multipart(self) -> None:
        body = (
            b"--XX\r\n"
            b'Content-Disposition: form-data; name="title"\r\n\r\n'
            b"Hello\r\n"
            b"--XX\r\n"
            b'Content-Disposition: form-data; name="file"; filename="a.txt"\r\n'
            b"Content-Type: text/plain\r\n\r\n"
            b"data\r\n"
            b"--XX--\r\n"
        )
        form = await parse_form_data(body, "multipart/form-data; boundary=XX")
        assert form["title"] == "Hello"
        upload = form.files["file"]
        assert upload.filename == "a.txt"
        assert upload.content == b"data"
        assert upload.size == 4

    async def test_multipart_without_boundary(self) -> None:
        with pytest.raises(ValueError, match="boundary"):
            await parse_form_data(b"", "multipart/form-data")

    async def test_unsupported_type(self) -> None:
        with pytest.raises(ValueError, match="Unsupported"):
            await parse_form_data(b"", "text/plain")

    def test_replace(self) -> None:
        form = FormData({"name": ["x"], "permissions": ["1", "2"]})
        replaced = form.replace(name="admin")
        assert replaced["name"] == "admin"
        assert replaced.get_list("permissions") == ["1", "2"]
        assert form["name"] == "x"


class TestResponses:
    def test_chaining_does_not_mutate(self) -> None:
        base = Response("ok")
        changed = base.with_status(201).with_header("X-A", "1")
        assert base.status == 200
        assert base.headers == ()
        assert changed.header("x-a") == "1"

    def test_json(self) -> None:
        response = Response.json({"a": 1}, status=400)
        assert response.status == 400
        assert response.content_type.startswith("application/json")
        assert response.json_body() == {"a": 1}

    def test_redirect(self) -> None:
        cookie = SetCookie(name="s", value="v")
        response = Redirect("/next", status=303).with_cookie(cookie).to_response()
        assert response.status == 303
        assert response.header("location") == "/next"
        assert response.cookies == (cookie,)

    def test_htmx_redirect(self) -> None:
        response = htmx_redirect("/admin")
        assert response.status == 200
        assert response.header("HX-Redirect") == "/admin"
