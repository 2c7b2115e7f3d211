"""Sign-in, sign-out and the guarded CMS section, end to end."""

from pathlib import Path

import pytest

from mwm import App, AppConfig
from mwm.data.seed import ADMIN_EMAIL, seed
from mwm.testing import TestClient
from mwm.testing.assertions import (
    assert_hx_redirect,
    assert_is_fragment,
    assert_is_full_page,
    assert_redirect,
)

PASSWORD = "admin123"


@pytest.fixture
def app(tmp_path: Path) -> App:
    return App(
        AppConfig(
            database_url=f"sqlite:///{tmp_path / 'identity.db'}",
            argon2_memory_cost=1024,
            argon2_time_cost=1,
        )
    )


def _credentials(password: str = PASSWORD, **extra: str) -> dict[str, str]:
    return {"email": ADMIN_EMAIL, "password": password, **extra}


class TestSignInPage:
    async def test_renders_form(self, app: App) -> None:
        async with TestClient(app) as client:
            response = await client.get("/identity/sign-in")
        assert_is_full_page(response)
        assert 'id="sign-in-form"' in response.text
        assert 'name="returnUrl" value="/"' in response.text

    async def test_keeps_safe_return_url(self, app: App) -> None:
        async with TestClient(app) as client:
            kept = await client.get("/identity/sign-in?returnUrl=/admin/roles")
            dropped = await client.get("/identity/sign-in?returnUrl=//evil.example")
        assert 'value="/admin/roles"' in kept.text
        assert 'name="returnUrl" value="/"' in dropped.text

    async def test_validation_errors(self, app: App) -> None:
        async with TestClient(app) as client:
            response = await client.post(
                "/identity/sign-in", form={"email": "nope", "password": "123"}
            )
        assert response.status == 200
        assert "Please enter a valid email address" in response.text
        assert "Password must be at least 6 characters" in response.text

    async def test_htmx_errors_render_only_the_form(self, app: App) -> None:
        async with TestClient(app) as client:
            response = await client.fragment(
                "/identity/sign-in", method="POST", form={"email": "", "password": ""}
            )
        assert_is_fragment(response)
        assert response.text.strip().startswith("<form")
        assert "Password is required" in response.text


class TestAuthenticate:
    async def test_bad_password_gets_generic_message(self, app: App) -> None:
        async with TestClient(app) as client:
            await seed(app.db, admin_password=PASSWORD)
            response = await client.post("/identity/sign-in", form=_credentials("wrong-password"))
        assert response.status == 200
        assert "Invalid email or password" in response.text
        assert "mwm_session" not in client.cookies

    async def test_unknown_account_gets_same_message(self, app: App) -> None:
        async with TestClient(app) as client:
            await seed(app.db, admin_password=PASSWORD)
            response = await client.post(
                "/identity/sign-in",
                form={"email": "ghost@example.com", "password": "whatever"},
            )
        assert "Invalid email or password" in response.text

    async def test_plain_form_success_redirects_303(self, app: App) -> None:
        async with TestClient(app) as client:
            await seed(app.db, admin_password=PASSWORD)
            response = await client.post(
                "/identity/sign-in", form=_credentials(returnUrl="/cms")
            )
        assert_redirect(response, "/cms", status=303)
        assert "mwm_session" in client.cookies
        cookie = response.header("set-cookie")
        assert "HttpOnly" in cookie
        assert "SameSite=Lax" in cookie

    async def test_htmx_success_uses_hx_redirect(self, app: App) -> None:
        async with TestClient(app) as client:
            await seed(app.db, admin_password=PASSWORD)
            response = await client.fragment(
                "/identity/sign-in", method="POST", form=_credentials()
            )
        assert response.status == 200
        assert_hx_redirect(response, "/")
        assert "mwm_session" in client.cookies

    async def test_offsite_return_url_is_ignored(self, app: App) -> None:
        async with TestClient(app) as client:
            await seed(app.db, admin_password=PASSWORD)
            response = await client.post(
                "/identity/sign-in", form=_credentials(returnUrl="https://evil.example")
            )
        assert_redirect(response, "/", status=303)


class TestSignOut:
    async def test_clears_session(self, app: App) -> None:
        async with TestClient(app) as client:
            await seed(app.db, admin_password=PASSWORD)
            await client.post("/identity/sign-in", form=_credentials())
            assert (await client.get("/cms")).status == 200

            response = await client.post("/identity/sign-out")
            assert_redirect(response, "/identity/sign-in", status=303)
            assert "Max-Age=0" in response.header("set-cookie")
            assert "mwm_session" not in client.cookies

            after = await client.get("/cms")
        assert_redirect(after, "/identity/sign-in?returnUrl=/cms")

    async def test_sign_out_without_session(self, app: App) -> None:
        async with TestClient(app) as client:
            response = await client.post("/identity/sign-out")
        assert_redirect(response, "/identity/sign-in", status=303)


class TestCmsGuard:
    async def test_guest_is_redirected(self, app: App) -> None:
        async with TestClient(app) as client:
            response = await client.get("/cms")
        assert_redirect(response, "/identity/sign-in?returnUrl=/cms")

    async def test_guard_runs_for_partial_requests(self, app: App) -> None:
        async with TestClient(app) as client:
            response = await client.get("/cms?partial=yes")
        assert response.status == 302
        assert response.header("location").startswith("/identity/sign-in")

    async def test_signed_in_user_sees_cms(self, app: App) -> None:
        async with TestClient(app) as client:
            await seed(app.db, admin_password=PASSWORD)
            await client.post("/identity/sign-in", form=_credentials())
            response = await client.get("/cms")
        assert_is_full_page(response)
        assert "Welcome to the CMS Home Page!" in response.text
