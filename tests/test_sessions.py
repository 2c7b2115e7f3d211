"""Tests for mwm.security.sessions: signed cookies over persisted rows."""

from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from mwm.config import AppConfig
from mwm.data import accounts
from mwm.data.database import Database
from mwm.data.migrate import migrate
from mwm.errors import Halt
from mwm.http.request import Request
from mwm.http.response import Redirect
from mwm.security.identity import AuthSession, SessionUser
from mwm.security.passwords import get_hasher, hash_password
from mwm.security.sessions import (
    ACCOUNT_DEACTIVATED,
    INVALID_CREDENTIALS,
    SessionManager,
    require_auth,
    safe_return_url,
    sign_in_url,
)

CONFIG = AppConfig(argon2_memory_cost=1024, argon2_time_cost=1)


def _request(cookie: str | None = None) -> Request:
    headers = [(b"cookie", cookie.encode("latin-1"))] if cookie else []
    scope = {"type": "http", "method": "GET", "path": "/", "headers": headers, "query_string": b""}

    async def receive():
        return {"type": "http.request", "body": b"", "more_body": False}

    return Request.from_asgi(scope, receive)


@pytest.fixture
async def db(tmp_path: Path) -> AsyncIterator[Database]:
    async with Database(f"sqlite:///{tmp_path / 'sessions.db'}") as database:
        await migrate(database, CONFIG.migrations_dir)
        yield database


@pytest.fixture
def auth(db: Database) -> SessionManager:
    return SessionManager(db, CONFIG)


async def _user(db: Database, email: str = "ada@example.com", *, active: bool = True):
    hashed = hash_password("correct-horse", get_hasher(1024, 1))
    return await accounts.create_user(db, email, "Ada", password_hash=hashed, is_active=active)


class TestSessionLifecycle:
    async def test_create_then_resolve(self, db: Database, auth: SessionManager) -> None:
        user = await _user(db)
        cookie = await auth.create_session(user.id)

        assert cookie.name == CONFIG.session_cookie
        assert cookie.httponly
        assert cookie.samesite == "Lax"
        assert cookie.max_age == CONFIG.session_max_age

        session = await auth.get_session_from_request(_request(f"{cookie.name}={cookie.value}"))
        assert session.is_authenticated
        assert session.user.email == "ada@example.com"
        assert session.user.display_name == "Ada"

    async def test_secure_flag_outside_debug(self, db: Database) -> None:
        manager = SessionManager(db, AppConfig(debug=False, secret_key="prod-secret"))
        user = await _user(db)
        assert (await manager.create_session(user.id)).secure

    async def test_destroy_invalidates_every_copy(self, db: Database, auth: SessionManager) -> None:
        user = await _user(db)
        cookie = await auth.create_session(user.id)
        request = _request(f"{cookie.name}={cookie.value}")

        clearing = await auth.destroy_session(request)

        assert clearing.max_age == 0
        assert clearing.value == ""
        assert not (await auth.get_session_from_request(request)).is_authenticated

    async def test_destroy_without_cookie(self, auth: SessionManager) -> None:
        assert (await auth.destroy_session(_request())).max_age == 0


class TestGuestFallback:
    async def test_no_cookie(self, auth: SessionManager) -> None:
        assert await auth.get_session_from_request(_request()) == AuthSession.guest()

    async def test_forged_cookie(self, auth: SessionManager) -> None:
        session = await auth.get_session_from_request(_request(f"{CONFIG.session_cookie}=forged.value"))
        assert not session.is_authenticated

    async def test_cookie_signed_with_other_key(self, db: Database, auth: SessionManager) -> None:
        user = await _user(db)
        other = SessionManager(db, AppConfig(secret_key="another-key"))
        cookie = await other.create_session(user.id)
        session = await auth.get_session_from_request(_request(f"{cookie.name}={cookie.value}"))
        assert not session.is_authenticated

    async def test_expired_session_row(self, db: Database, auth: SessionManager) -> None:
        user = await _user(db)
        cookie = await auth.create_session(user.id)
        await db.execute(
            "UPDATE sessions SET expires_at = ? WHERE user_id = ?",
            "2000-01-01T00:00:00+00:00",
            user.id,
        )
        session = await auth.get_session_from_request(_request(f"{cookie.name}={cookie.value}"))
        assert session == AuthSession.guest()

    async def test_live_session_lookup_skips_expired(self, db: Database) -> None:
        user = await _user(db)
        expired = await accounts.insert_session(db, user.id, max_age=-1)
        live = await accounts.insert_session(db, user.id, max_age=60)
        assert await accounts.get_live_session(db, expired.id) is None
        assert (await accounts.get_live_session(db, live.id)).id == live.id

    async def test_deactivated_user(self, db: Database, auth: SessionManager) -> None:
        user = await _user(db)
        cookie = await auth.create_session(user.id)
        await accounts.set_active(db, user.id, False)
        session = await auth.get_session_from_request(_request(f"{cookie.name}={cookie.value}"))
        assert not session.is_authenticated


class TestAuthenticate:
    async def test_success_records_login(self, db: Database, auth: SessionManager) -> None:
        user = await _user(db)
        result = await auth.authenticate("ADA@example.com", "correct-horse")
        assert result.ok
        assert result.user.id == user.id
        refreshed = await accounts.get_user(db, user.id)
        assert refreshed.last_login_at is not None

    async def test_unknown_email_and_wrong_password_look_the_same(
        self, db: Database, auth: SessionManager
    ) -> None:
        await _user(db)
        unknown = await auth.authenticate("nobody@example.com", "correct-horse")
        wrong = await auth.authenticate("ada@example.com", "wrong-password")
        assert unknown.error == wrong.error == INVALID_CREDENTIALS == "Invalid email or password"

    async def test_user_without_password(self, db: Database, auth: SessionManager) -> None:
        await accounts.create_user(db, "nopass@example.com")
        assert (await auth.authenticate("nopass@example.com", "anything")).error == INVALID_CREDENTIALS

    async def test_deactivated_only_after_correct_password(
        self, db: Database, auth: SessionManager
    ) -> None:
        await _user(db, active=False)
        assert (await auth.authenticate("ada@example.com", "nope")).error == INVALID_CREDENTIALS
        assert (await auth.authenticate("ada@example.com", "correct-horse")).error == ACCOUNT_DEACTIVATED


class TestRequireAuth:
    def test_guest_halts_with_sign_in_redirect(self) -> None:
        with pytest.raises(Halt) as info:
            require_auth(AuthSession.guest(), "/admin/roles")
        redirect = info.value.response
        assert isinstance(redirect, Redirect)
        assert redirect.url == "/identity/sign-in?returnUrl=/admin/roles"

    def test_signed_in_passes_through(self) -> None:
        session = AuthSession(session_id="s", user=SessionUser(id="u", email="u@example.com"))
        assert require_auth(session) is session

    def test_sign_in_url_without_return(self) -> None:
        assert sign_in_url() == "/identity/sign-in"
        assert sign_in_url("/") == "/identity/sign-in"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, "/"),
            ("", "/"),
            ("/admin", "/admin"),
            ("//evil.example", "/"),
            ("https://evil.example", "/"),
        ],
    )
    def test_safe_return_url(self, value: str | None, expected: str) -> None:
        assert safe_return_url(value) == expected
