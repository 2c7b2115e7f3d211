"""Cookie sessions backed by the ``sessions`` table.

The cookie holds only a session id, signed with ``itsdangerous`` so a
client cannot forge or tamper with it. The row in ``sessions`` is the
source of truth: signing out deletes it, which invalidates every copy
of the cookie immediately.

Sign-in never tells the client whether the email or the password was
wrong: both produce ``INVALID_CREDENTIALS``.
"""

import logging
from dataclasses import dataclass
from urllib.parse import quote

from itsdangerous import BadData, URLSafeTimedSerializer

from mwm.config import AppConfig
from mwm.data import accounts
from mwm.data.database import Database
from mwm.data.models import User
from mwm.errors import ConfigurationError, Halt
from mwm.http.cookies import SetCookie
from mwm.http.request import Request
from mwm.http.response import Redirect
from mwm.security.identity import AuthSession, SessionUser
from mwm.security.passwords import burn_verification, get_hasher, verify_password_async

logger = logging.getLogger("mwm.auth")

INVALID_CREDENTIALS = "Invalid email or password"
ACCOUNT_DEACTIVATED = "Your account has been deactivated"
SIGN_IN_PATH = "/identity/sign-in"

_SALT = "mwm.session"


@dataclass(frozen=True, slots=True)
class AuthResult:
    """The outcome of checking credentials. Exactly one of the fields is set."""

    user: User | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.user is not None


class SessionManager:
    """Issues, resolves and destroys sessions.

    Usage::

        auth = SessionManager(db, config)
        cookie = await auth.create_session(user.id)
        session = await auth.get_session_from_request(request)
        clearing = await auth.destroy_session(request)
    """

    __slots__ = ("_config", "_db", "_hasher", "_serializer")

    def __init__(self, db: Database, config: AppConfig) -> None:
        if not config.secret_key:
            msg = "AppConfig.secret_key must not be empty."
            raise ConfigurationError(msg)
        self._db = db
        self._config = config
        self._serializer = URLSafeTimedSerializer(config.secret_key, salt=_SALT)
        self._hasher = get_hasher(config.argon2_memory_cost, config.argon2_time_cost)

    def _cookie(self, value: str, max_age: int) -> SetCookie:
        return SetCookie(
            name=self._config.session_cookie,
            value=value,
            max_age=max_age,
            secure=self._config.secure_cookies,
        )

    def _session_id(self, request: Request) -> str | None:
        """The verified session id from the cookie, or None."""
        raw = request.cookies.get(self._config.session_cookie)
        if not raw:
            return None
        try:
            data = self._serializer.loads(raw, max_age=self._config.session_max_age)
        except BadData:
            return None
        if not isinstance(data, dict) or not isinstance(data.get("sid"), str):
            return None
        return data["sid"]

    async def create_session(self, user_id: str) -> SetCookie:
        """Persist a new session for *user_id*; returns the cookie to set."""
        row = await accounts.insert_session(self._db, user_id, self._config.session_max_age)
        token = self._serializer.dumps({"sid": row.id})
        return self._cookie(token, self._config.session_max_age)

    async def get_session_from_request(self, request: Request) -> AuthSession:
        """Resolve the request's session; a guest session on any failure."""
        session_id = self._session_id(request)
        if session_id is None:
            return AuthSession.guest()
        row = await accounts.get_live_session(self._db, session_id)
        if row is None:
            return AuthSession.guest()
        user = await accounts.get_user(self._db, row.user_id)
        if user is None or not user.is_active:
            return AuthSession.guest()
        return AuthSession(
            session_id=row.id,
            user=SessionUser(
                id=user.id,
                email=user.email,
                name=user.name,
                avatar_url=user.avatar_url,
                is_superadmin=user.is_superadmin,
            ),
        )

    async def destroy_session(self, request: Request) -> SetCookie:
        """Delete the request's session (if any); returns a clearing cookie."""
        session_id = self._session_id(request)
        if session_id is not None:
            await accounts.delete_session(self._db, session_id)
        return self._cookie("", 0)

    async def authenticate(self, email: str, password: str) -> AuthResult:
        """Check credentials and record the login on success.

        Unknown emails, users without a password and wrong passwords all
        yield ``INVALID_CREDENTIALS``. A deactivated account is only
        reported once the password has been proven correct.
        """
        user = await accounts.get_user_by_email(self._db, email)
        credential = await accounts.get_credential(self._db, user.id) if user else None
        if user is None or credential is None:
            await burn_verification(password, self._hasher)
            logger.info("Sign-in failed: unknown account")
            return AuthResult(error=INVALID_CREDENTIALS)
        if not await verify_password_async(password, credential.password_hash, self._hasher):
            logger.info("Sign-in failed: bad password for user %s", user.id)
            return AuthResult(error=INVALID_CREDENTIALS)
        if not user.is_active:
            logger.info("Sign-in refused: user %s is deactivated", user.id)
            return AuthResult(error=ACCOUNT_DEACTIVATED)
        await accounts.touch_last_login(self._db, user.id)
        logger.info("User %s signed in", user.id)
        return AuthResult(user=user)


def sign_in_url(return_url: str | None = None) -> str:
    if not return_url or return_url == "/":
        return SIGN_IN_PATH
    return f"{SIGN_IN_PATH}?returnUrl={quote(return_url, safe='/')}"


def safe_return_url(value: str | None) -> str:
    """Only same-site paths are valid redirect targets after sign-in."""
    if not value or not value.startswith("/") or value.startswith("//"):
        return "/"
    return value


def require_auth(session: AuthSession, return_url: str | None = None) -> AuthSession:
    """Return *session* if signed in, otherwise halt with a redirect to sign-in."""
    if not session.is_authenticated:
        raise Halt(Redirect(sign_in_url(return_url)))
    return session
