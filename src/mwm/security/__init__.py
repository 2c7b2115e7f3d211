"""Authentication: password hashing and cookie sessions."""

from mwm.security.identity import AuthSession, SessionUser
from mwm.security.passwords import hash_password, verify_password
from mwm.security.sessions import (
    ACCOUNT_DEACTIVATED,
    INVALID_CREDENTIALS,
    AuthResult,
    SessionManager,
    require_auth,
    safe_return_url,
    sign_in_url,
)

__all__ = [
    "ACCOUNT_DEACTIVATED",
    "INVALID_CREDENTIALS",
    "AuthResult",
    "AuthSession",
    "SessionManager",
    "SessionUser",
    "hash_password",
    "require_auth",
    "safe_return_url",
    "sign_in_url",
    "verify_password",
]
