"""Who is making the request: guest or signed-in user."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SessionUser:
    """The profile fields a page needs about the signed-in user."""

    id: str
    email: str
    name: str | None = None
    avatar_url: str | None = None
    is_superadmin: bool = False

    @property
    def display_name(self) -> str:
        return self.name or self.email


@dataclass(frozen=True, slots=True)
class AuthSession:
    """The resolved session for one request.

    A guest session has no ``session_id`` and no ``user``.
    """

    session_id: str | None = None
    user: SessionUser | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def user_id(self) -> str | None:
        return self.user.id if self.user is not None else None

    @classmethod
    def guest(cls) -> "AuthSession":
        return cls()
