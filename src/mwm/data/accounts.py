"""Users, credentials and persisted sessions."""

from datetime import UTC, datetime, timedelta

from mwm.data.database import Database
from mwm.data.models import Credential, SessionRow, User, UserRole, new_id, utcnow


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_user(db: Database, user_id: str) -> User | None:
    return await db.fetch_one(User, "SELECT * FROM users WHERE id = ?", user_id)


async def list_users(db: Database) -> list[User]:
    return await db.fetch(User, "SELECT * FROM users ORDER BY email")


async def get_user_by_email(db: Database, email: str) -> User | None:
    return await db.fetch_one(User, "SELECT * FROM users WHERE email = ?", normalize_email(email))


async def get_credential(db: Database, user_id: str) -> Credential | None:
    return await db.fetch_one(Credential, "SELECT * FROM credentials WHERE user_id = ?", user_id)


async def create_user(
    db: Database,
    email: str,
    name: str | None = None,
    *,
    password_hash: str | None = None,
    is_superadmin: bool = False,
    is_active: bool = True,
) -> User:
    """Insert a user (and credential when *password_hash* is given) atomically."""
    now = utcnow()
    user = User(
        id=new_id(),
        email=normalize_email(email),
        name=name,
        avatar_url=None,
        is_superadmin=is_superadmin,
        is_active=is_active,
        last_login_at=None,
        created_at=now,
        updated_at=now,
    )
    async with db.transaction():
        await db.execute(
            "INSERT INTO users (id, email, name, is_superadmin, is_active, created_at, updated_at)"
            " VALUES (?, ?, ?, ?, ?, ?, ?)",
            user.id, user.email, name, int(is_superadmin), int(is_active), now, now,
        )
        if password_hash is not None:
            await set_password_hash(db, user.id, password_hash)
    return user


async def upsert_user(db: Database, email: str, name: str, *, is_superadmin: bool) -> User:
    now = utcnow()
    await db.execute(
        "INSERT INTO users (id, email, name, is_superadmin, is_active, email_verified_at,"
        " created_at, updated_at) VALUES (?, ?, ?, ?, 1, ?, ?, ?)"
        " ON CONFLICT(email) DO UPDATE SET name = excluded.name,"
        " is_superadmin = excluded.is_superadmin, updated_at = excluded.updated_at",
        new_id(), normalize_email(email), name, int(is_superadmin), now, now, now,
    )
    user = await get_user_by_email(db, email)
    assert user is not None
    return user


async def set_password_hash(db: Database, user_id: str, password_hash: str) -> None:
    now = utcnow()
    await db.execute(
        "INSERT INTO credentials (id, user_id, password_hash, created_at, updated_at)"
        " VALUES (?, ?, ?, ?, ?)"
        " ON CONFLICT(user_id) DO UPDATE SET password_hash = excluded.password_hash,"
        " updated_at = excluded.updated_at",
        new_id(), user_id, password_hash, now, now,
    )


async def set_active(db: Database, user_id: str, active: bool) -> None:
    await db.execute(
        "UPDATE users SET is_active = ?, updated_at = ? WHERE id = ?",
        int(active), utcnow(), user_id,
    )


async def touch_last_login(db: Database, user_id: str) -> None:
    now = utcnow()
    await db.execute(
        "UPDATE users SET last_login_at = ?, updated_at = ? WHERE id = ?", now, now, user_id
    )


async def assign_role(db: Database, user_id: str, role_id: str) -> UserRole:
    await db.execute(
        "INSERT OR IGNORE INTO user_roles (user_id, role_id, created_at) VALUES (?, ?, ?)",
        user_id, role_id, utcnow(),
    )
    return UserRole(user_id=user_id, role_id=role_id)


# -- Sessions --


async def insert_session(db: Database, user_id: str, max_age: int) -> SessionRow:
    created = datetime.now(UTC)
    row = SessionRow(
        id=new_id(),
        user_id=user_id,
        expires_at=(created + timedelta(seconds=max_age)).isoformat(),
        created_at=created.isoformat(),
    )
    await db.execute(
        "INSERT INTO sessions (id, user_id, expires_at, created_at) VALUES (?, ?, ?, ?)",
        row.id, row.user_id, row.expires_at, row.created_at,
    )
    return row


async def get_live_session(db: Database, session_id: str) -> SessionRow | None:
    """The session row if it has not expired."""
    return await db.fetch_one(
        SessionRow,
        "SELECT * FROM sessions WHERE id = ? AND expires_at > ?",
        session_id,
        utcnow(),
    )


async def delete_session(db: Database, session_id: str) -> None:
    await db.execute("DELETE FROM sessions WHERE id = ?", session_id)
