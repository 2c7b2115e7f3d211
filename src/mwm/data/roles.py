"""Role queries and writes.

System roles keep their name and cannot be deleted; both rules are
enforced here, below the admin pages, so no caller can bypass them.
"""

from collections.abc import Sequence

from mwm.data.database import Database
from mwm.data.models import Permission, Role, RoleSummary, new_id, utcnow

_SUMMARY_SQL = """
SELECT r.*,
       (SELECT COUNT(*) FROM role_permissions rp WHERE rp.role_id = r.id) AS permission_count,
       (SELECT COUNT(*) FROM user_roles ur WHERE ur.role_id = r.id) AS user_count,
       (SELECT COUNT(*) FROM member_roles mr WHERE mr.role_id = r.id) AS org_count
FROM roles r
ORDER BY r.name
"""


async def list_roles(db: Database) -> list[RoleSummary]:
    return await db.fetch(RoleSummary, _SUMMARY_SQL)


async def get_role(db: Database, role_id: str) -> Role | None:
    return await db.fetch_one(Role, "SELECT * FROM roles WHERE id = ?", role_id)


async def get_role_by_name(db: Database, name: str) -> Role | None:
    return await db.fetch_one(Role, "SELECT * FROM roles WHERE name = ?", name)


async def role_permission_ids(db: Database, role_id: str) -> set[str]:
    rows = await db.fetch_dicts(
        "SELECT permission_id FROM role_permissions WHERE role_id = ?", role_id
    )
    return {row["permission_id"] for row in rows}


async def role_permissions(db: Database, role_id: str) -> list[Permission]:
    return await db.fetch(
        Permission,
        "SELECT p.* FROM permissions p"
        " JOIN role_permissions rp ON rp.permission_id = p.id"
        " WHERE rp.role_id = ? ORDER BY p.resource, p.action",
        role_id,
    )


async def create_role(
    db: Database,
    name: str,
    display_name: str,
    description: str | None = None,
    *,
    is_system: bool = False,
) -> Role:
    """Insert a role; raises ``IntegrityError`` if the name is taken."""
    role = Role(
        id=new_id(),
        name=name,
        display_name=display_name,
        description=description or None,
        is_system=is_system,
    )
    now = utcnow()
    await db.execute(
        "INSERT INTO roles (id, name, display_name, description, is_system, created_at, updated_at)"
        " VALUES (?, ?, ?, ?, ?, ?, ?)",
        role.id, role.name, role.display_name, role.description, int(is_system), now, now,
    )
    return role


async def update_role(
    db: Database,
    role: Role,
    *,
    name: str,
    display_name: str,
    description: str | None,
    permission_ids: Sequence[str],
) -> None:
    """Update a role's details and replace its permission set atomically.

    A system role's name is left unchanged whatever *name* says. Unknown
    permission ids are ignored.
    """
    now = utcnow()
    async with db.transaction():
        await db.execute(
            "UPDATE roles SET name = ?, display_name = ?, description = ?, updated_at = ?"
            " WHERE id = ?",
            role.name if role.is_system else name,
            display_name,
            description or None,
            now,
            role.id,
        )
        await db.execute("DELETE FROM role_permissions WHERE role_id = ?", role.id)
        if permission_ids:
            await db.execute_many(
                "INSERT OR IGNORE INTO role_permissions (role_id, permission_id, created_at)"
                " SELECT ?, id, ? FROM permissions WHERE id = ?",
                [(role.id, now, pid) for pid in dict.fromkeys(permission_ids)],
            )


async def delete_role(db: Database, role_id: str) -> bool:
    """Delete a custom role. Returns False for system or missing roles."""
    deleted = await db.execute("DELETE FROM roles WHERE id = ? AND is_system = 0", role_id)
    return deleted > 0


async def upsert_role(
    db: Database, name: str, display_name: str, description: str | None, *, is_system: bool
) -> Role:
    """Create *name* or refresh its details (seeding)."""
    now = utcnow()
    await db.execute(
        "INSERT INTO roles (id, name, display_name, description, is_system, created_at, updated_at)"
        " VALUES (?, ?, ?, ?, ?, ?, ?)"
        " ON CONFLICT(name) DO UPDATE SET display_name = excluded.display_name,"
        " description = excluded.description, is_system = excluded.is_system,"
        " updated_at = excluded.updated_at",
        new_id(), name, display_name, description, int(is_system), now, now,
    )
    role = await get_role_by_name(db, name)
    assert role is not None
    return role


async def grant_permission(db: Database, role_id: str, permission_id: str) -> None:
    await db.execute(
        "INSERT OR IGNORE INTO role_permissions (role_id, permission_id, created_at)"
        " VALUES (?, ?, ?)",
        role_id, permission_id, utcnow(),
    )
