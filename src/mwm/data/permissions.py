"""Permission queries and writes. A permission's name is always ``resource:action``."""

from itertools import groupby

from mwm.data.database import Database
from mwm.data.models import Permission, PermissionSummary, Role, new_id, utcnow


def permission_name(resource: str, action: str) -> str:
    return f"{resource}:{action}"


async def list_permissions(db: Database) -> list[PermissionSummary]:
    return await db.fetch(
        PermissionSummary,
        "SELECT p.*,"
        " (SELECT COUNT(*) FROM role_permissions rp WHERE rp.permission_id = p.id) AS role_count"
        " FROM permissions p ORDER BY p.resource, p.action",
    )


async def all_permissions(db: Database) -> list[Permission]:
    return await db.fetch(Permission, "SELECT * FROM permissions ORDER BY resource, action")


def group_by_resource[P: (Permission, PermissionSummary)](
    permissions: list[P],
) -> dict[str, list[P]]:
    """``{resource: [permission, ...]}`` preserving the resource/action order."""
    return {
        resource: list(items)
        for resource, items in groupby(permissions, key=lambda p: p.resource)
    }


async def get_permission(db: Database, permission_id: str) -> Permission | None:
    return await db.fetch_one(Permission, "SELECT * FROM permissions WHERE id = ?", permission_id)


async def get_permission_by_name(db: Database, name: str) -> Permission | None:
    return await db.fetch_one(Permission, "SELECT * FROM permissions WHERE name = ?", name)


async def roles_using(db: Database, permission_id: str) -> list[Role]:
    return await db.fetch(
        Role,
        "SELECT r.* FROM roles r JOIN role_permissions rp ON rp.role_id = r.id"
        " WHERE rp.permission_id = ? ORDER BY r.name",
        permission_id,
    )


async def create_permission(
    db: Database,
    resource: str,
    action: str,
    display_name: str,
    description: str | None = None,
) -> Permission:
    """Insert a permission; raises ``IntegrityError`` if the name is taken."""
    permission = Permission(
        id=new_id(),
        name=permission_name(resource, action),
        resource=resource,
        action=action,
        display_name=display_name,
        description=description or None,
    )
    now = utcnow()
    await db.execute(
        "INSERT INTO permissions"
        " (id, name, resource, action, display_name, description, created_at, updated_at)"
        " VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
        permission.id, permission.name, resource, action, display_name,
        permission.description, now, now,
    )
    return permission


async def update_permission(
    db: Database,
    permission_id: str,
    *,
    resource: str,
    action: str,
    display_name: str,
    description: str | None,
) -> None:
    await db.execute(
        "UPDATE permissions SET name = ?, resource = ?, action = ?, display_name = ?,"
        " description = ?, updated_at = ? WHERE id = ?",
        permission_name(resource, action), resource, action, display_name,
        description or None, utcnow(), permission_id,
    )


async def delete_permission(db: Database, permission_id: str) -> bool:
    """Delete a permission; role assignments go with it."""
    return await db.execute("DELETE FROM permissions WHERE id = ?", permission_id) > 0


async def upsert_permission(
    db: Database, resource: str, action: str, display_name: str, description: str
) -> Permission:
    now = utcnow()
    name = permission_name(resource, action)
    await db.execute(
        "INSERT INTO permissions"
        " (id, name, resource, action, display_name, description, created_at, updated_at)"
        " VALUES (?, ?, ?, ?, ?, ?, ?, ?)"
        " ON CONFLICT(name) DO UPDATE SET display_name = excluded.display_name,"
        " resource = excluded.resource, action = excluded.action,"
        " updated_at = excluded.updated_at",
        new_id(), name, resource, action, display_name, description, now, now,
    )
    permission = await get_permission_by_name(db, name)
    assert permission is not None
    return permission
