"""Idempotent development data: an admin account, default roles and permissions.

Run with ``mwm seed``; running it again refreshes the same rows instead
of duplicating them.
"""

import logging
from dataclasses import dataclass

from mwm.data import accounts, organizations, permissions, roles
from mwm.data.database import Database
from mwm.security.passwords import hash_password_async

logger = logging.getLogger("mwm.data")

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin123"  # Change this in production!

SYSTEM_ROLES = (
    ("admin", "Administrator", "Full system access"),
    ("user", "User", "Standard user access"),
    ("viewer", "Viewer", "Read-only access"),
)
RESOURCES = ("users", "roles", "organizations", "settings")
ACTIONS = ("create", "read", "update", "delete", "manage")


@dataclass(frozen=True, slots=True)
class SeedResult:
    admin_email: str
    roles: int
    permissions: int


async def seed(db: Database, *, admin_password: str = ADMIN_PASSWORD) -> SeedResult:
    admin = await accounts.upsert_user(db, ADMIN_EMAIL, "Admin", is_superadmin=True)
    await accounts.set_password_hash(db, admin.id, await hash_password_async(admin_password))
    logger.info("Admin user created/updated: %s", admin.email)

    org = await organizations.upsert_organization(
        db, "Acme Inc", "acme", admin.id, "Default organization for the platform"
    )
    member = await organizations.add_member(db, org.id, admin.id)
    logger.info("Default organization created/updated: %s", org.name)

    role_ids: dict[str, str] = {}
    for name, display_name, description in SYSTEM_ROLES:
        role = await roles.upsert_role(db, name, display_name, description, is_system=True)
        role_ids[name] = role.id
    await accounts.assign_role(db, admin.id, role_ids["admin"])
    await organizations.assign_member_role(db, member.id, role_ids["admin"])

    count = 0
    for resource in RESOURCES:
        for action in ACTIONS:
            permission = await permissions.upsert_permission(
                db,
                resource,
                action,
                f"{action.capitalize()} {resource}",
                f"Allows {action} operations on {resource}",
            )
            await roles.grant_permission(db, role_ids["admin"], permission.id)
            count += 1
    logger.info("Seeded %d roles and %d permissions", len(role_ids), count)
    return SeedResult(admin_email=admin.email, roles=len(role_ids), permissions=count)
