"""Organizations and their members."""

from mwm.data.database import Database
from mwm.data.models import Organization, OrganizationMember, new_id, utcnow


async def get_organization_by_slug(db: Database, slug: str) -> Organization | None:
    return await db.fetch_one(Organization, "SELECT * FROM organizations WHERE slug = ?", slug)


async def upsert_organization(
    db: Database, name: str, slug: str, owner_id: str, description: str | None = None
) -> Organization:
    now = utcnow()
    await db.execute(
        "INSERT INTO organizations (id, name, slug, description, owner_id, created_at, updated_at)"
        " VALUES (?, ?, ?, ?, ?, ?, ?)"
        " ON CONFLICT(slug) DO UPDATE SET name = excluded.name,"
        " owner_id = excluded.owner_id, updated_at = excluded.updated_at",
        new_id(), name, slug, description, owner_id, now, now,
    )
    org = await get_organization_by_slug(db, slug)
    assert org is not None
    return org


async def add_member(db: Database, org_id: str, user_id: str) -> OrganizationMember:
    """Make *user_id* a member of *org_id*; adding twice is a no-op."""
    await db.execute(
        "INSERT OR IGNORE INTO organization_members (id, org_id, user_id, created_at)"
        " VALUES (?, ?, ?, ?)",
        new_id(), org_id, user_id, utcnow(),
    )
    member = await db.fetch_one(
        OrganizationMember,
        "SELECT * FROM organization_members WHERE org_id = ? AND user_id = ?",
        org_id,
        user_id,
    )
    assert member is not None
    return member


async def assign_member_role(db: Database, member_id: str, role_id: str) -> None:
    await db.execute(
        "INSERT OR IGNORE INTO member_roles (member_id, role_id, created_at) VALUES (?, ?, ?)",
        member_id, role_id, utcnow(),
    )
