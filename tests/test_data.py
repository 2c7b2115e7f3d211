"""Tests for mwm.data: migrations, seeding and the role/permission repositories."""

from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from mwm.config import AppConfig
from mwm.data import accounts, organizations, permissions, roles
from mwm.data.database import Database
from mwm.data.errors import DataError, IntegrityError, MigrationError
from mwm.data.migrate import migrate
from mwm.data.seed import ADMIN_EMAIL, seed

MIGRATIONS = AppConfig().migrations_dir


@pytest.fixture
async def db(tmp_path: Path) -> AsyncIterator[Database]:
    async with Database(f"sqlite:///{tmp_path / 'data.db'}") as database:
        await migrate(database, MIGRATIONS)
        yield database


class TestDatabase:
    def test_unsupported_url(self) -> None:
        with pytest.raises(DataError, match="Unsupported database URL"):
            Database("postgres://localhost/mwm")

    async def test_fetch_val(self, db: Database) -> None:
        assert await db.fetch_val("SELECT COUNT(*) FROM roles") == 0

    async def test_transaction_rolls_back(self, db: Database) -> None:
        with pytest.raises(IntegrityError):
            async with db.transaction():
                await roles.create_role(db, "editor", "Editor")
                await roles.create_role(db, "editor", "Editor again")
        assert await roles.get_role_by_name(db, "editor") is None


class TestMigrate:
    async def test_second_run_is_a_no_op(self, db: Database) -> None:
        result = await migrate(db, MIGRATIONS)
        assert result.applied == []
        assert result.summary.startswith("Already up to date")

    async def test_fresh_database(self, tmp_path: Path) -> None:
        async with Database(f"sqlite:///{tmp_path / 'fresh.db'}") as database:
            result = await migrate(database, MIGRATIONS)
        assert result.applied == ["001_initial"]
        assert result.total_available == 1

    async def test_bad_filename(self, tmp_path: Path) -> None:
        (tmp_path / "first.sql").write_text("SELECT 1;")
        async with Database("sqlite:///:memory:") as database:
            with pytest.raises(MigrationError, match="Invalid migration filename"):
                await migrate(database, tmp_path)

    async def test_failing_migration(self, tmp_path: Path) -> None:
        (tmp_path / "001_broken.sql").write_text("CREATE TABLE (;")
        async with Database("sqlite:///:memory:") as database:
            with pytest.raises(MigrationError, match="001_broken failed"):
                await migrate(database, tmp_path)


class TestSeed:
    async def test_seed_contents(self, db: Database) -> None:
        result = await seed(db, admin_password="admin123")

        assert result.admin_email == ADMIN_EMAIL == "admin@example.com"
        assert result.roles == 3
        assert result.permissions == 20

        admin = await accounts.get_user_by_email(db, ADMIN_EMAIL)
        assert admin.is_superadmin
        assert admin.name == "Admin"

        org = await organizations.get_organization_by_slug(db, "acme")
        assert org.name == "Acme Inc"
        assert org.owner_id == admin.id

        admin_role = await roles.get_role_by_name(db, "admin")
        assert admin_role.is_system
        assert admin_role.display_name == "Administrator"
        assert len(await roles.role_permission_ids(db, admin_role.id)) == 20

        create_users = await permissions.get_permission_by_name(db, "users:create")
        assert create_users.display_name == "Create users"
        assert create_users.description == "Allows create operations on users"

    async def test_seed_is_idempotent(self, db: Database) -> None:
        await seed(db, admin_password="admin123")
        await seed(db, admin_password="admin123")
        assert await db.fetch_val("SELECT COUNT(*) FROM users") == 1
        assert await db.fetch_val("SELECT COUNT(*) FROM roles") == 3
        assert await db.fetch_val("SELECT COUNT(*) FROM permissions") == 20
        assert await db.fetch_val("SELECT COUNT(*) FROM role_permissions") == 20
        assert await db.fetch_val("SELECT COUNT(*) FROM organization_members") == 1


class TestRoles:
    async def test_list_counts(self, db: Database) -> None:
        await seed(db, admin_password="admin123")
        summary = {role.name: role for role in await roles.list_roles(db)}
        assert summary["admin"].permission_count == 20
        assert summary["admin"].user_count == 1
        assert summary["viewer"].permission_count == 0
        assert [r.name for r in await roles.list_roles(db)] == ["admin", "user", "viewer"]

    async def test_duplicate_name(self, db: Database) -> None:
        await roles.create_role(db, "editor", "Editor")
        with pytest.raises(IntegrityError):
            await roles.create_role(db, "editor", "Other")

    async def test_update_replaces_permissions(self, db: Database) -> None:
        read = await permissions.create_permission(db, "posts", "read", "Read posts")
        write = await permissions.create_permission(db, "posts", "write", "Write posts")
        role = await roles.create_role(db, "editor", "Editor")
        await roles.grant_permission(db, role.id, read.id)

        await roles.update_role(
            db,
            role,
            name="writer",
            display_name="Writer",
            description="Writes things",
            permission_ids=[write.id, write.id, "unknown-id"],
        )

        updated = await roles.get_role(db, role.id)
        assert updated.name == "writer"
        assert updated.description == "Writes things"
        assert await roles.role_permission_ids(db, role.id) == {write.id}

    async def test_system_role_keeps_name(self, db: Database) -> None:
        role = await roles.create_role(db, "admin", "Administrator", is_system=True)
        await roles.update_role(
            db, role, name="renamed", display_name="Admins", description="", permission_ids=[]
        )
        updated = await roles.get_role(db, role.id)
        assert updated.name == "admin"
        assert updated.display_name == "Admins"
        assert updated.description is None

    async def test_system_role_cannot_be_deleted(self, db: Database) -> None:
        system = await roles.create_role(db, "admin", "Administrator", is_system=True)
        custom = await roles.create_role(db, "editor", "Editor")
        assert not await roles.delete_role(db, system.id)
        assert await roles.delete_role(db, custom.id)
        assert await roles.get_role(db, system.id) is not None
        assert await roles.get_role(db, custom.id) is None


class TestPermissions:
    async def test_name_is_resource_action(self, db: Database) -> None:
        permission = await permissions.create_permission(db, "posts", "publish", "Publish posts")
        assert permission.name == "posts:publish"
        await permissions.update_permission(
            db, permission.id, resource="articles", action="publish",
            display_name="Publish articles", description=None,
        )
        assert (await permissions.get_permission(db, permission.id)).name == "articles:publish"

    async def test_grouped_by_resource(self, db: Database) -> None:
        await permissions.create_permission(db, "users", "read", "Read users")
        await permissions.create_permission(db, "posts", "write", "Write posts")
        await permissions.create_permission(db, "posts", "read", "Read posts")

        grouped = permissions.group_by_resource(await permissions.list_permissions(db))

        assert list(grouped) == ["posts", "users"]
        assert [p.action for p in grouped["posts"]] == ["read", "write"]

    async def test_delete_removes_assignments(self, db: Database) -> None:
        permission = await permissions.create_permission(db, "posts", "read", "Read posts")
        role = await roles.create_role(db, "reader", "Reader")
        await roles.grant_permission(db, role.id, permission.id)

        assert [r.name for r in await permissions.roles_using(db, permission.id)] == ["reader"]
        assert await permissions.delete_permission(db, permission.id)
        assert await roles.role_permission_ids(db, role.id) == set()
