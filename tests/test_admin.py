"""Admin CRUD for roles and permissions, behind the sign-in guard."""

from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from mwm import App, AppConfig
from mwm.data import permissions, roles
from mwm.data.seed import ADMIN_EMAIL, seed
from mwm.testing import TestClient
from mwm.testing.assertions import assert_is_full_page, assert_redirect

PASSWORD = "admin123"


@pytest.fixture
def app(tmp_path: Path) -> App:
    return App(
        AppConfig(
            database_url=f"sqlite:///{tmp_path / 'admin.db'}",
            argon2_memory_cost=1024,
            argon2_time_cost=1,
        )
    )


@pytest.fixture
async def client(app: App) -> AsyncIterator[TestClient]:
    """A client signed in as the seeded admin."""
    async with TestClient(app) as client:
        await seed(app.db, admin_password=PASSWORD)
        response = await client.post(
            "/identity/sign-in", form={"email": ADMIN_EMAIL, "password": PASSWORD}
        )
        assert response.status == 303
        yield client


class TestGuard:
    async def test_guest_redirected_to_sign_in(self, app: App) -> None:
        async with TestClient(app) as client:
            response = await client.get("/admin/roles")
        assert_redirect(response, "/identity/sign-in?returnUrl=/admin/roles")

    async def test_guest_redirected_in_partial_mode(self, app: App) -> None:
        async with TestClient(app) as client:
            response = await client.get("/admin/roles", headers={"HX-Request": "true"})
        assert_redirect(response, "/identity/sign-in?returnUrl=/admin/roles")

    async def test_guest_post_has_no_effect(self, app: App) -> None:
        async with TestClient(app) as client:
            await seed(app.db, admin_password=PASSWORD)
            response = await client.post(
                "/admin/roles", form={"name": "intruder", "displayName": "Intruder"}
            )
            assert response.status == 302
            assert await roles.get_role_by_name(app.db, "intruder") is None

    async def test_chrome_shows_signed_in_user(self, client: TestClient) -> None:
        response = await client.get("/admin/roles")
        assert_is_full_page(response)
        assert "Admin" in response.text
        assert 'action="/identity/sign-out"' in response.text


class TestRoles:
    async def test_list_shows_system_roles(self, client: TestClient) -> None:
        response = await client.get("/admin/roles")
        assert response.status == 200
        for name in ("admin", "user", "viewer"):
            assert f"<code>{name}</code>" in response.text
        assert 'class="badge">System' in response.text
        assert "1 users, 1 orgs" in response.text

    async def test_create_role(self, app: App, client: TestClient) -> None:
        response = await client.post(
            "/admin/roles",
            form={"name": "editor", "displayName": "Editor", "description": "Edits things"},
        )
        assert_redirect(response, "/admin/roles")
        role = await roles.get_role_by_name(app.db, "editor")
        assert role is not None
        assert role.is_system is False
        assert role.description == "Edits things"

    async def test_create_validation_errors(self, client: TestClient) -> None:
        response = await client.post("/admin/roles", form={"name": "Bad Name", "displayName": ""})
        assert response.status == 200
        assert "Name must start with a letter" in response.text
        assert "Display name is required" in response.text
        assert 'value="Bad Name"' in response.text

    async def test_create_conflict(self, client: TestClient) -> None:
        response = await client.post("/admin/roles", form={"name": "admin", "displayName": "Again"})
        assert response.status == 200
        assert "A role with this name already exists" in response.text
        assert "already exists" in response.text
        assert 'value="Again"' in response.text

    async def test_edit_page(self, app: App, client: TestClient) -> None:
        admin = await roles.get_role_by_name(app.db, "admin")
        response = await client.get(f"/admin/roles/{admin.id}")
        assert response.status == 200
        assert "Edit Role: Administrator" in response.text
        assert "disabled" in response.text
        assert response.text.count("checked") == 20

    async def test_missing_role_redirects(self, client: TestClient) -> None:
        assert_redirect(await client.get("/admin/roles/nope"), "/admin/roles")
        assert_redirect(
            await client.post("/admin/roles/nope", form={"name": "x", "displayName": "X"}),
            "/admin/roles",
        )

    async def test_update_role_permissions(self, app: App, client: TestClient) -> None:
        role = await roles.create_role(app.db, "editor", "Editor")
        granted = [p.id for p in (await permissions.all_permissions(app.db))[:2]]
        response = await client.post(
            f"/admin/roles/{role.id}",
            form={
                "name": "content-editor",
                "displayName": "Content Editor",
                "description": "",
                "permissions": granted,
            },
        )
        assert_redirect(response, "/admin/roles")
        updated = await roles.get_role(app.db, role.id)
        assert updated.name == "content-editor"
        assert await roles.role_permission_ids(app.db, role.id) == set(granted)

    async def test_update_clears_permissions(self, app: App, client: TestClient) -> None:
        admin = await roles.get_role_by_name(app.db, "admin")
        await client.post(
            f"/admin/roles/{admin.id}", form={"displayName": "Administrator"}
        )
        assert await roles.role_permission_ids(app.db, admin.id) == set()

    async def test_system_role_name_is_kept(self, app: App, client: TestClient) -> None:
        viewer = await roles.get_role_by_name(app.db, "viewer")
        response = await client.post(
            f"/admin/roles/{viewer.id}",
            form={"name": "renamed", "displayName": "Read Only"},
        )
        assert_redirect(response, "/admin/roles")
        updated = await roles.get_role(app.db, viewer.id)
        assert updated.name == "viewer"
        assert updated.display_name == "Read Only"

    async def test_rename_conflict(self, app: App, client: TestClient) -> None:
        role = await roles.create_role(app.db, "editor", "Editor")
        response = await client.post(
            f"/admin/roles/{role.id}", form={"name": "user", "displayName": "Editor"}
        )
        assert response.status == 200
        assert "A role with this name already exists" in response.text
        assert (await roles.get_role(app.db, role.id)).name == "editor"

    async def test_edit_validation_keeps_submitted_permissions(
        self, app: App, client: TestClient
    ) -> None:
        role = await roles.create_role(app.db, "editor", "Editor")
        first = (await permissions.all_permissions(app.db))[0]
        response = await client.post(
            f"/admin/roles/{role.id}",
            form={"name": "editor", "displayName": "", "permissions": [first.id]},
        )
        assert response.status == 200
        assert "Please fix the errors below" in response.text
        assert response.text.count("checked") == 1

    async def test_delete_custom_role(self, app: App, client: TestClient) -> None:
        role = await roles.create_role(app.db, "temp", "Temp")
        response = await client.post(f"/admin/roles/{role.id}/delete")
        assert_redirect(response, "/admin/roles")
        assert await roles.get_role(app.db, role.id) is None

    async def test_delete_system_role_is_ignored(self, app: App, client: TestClient) -> None:
        admin = await roles.get_role_by_name(app.db, "admin")
        response = await client.post(f"/admin/roles/{admin.id}/delete")
        assert_redirect(response, "/admin/roles")
        assert await roles.get_role(app.db, admin.id) is not None


class TestPermissions:
    async def test_list_grouped_by_resource(self, client: TestClient) -> None:
        response = await client.get("/admin/permissions")
        assert response.status == 200
        assert "20 permissions" in response.text
        for resource in ("organizations", "roles", "settings", "users"):
            assert f'class="capitalize">{resource}</h2>' in response.text
        assert "<code>users:create</code>" in response.text

    async def test_create_permission(self, app: App, client: TestClient) -> None:
        response = await client.post(
            "/admin/permissions",
            form={"resource": "projects", "action": "archive", "displayName": "Archive projects"},
        )
        assert_redirect(response, "/admin/permissions")
        created = await permissions.get_permission_by_name(app.db, "projects:archive")
        assert created is not None
        assert created.display_name == "Archive projects"

    async def test_create_conflict(self, client: TestClient) -> None:
        response = await client.post(
            "/admin/permissions",
            form={"resource": "users", "action": "read", "displayName": "Read"},
        )
        assert response.status == 200
        assert "users:read" in response.text
        assert "already exists" in response.text

    async def test_create_validation(self, client: TestClient) -> None:
        response = await client.post(
            "/admin/permissions", form={"resource": "9lives", "action": "", "displayName": "x"}
        )
        assert "Resource must start with a letter" in response.text
        assert "Action is required" in response.text

    async def test_edit_shows_roles_using_it(self, app: App, client: TestClient) -> None:
        permission = await permissions.get_permission_by_name(app.db, "roles:update")
        response = await client.get(f"/admin/permissions/{permission.id}")
        assert "Edit Permission: Update roles" in response.text
        assert "<code>admin</code>" in response.text

    async def test_update_permission(self, app: App, client: TestClient) -> None:
        permission = await permissions.get_permission_by_name(app.db, "settings:manage")
        response = await client.post(
            f"/admin/permissions/{permission.id}",
            form={"resource": "settings", "action": "configure", "displayName": "Configure"},
        )
        assert_redirect(response, "/admin/permissions")
        updated = await permissions.get_permission(app.db, permission.id)
        assert updated.name == "settings:configure"

    async def test_update_conflict(self, app: App, client: TestClient) -> None:
        permission = await permissions.get_permission_by_name(app.db, "settings:manage")
        response = await client.post(
            f"/admin/permissions/{permission.id}",
            form={"resource": "settings", "action": "read", "displayName": "Read"},
        )
        assert response.status == 200
        assert "settings:read" in response.text
        assert (await permissions.get_permission(app.db, permission.id)).action == "manage"

    async def test_delete_permission(self, app: App, client: TestClient) -> None:
        permission = await permissions.get_permission_by_name(app.db, "users:delete")
        response = await client.post(f"/admin/permissions/{permission.id}/delete")
        assert_redirect(response, "/admin/permissions")
        assert await permissions.get_permission(app.db, permission.id) is None

    async def test_missing_permission_redirects(self, client: TestClient) -> None:
        assert_redirect(await client.get("/admin/permissions/nope"), "/admin/permissions")
