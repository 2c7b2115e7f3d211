"""Roles listing and the create-role form (POST-redirect-GET)."""

import logging

from mwm import Redirect, Template
from mwm.data import roles
from mwm.data.errors import IntegrityError
from mwm.forms import RoleForm, role_values
from mwm.validation import parse

logger = logging.getLogger("mwm.routes")

ROLES_PATH = "/admin/roles"


async def _page(db, *, values=None, errors=None, error=""):
    return Template(
        "admin/roles/index.html",
        roles=await roles.list_roles(db),
        values=values or role_values({}),
        errors=errors or {},
        error=error,
    )


def _conflict(name):
    return {"name": ["A role with this name already exists"]}, f'Role "{name}" already exists'


async def handler(db):
    return await _page(db)


async def post(request, db):
    form = await request.form()
    result = parse(RoleForm, form)
    if not result:
        return await _page(db, values=role_values(form), errors=result.field_errors)

    data = result.data
    if await roles.get_role_by_name(db, data.name) is not None:
        errors, error = _conflict(data.name)
        return await _page(db, values=role_values(form), errors=errors, error=error)
    try:
        role = await roles.create_role(db, data.name, data.display_name, data.description)
    except IntegrityError:
        errors, error = _conflict(data.name)
        return await _page(db, values=role_values(form), errors=errors, error=error)

    logger.info("Created role %s", role.name)
    return Redirect(ROLES_PATH)
