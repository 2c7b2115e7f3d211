"""Permissions grouped by resource, plus the create-permission form."""

import logging

from mwm import Redirect, Template
from mwm.data import permissions
from mwm.data.errors import IntegrityError
from mwm.forms import PermissionForm, permission_values
from mwm.validation import parse

logger = logging.getLogger("mwm.routes")

PERMISSIONS_PATH = "/admin/permissions"


async def _page(db, *, values=None, errors=None, error=""):
    listed = await permissions.list_permissions(db)
    return Template(
        "admin/permissions/index.html",
        grouped=permissions.group_by_resource(listed),
        total=len(listed),
        values=values or permission_values({}),
        errors=errors or {},
        error=error,
    )


async def handler(db):
    return await _page(db)


async def post(request, db):
    form = await request.form()
    result = parse(PermissionForm, form)
    if not result:
        return await _page(db, values=permission_values(form), errors=result.field_errors)

    data = result.data
    name = permissions.permission_name(data.resource, data.action)
    conflict = f'Permission "{name}" already exists'
    if await permissions.get_permission_by_name(db, name) is not None:
        return await _page(db, values=permission_values(form), error=conflict)
    try:
        await permissions.create_permission(
            db, data.resource, data.action, data.display_name, data.description
        )
    except IntegrityError:
        return await _page(db, values=permission_values(form), error=conflict)

    logger.info("Created permission %s", name)
    return Redirect(PERMISSIONS_PATH)
