"""Form schemas for the identity and admin pages.

Route files are loaded by path and cannot import each other, so the
schemas they share live here.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field

from mwm.validation import (
    SLUG_PATTERN,
    email,
    matches,
    max_length,
    min_length,
    required_as,
    rule_field,
)


def _slug_message(label: str) -> str:
    return (
        f"{label} must start with a letter and contain only lowercase letters,"
        " numbers, hyphens, and underscores"
    )


@dataclass(frozen=True, slots=True)
class SignInForm:
    email: str = rule_field(email("Please enter a valid email address"))
    password: str = rule_field(
        required_as("Password is required"),
        min_length(6, "Password must be at least 6 characters"),
    )
    return_url: str = rule_field(alias="returnUrl", default="/")


@dataclass(frozen=True, slots=True)
class RoleForm:
    name: str = rule_field(
        required_as("Name is required"),
        max_length(50, "Name must be 50 characters or less"),
        matches(SLUG_PATTERN, _slug_message("Name")),
    )
    display_name: str = rule_field(
        required_as("Display name is required"),
        max_length(100, "Display name must be 100 characters or less"),
        alias="displayName",
    )
    description: str = rule_field(
        max_length(500, "Description must be 500 characters or less"),
        default="",
    )
    permissions: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class PermissionForm:
    resource: str = rule_field(
        required_as("Resource is required"),
        max_length(50, "Resource must be 50 characters or less"),
        matches(SLUG_PATTERN, _slug_message("Resource")),
    )
    action: str = rule_field(
        required_as("Action is required"),
        max_length(50, "Action must be 50 characters or less"),
        matches(SLUG_PATTERN, _slug_message("Action")),
    )
    display_name: str = rule_field(
        required_as("Display name is required"),
        max_length(100, "Display name must be 100 characters or less"),
        alias="displayName",
    )
    description: str = rule_field(
        max_length(500, "Description must be 500 characters or less"),
        default="",
    )


def role_values(data: Mapping[str, str]) -> dict[str, str]:
    """Raw role fields for re-populating a form after a failed submit."""
    return {key: data.get(key) or "" for key in ("name", "displayName", "description")}


def permission_values(data: Mapping[str, str]) -> dict[str, str]:
    keys = ("resource", "action", "displayName", "description")
    return {key: data.get(key) or "" for key in keys}
