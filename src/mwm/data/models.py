"""Rows of the mwm schema as frozen dataclasses."""

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> str:
    """Current time as the ISO-8601 text stored in every timestamp column."""
    return datetime.now(UTC).isoformat()


@dataclass(frozen=True, slots=True)
class User:
    id: str
    email: str
    name: str | None
    avatar_url: str | None
    is_superadmin: bool
    is_active: bool
    last_login_at: str | None
    created_at: str
    updated_at: str


@dataclass(frozen=True, slots=True)
class Credential:
    id: str
    user_id: str
    password_hash: str


@dataclass(frozen=True, slots=True)
class SessionRow:
    id: str
    user_id: str
    expires_at: str
    created_at: str


@dataclass(frozen=True, slots=True)
class Organization:
    id: str
    name: str
    slug: str
    description: str | None
    owner_id: str


@dataclass(frozen=True, slots=True)
class OrganizationMember:
    id: str
    org_id: str
    user_id: str


@dataclass(frozen=True, slots=True)
class Role:
    id: str
    name: str
    display_name: str
    description: str | None
    is_system: bool


@dataclass(frozen=True, slots=True)
class RoleSummary:
    """A role with the counts shown on the roles listing."""

    id: str
    name: str
    display_name: str
    description: str | None
    is_system: bool
    permission_count: int
    user_count: int
    org_count: int


@dataclass(frozen=True, slots=True)
class Permission:
    id: str
    name: str
    resource: str
    action: str
    display_name: str
    description: str | None


@dataclass(frozen=True, slots=True)
class PermissionSummary:
    id: str
    name: str
    resource: str
    action: str
    display_name: str
    description: str | None
    role_count: int


@dataclass(frozen=True, slots=True)
class RolePermission:
    role_id: str
    permission_id: str


@dataclass(frozen=True, slots=True)
class UserRole:
    user_id: str
    role_id: str
