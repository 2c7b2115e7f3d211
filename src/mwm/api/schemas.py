"""Input and output schemas for the REST API.

The same dataclasses validate requests and describe the OpenAPI
document, so the two cannot drift apart.
"""

from dataclasses import dataclass
from typing import Literal

from mwm.validation import between, email, required_as, rule_field


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, kw_only=True)
class IdParams:
    id: str


@dataclass(frozen=True, slots=True, kw_only=True)
class Deleted:
    deleted: Literal[True] = True
    id: str


# ---------------------------------------------------------------------------
# Health / echo
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, kw_only=True)
class HealthStatus:
    status: Literal["ok"] = "ok"
    timestamp: str


@dataclass(frozen=True, slots=True, kw_only=True)
class EchoInput:
    message: str


@dataclass(frozen=True, slots=True, kw_only=True)
class EchoOutput:
    message: str
    request_id: str = rule_field(alias="requestId")
    timestamp: str


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, kw_only=True)
class User:
    id: str
    name: str
    email: str = rule_field(email())


@dataclass(frozen=True, slots=True, kw_only=True)
class CreateUserInput:
    name: str = rule_field(required_as("Name is required"))
    email: str = rule_field(email("Invalid email address"))


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True, kw_only=True)
class Post:
    id: str
    title: str
    content: str


@dataclass(frozen=True, slots=True, kw_only=True)
class Author:
    id: str
    name: str


@dataclass(frozen=True, slots=True, kw_only=True)
class PostWithAuthor:
    id: str
    title: str
    content: str
    author: Author


@dataclass(frozen=True, slots=True, kw_only=True)
class UpdatedPost:
    id: str
    title: str
    content: str
    updated: Literal[True] = True


@dataclass(frozen=True, slots=True, kw_only=True)
class ListPostsQuery:
    limit: int = rule_field(
        between(1, 100, "Limit must be between 1 and 100"),
        default=10,
        description="Number of posts to return",
    )


@dataclass(frozen=True, slots=True, kw_only=True)
class CreatePostInput:
    title: str = rule_field(required_as("Title is required"))
    content: str = rule_field(required_as("Content is required"))


@dataclass(frozen=True, slots=True, kw_only=True)
class UpdatePostInput:
    title: str | None = None
    content: str | None = None
