"""Sample user endpoints.

Records are synthesized in memory; nothing here touches the database.
"""

import uuid

from mwm.api.router import ApiContext, ApiInput, ApiRouter
from mwm.api.schemas import CreateUserInput, Deleted, IdParams, User

SAMPLE_USERS = (
    User(id="1", name="Alice", email="alice@example.com"),
    User(id="2", name="Bob", email="bob@example.com"),
    User(id="3", name="Charlie", email="charlie@example.com"),
)


def list_users(input: ApiInput[None, None, None], ctx: ApiContext) -> list[User]:
    """List users."""
    return list(SAMPLE_USERS)


def get_user(input: ApiInput[IdParams, None, None], ctx: ApiContext) -> User:
    """Get a user by id."""
    user_id = input.params.id
    return User(id=user_id, name=f"User {user_id}", email=f"user{user_id}@example.com")


def create_user(input: ApiInput[None, None, CreateUserInput], ctx: ApiContext) -> User:
    """Create a user."""
    return User(id=str(uuid.uuid4()), name=input.body.name, email=input.body.email)


def delete_user(input: ApiInput[IdParams, None, None], ctx: ApiContext) -> Deleted:
    """Delete a user."""
    return Deleted(id=input.params.id)


def register(api: ApiRouter) -> None:
    tags = ("users",)
    api.endpoint("GET", "/users", tags=tags, response=list[User])(list_users)
    api.endpoint("GET", "/users/{id}", tags=tags, params=IdParams, response=User)(get_user)
    api.endpoint("POST", "/users", tags=tags, body=CreateUserInput, response=User)(create_user)
    api.endpoint("DELETE", "/users/{id}", tags=tags, params=IdParams, response=Deleted)(
        delete_user
    )
