"""Sample post endpoints, synthesized in memory."""

import uuid

from mwm.api.router import ApiContext, ApiInput, ApiRouter
from mwm.api.schemas import (
    Author,
    CreatePostInput,
    Deleted,
    IdParams,
    ListPostsQuery,
    Post,
    PostWithAuthor,
    UpdatedPost,
    UpdatePostInput,
)


def list_posts(input: ApiInput[None, ListPostsQuery, None], ctx: ApiContext) -> list[Post]:
    """List posts."""
    return [
        Post(id=str(n), title=f"Post {n}", content=f"Content for post {n}")
        for n in range(1, input.query.limit + 1)
    ]


def get_post(input: ApiInput[IdParams, None, None], ctx: ApiContext) -> PostWithAuthor:
    """Get a post with its author."""
    post_id = input.params.id
    return PostWithAuthor(
        id=post_id,
        title=f"Post {post_id}",
        content=f"Full content for post {post_id}",
        author=Author(id="1", name="Alice"),
    )


def create_post(input: ApiInput[None, None, CreatePostInput], ctx: ApiContext) -> Post:
    """Create a post."""
    return Post(id=str(uuid.uuid4()), title=input.body.title, content=input.body.content)


def update_post(input: ApiInput[IdParams, None, UpdatePostInput], ctx: ApiContext) -> UpdatedPost:
    """Update a post; omitted fields keep their current value."""
    post_id = input.params.id
    body = input.body
    return UpdatedPost(
        id=post_id,
        title=body.title if body.title is not None else f"Post {post_id}",
        content=body.content if body.content is not None else f"Content for post {post_id}",
    )


def delete_post(input: ApiInput[IdParams, None, None], ctx: ApiContext) -> Deleted:
    """Delete a post."""
    return Deleted(id=input.params.id)


def register(api: ApiRouter) -> None:
    tags = ("posts",)
    api.endpoint("GET", "/posts", tags=tags, query=ListPostsQuery, response=list[Post])(list_posts)
    api.endpoint("GET", "/posts/{id}", tags=tags, params=IdParams, response=PostWithAuthor)(
        get_post
    )
    api.endpoint("POST", "/posts", tags=tags, body=CreatePostInput, response=Post)(create_post)
    api.endpoint(
        "PUT",
        "/posts/{id}",
        tags=tags,
        params=IdParams,
        body=UpdatePostInput,
        response=UpdatedPost,
    )(update_post)
    api.endpoint("DELETE", "/posts/{id}", tags=tags, params=IdParams, response=Deleted)(
        delete_post
    )
