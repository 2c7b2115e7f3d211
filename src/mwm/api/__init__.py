"""REST API: endpoint router, schemas and the OpenAPI document."""

from mwm.api import echo, health, posts, users
from mwm.api.openapi import generate_openapi
from mwm.api.router import ApiContext, ApiInput, ApiRouter, Endpoint


def create_api_router() -> ApiRouter:
    """The app's API with every endpoint registered, compiled."""
    api = ApiRouter()
    for module in (health, users, posts, echo):
        module.register(api)
    api.compile()
    return api


__all__ = [
    "ApiContext",
    "ApiInput",
    "ApiRouter",
    "Endpoint",
    "create_api_router",
    "generate_openapi",
]
