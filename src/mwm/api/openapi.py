"""OpenAPI 3.1 document generated from the registered endpoints.

Paths are relative to the single server entry (``/api``), and every
schema comes from the same dataclasses the router validates with.
"""

import dataclasses
from typing import Any, get_args, get_origin, get_type_hints

from mwm.api.router import ApiRouter, Endpoint
from mwm.validation import dataclass_to_schema
from mwm.validation.schema import external_name, type_to_schema

OPENAPI_VERSION = "3.1.0"

DEFAULT_INFO = {
    "title": "mwm API",
    "version": "1.0.0",
    "description": "REST API for the mwm starter",
}

_VALIDATION_ERROR = {
    "type": "object",
    "properties": {
        "error": {"type": "string"},
        "fieldErrors": {
            "type": "object",
            "additionalProperties": {"type": "array", "items": {"type": "string"}},
        },
        "formErrors": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["error", "fieldErrors", "formErrors"],
}


def _parameters(schema: type | None, location: str) -> list[dict[str, Any]]:
    if schema is None:
        return []
    hints = get_type_hints(schema)
    body = dataclass_to_schema(schema)
    required = set(body.get("required", ()))
    params = []
    for f in dataclasses.fields(schema):
        name = external_name(f)
        param: dict[str, Any] = {
            "name": name,
            "in": location,
            "required": location == "path" or name in required,
            "schema": body["properties"].get(name, type_to_schema(hints.get(f.name))),
        }
        if f.metadata.get("description"):
            param["description"] = f.metadata["description"]
        params.append(param)
    return params


def _response_schema(annotation: Any) -> dict[str, Any]:
    if annotation is None:
        return {}
    if get_origin(annotation) is list:
        (item,) = get_args(annotation)
        return {"type": "array", "items": _response_schema(item)}
    if dataclasses.is_dataclass(annotation):
        return dataclass_to_schema(annotation)
    return type_to_schema(annotation)


def operation(endpoint: Endpoint) -> dict[str, Any]:
    """The OpenAPI operation object for one endpoint."""
    op: dict[str, Any] = {"operationId": endpoint.operation_id}
    if endpoint.summary:
        op["summary"] = endpoint.summary
    if endpoint.tags:
        op["tags"] = list(endpoint.tags)
    parameters = _parameters(endpoint.params, "path") + _parameters(endpoint.query, "query")
    if parameters:
        op["parameters"] = parameters
    if endpoint.body is not None:
        op["requestBody"] = {
            "required": True,
            "content": {"application/json": {"schema": dataclass_to_schema(endpoint.body)}},
        }

    responses: dict[str, Any] = {
        str(endpoint.status): {
            "description": "OK",
            "content": {"application/json": {"schema": _response_schema(endpoint.response)}},
        }
    }
    if endpoint.params or endpoint.query or endpoint.body:
        responses["400"] = {
            "description": "Validation failed",
            "content": {"application/json": {"schema": _VALIDATION_ERROR}},
        }
    op["responses"] = responses
    return op


def generate_openapi(api: ApiRouter, info: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build the OpenAPI document for *api*. Paths are sorted for stable output."""
    paths: dict[str, dict[str, Any]] = {}
    for endpoint in sorted(api.endpoints, key=lambda e: (e.path, e.method)):
        paths.setdefault(endpoint.path, {})[endpoint.method.lower()] = operation(endpoint)
    return {
        "openapi": OPENAPI_VERSION,
        "info": {**DEFAULT_INFO, **(info or {})},
        "servers": [{"url": api.prefix}],
        "paths": paths,
    }
