"""Dataclass schemas: bind untrusted input, describe it as JSON Schema.

A schema is a plain dataclass whose fields carry validators and an
optional external name (``alias``) in their metadata::

    @dataclass(frozen=True, slots=True)
    class CreateUserInput:
        name: str = rule_field(required_as("Name is required"))
        email: str = rule_field(email())

``parse()`` turns a form, query string or JSON object into an instance
or a ``ParseResult`` full of errors. ``dataclass_to_schema()`` derives
the OpenAPI description from the same class, and ``dump()`` serializes
results back out under their external names.
"""

import dataclasses
import types
from collections.abc import Mapping, Sequence
from dataclasses import MISSING
from typing import Any, Literal, Union, get_args, get_origin, get_type_hints

from mwm.validation.result import ParseResult
from mwm.validation.rules import Validator, stops_on_failure

_TYPE_MAP: dict[type, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
}

_TYPE_ERRORS: dict[type, str] = {
    str: "Expected a string",
    int: "Expected a number",
    float: "Expected a number",
    bool: "Expected a boolean",
}

_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off", ""})


def rule_field(
    *validators: Validator,
    alias: str | None = None,
    default: Any = MISSING,
    default_factory: Any = MISSING,
    description: str | None = None,
) -> Any:
    """A dataclass field carrying validators and an external name."""
    metadata = {"validators": validators, "alias": alias, "description": description}
    if default_factory is not MISSING:
        return dataclasses.field(default_factory=default_factory, metadata=metadata)
    return dataclasses.field(default=default, metadata=metadata)


def external_name(f: dataclasses.Field) -> str:
    return f.metadata.get("alias") or f.name


def _has_default(f: dataclasses.Field) -> bool:
    return f.default is not MISSING or f.default_factory is not MISSING


def _default(f: dataclasses.Field) -> Any:
    if f.default_factory is not MISSING:
        return f.default_factory()
    return f.default


def _unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(annotation) if a is not type(None)]
        return (args[0] if len(args) == 1 else str), True
    return annotation, False


# ---------------------------------------------------------------------------
# Binding
# ---------------------------------------------------------------------------


def parse[T](cls: type[T], data: Any) -> ParseResult[T]:
    """Bind *data* to the schema *cls*, collecting every field's errors.

    *data* may be ``FormData`` or ``QueryParams`` (string values, with
    ``get_list`` for repeated keys) or a decoded JSON object. Validation
    of a field stops after a failed presence check.
    """
    if not isinstance(data, Mapping):
        return ParseResult(form_errors=["Expected an object"])

    hints = get_type_hints(cls)
    field_errors: dict[str, list[str]] = {}
    values: dict[str, Any] = {}
    kwargs: dict[str, Any] = {}

    for f in dataclasses.fields(cls):
        name = external_name(f)
        annotation, _ = _unwrap_optional(hints.get(f.name, str))
        if get_origin(annotation) is list:
            raw_items = _read_list(data, name)
            values[name] = raw_items
            if raw_items is None:
                kwargs[f.name] = _default(f) if _has_default(f) else []
                continue
            items, errors = _coerce_items(annotation, raw_items)
            if errors:
                field_errors[name] = errors
            else:
                kwargs[f.name] = items
            continue

        raw = data.get(name)
        values[name] = raw
        validators: Sequence[Validator] = f.metadata.get("validators", ())
        if raw is None:
            if _has_default(f):
                kwargs[f.name] = _default(f)
                continue
            errors = _run_validators(validators, "") or ["Required"]
            field_errors[name] = errors
            continue

        value, type_error = _coerce(annotation, raw)
        if type_error is not None:
            field_errors[name] = [type_error]
            continue
        errors = _run_validators(validators, raw if isinstance(raw, str) else str(raw))
        if errors:
            field_errors[name] = errors
        else:
            kwargs[f.name] = value

    if field_errors:
        return ParseResult(field_errors=field_errors, values=values)
    return ParseResult(data=cls(**kwargs), values=values)


def _read_list(data: Mapping[str, Any], name: str) -> list[Any] | None:
    get_list = getattr(data, "get_list", None)
    if get_list is not None:
        items = get_list(name)
        return items if items or name in data else None
    if name not in data:
        return None
    raw = data[name]
    if raw is None:
        return None
    return list(raw) if isinstance(raw, list) else [raw]


def _coerce_items(annotation: Any, items: list[Any]) -> tuple[list[Any], list[str]]:
    args = get_args(annotation)
    item_type = args[0] if args else str
    out: list[Any] = []
    for item in items:
        value, error = _coerce(item_type, item)
        if error is not None:
            return [], [error]
        out.append(value)
    return out, []


def _coerce(annotation: Any, raw: Any) -> tuple[Any, str | None]:
    """Convert *raw* to *annotation*; returns ``(value, error)``."""
    if get_origin(annotation) is Literal:
        choices = get_args(annotation)
        if raw in choices:
            return raw, None
        return None, "Must be one of: " + ", ".join(str(c) for c in choices)
    if annotation is str:
        if isinstance(raw, str):
            return raw, None
        return None, _TYPE_ERRORS[str]
    if annotation is bool:
        if isinstance(raw, bool):
            return raw, None
        if isinstance(raw, str) and raw.lower() in _TRUE | _FALSE:
            return raw.lower() in _TRUE, None
        return None, _TYPE_ERRORS[bool]
    if annotation in (int, float):
        if isinstance(raw, bool):
            return None, _TYPE_ERRORS[annotation]
        try:
            return annotation(raw), None
        except (TypeError, ValueError):
            return None, _TYPE_ERRORS[annotation]
    if dataclasses.is_dataclass(annotation):
        nested = parse(annotation, raw)
        if not nested:
            return None, "Invalid object"
        return nested.data, None
    return raw, None


def _run_validators(validators: Sequence[Validator], value: str) -> list[str]:
    errors: list[str] = []
    for validator in validators:
        error = validator(value)
        if error is not None:
            errors.append(error)
            if stops_on_failure(validator):
                break
    return errors


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def dump(value: Any) -> Any:
    """Convert schema instances (and lists of them) to JSON-ready data."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {external_name(f): dump(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, (list, tuple)):
        return [dump(item) for item in value]
    if isinstance(value, dict):
        return {key: dump(item) for key, item in value.items()}
    return value


# ---------------------------------------------------------------------------
# JSON Schema
# ---------------------------------------------------------------------------


def dataclass_to_schema(cls: type) -> dict[str, Any]:
    """JSON Schema (OpenAPI 3.1 dialect) for a schema dataclass."""
    hints = get_type_hints(cls)
    properties: dict[str, Any] = {}
    required: list[str] = []
    for f in dataclasses.fields(cls):
        annotation, optional = _unwrap_optional(hints.get(f.name, str))
        prop = type_to_schema(annotation)
        for validator in f.metadata.get("validators", ()):
            if fmt := getattr(validator, "format", None):
                prop["format"] = fmt
            if pattern := getattr(validator, "pattern", None):
                prop["pattern"] = pattern
            if bounds := getattr(validator, "bounds", None):
                prop["minimum"], prop["maximum"] = bounds
        if f.metadata.get("description"):
            prop["description"] = f.metadata["description"]
        if f.default is not MISSING and f.default is not None:
            prop["default"] = f.default
        properties[external_name(f)] = prop
        if not _has_default(f) and not optional:
            required.append(external_name(f))
    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def type_to_schema(annotation: Any) -> dict[str, Any]:
    annotation, _ = _unwrap_optional(annotation)
    if annotation in _TYPE_MAP:
        return {"type": _TYPE_MAP[annotation]}
    origin = get_origin(annotation)
    if origin is Literal:
        choices = list(get_args(annotation))
        if len(choices) == 1:
            return {"const": choices[0]}
        return {"enum": choices}
    if origin is list:
        args = get_args(annotation)
        return {"type": "array", "items": type_to_schema(args[0]) if args else {}}
    if dataclasses.is_dataclass(annotation):
        return dataclass_to_schema(annotation)
    return {}
