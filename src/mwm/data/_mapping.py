"""Rows to frozen dataclasses.

SQLite stores booleans as 0/1 and has loose column affinity, so values
are coerced to the field annotation (``bool``, ``int``, ``float``,
``str``). Columns without a matching field are ignored, which keeps
``SELECT *`` and joined count columns harmless.
"""

import dataclasses
import functools
import types
from typing import Any, Union, get_args, get_origin, get_type_hints

_COERCE: dict[type, Any] = {
    bool: lambda v: bool(int(v)),
    int: int,
    float: float,
    str: str,
}


@functools.cache
def _targets(cls: type) -> dict[str, type | None]:
    if not dataclasses.is_dataclass(cls):
        msg = f"{cls.__name__} is not a dataclass"
        raise TypeError(msg)
    hints = get_type_hints(cls)
    targets: dict[str, type | None] = {}
    for f in dataclasses.fields(cls):
        annotation = hints.get(f.name)
        if get_origin(annotation) in (Union, types.UnionType):
            args = [a for a in get_args(annotation) if a is not type(None)]
            annotation = args[0] if len(args) == 1 else None
        targets[f.name] = annotation if annotation in _COERCE else None
    return targets


def _coerce(value: Any, target: type | None) -> Any:
    if target is None or value is None or type(value) is target:
        return value
    return _COERCE[target](value)


def map_row[T](cls: type[T], row: dict[str, Any]) -> T:
    """Build ``cls`` from *row*; raises ``TypeError`` if a required field is absent."""
    targets = _targets(cls)
    return cls(**{k: _coerce(v, targets[k]) for k, v in row.items() if k in targets})


def map_rows[T](cls: type[T], rows: list[dict[str, Any]]) -> list[T]:
    return [map_row(cls, row) for row in rows]
