"""Input validation: composable rules bound to dataclass schemas.

Usage::

    from mwm.validation import parse, required_as, max_length, rule_field

    @dataclass(frozen=True, slots=True)
    class PostForm:
        title: str = rule_field(required_as("Title is required"), max_length(200))

    result = parse(PostForm, await request.form())
    if not result:
        ...  # result.field_errors / result.form_errors
"""

from mwm.validation.result import ParseResult
from mwm.validation.rules import (
    SLUG_PATTERN,
    Validator,
    between,
    email,
    integer,
    matches,
    max_length,
    min_length,
    required,
    required_as,
)
from mwm.validation.schema import dataclass_to_schema, dump, parse, rule_field

__all__ = [
    "SLUG_PATTERN",
    "ParseResult",
    "Validator",
    "between",
    "dataclass_to_schema",
    "dump",
    "email",
    "integer",
    "matches",
    "max_length",
    "min_length",
    "parse",
    "required",
    "required_as",
    "rule_field",
]
