"""Template filters registered on every mwm environment."""

import html
from typing import Any

from kida.template import Markup


def field_errors(errors: Any, field_name: str) -> list[str]:
    """Messages for one form field from a ``{field: [messages]}`` dict.

    Example:
        {% for msg in errors | field_errors("displayName") %}
          <p class="field-error">{{ msg }}</p>
        {% end %}
    """
    if not isinstance(errors, dict):
        return []
    return list(errors.get(field_name) or ())


def attr(value: Any, name: str) -> str | Markup:
    """An HTML attribute when *value* is truthy, else nothing.

    Example:
        <input name="name"{{ role.is_system | attr("disabled") }}>
    """
    if not value:
        return ""
    if value is True:
        return Markup(f" {name}")
    return Markup(f' {name}="{html.escape(str(value))}"')


def default_dash(value: Any) -> str:
    """The value, or ``-`` for empty descriptions in tables."""
    return str(value) if value else "-"


BUILTIN_FILTERS = {
    "attr": attr,
    "dash": default_dash,
    "field_errors": field_errors,
}
