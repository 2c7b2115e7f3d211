"""Parse results: the typed value or everything that was wrong with the input."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class ParseResult[T]:
    """The outcome of binding raw input to a schema.

    ``field_errors`` maps a field (by its external name) to messages;
    ``form_errors`` holds problems that belong to no single field, such
    as a body that is not a JSON object. The result is falsy when
    invalid::

        result = parse(RoleForm, form)
        if not result:
            return Template("roles/index.html", errors=result.field_errors)

    ``values`` keeps the raw submitted strings for re-populating a form.
    """

    data: T | None = None
    field_errors: dict[str, list[str]] = field(default_factory=dict)
    form_errors: list[str] = field(default_factory=list)
    values: dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return self.data is not None and not self.field_errors and not self.form_errors

    def __bool__(self) -> bool:
        return self.is_valid

    def first_error(self, name: str) -> str | None:
        messages = self.field_errors.get(name)
        return messages[0] if messages else None

    def flatten(self) -> dict[str, Any]:
        """``{"fieldErrors": ..., "formErrors": ...}`` as sent by the API."""
        return {"fieldErrors": self.field_errors, "formErrors": self.form_errors}
