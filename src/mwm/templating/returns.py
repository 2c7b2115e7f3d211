"""Template and Fragment return types.

Frozen values that route handlers return instead of HTML strings. The
dispatcher renders them with the app's kida environment, so a handler
never needs the environment itself.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Template:
    """Render a whole kida template.

    Usage::

        return Template("admin/roles/index.html", roles=roles)
    """

    name: str
    context: dict[str, Any] = field(default_factory=dict)

    def __init__(self, name: str, /, **context: Any) -> None:
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "context", context)


@dataclass(frozen=True, slots=True)
class Fragment:
    """Render one named block of a template, e.g. a form re-rendered for htmx.

    Usage::

        return Fragment("identity/sign-in.html", "form", error=message)
    """

    template_name: str
    block_name: str
    context: dict[str, Any] = field(default_factory=dict)

    def __init__(self, template_name: str, block_name: str, /, **context: Any) -> None:
        object.__setattr__(self, "template_name", template_name)
        object.__setattr__(self, "block_name", block_name)
        object.__setattr__(self, "context", context)
