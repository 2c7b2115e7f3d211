"""Server-side rendering with kida."""

from mwm.templating.integration import (
    create_environment,
    render_fragment,
    render_template,
    render_with_layouts,
)
from mwm.templating.returns import Fragment, Template

__all__ = [
    "Fragment",
    "Template",
    "create_environment",
    "render_fragment",
    "render_template",
    "render_with_layouts",
]
