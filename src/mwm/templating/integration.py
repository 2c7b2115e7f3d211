"""Kida environment setup and rendering helpers.

Templates live next to the route modules that use them, so the loader
is rooted at ``config.routes_dir``: ``"admin/roles/index.html"`` is the
template beside ``admin/roles/index.py``.
"""

from collections.abc import Callable, Sequence
from typing import Any

from kida import ChoiceLoader, Environment, FileSystemLoader

from mwm.config import AppConfig
from mwm.templating.filters import BUILTIN_FILTERS
from mwm.templating.returns import Fragment, Template


def create_environment(
    config: AppConfig,
    filters: dict[str, Callable[..., Any]] | None = None,
    globals_: dict[str, Any] | None = None,
) -> Environment:
    """Create the app's kida Environment. Called once at startup."""
    env = Environment(
        loader=ChoiceLoader([FileSystemLoader(str(config.routes_dir))]),
        autoescape=True,
        auto_reload=config.debug,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.update_filters(BUILTIN_FILTERS)
    if filters:
        env.update_filters(filters)
    env.add_global("app_title", config.app_title)
    for name, value in (globals_ or {}).items():
        env.add_global(name, value)
    return env


def render_template(env: Environment, tpl: Template, base: dict[str, Any] | None = None) -> str:
    """Render *tpl*; its own context wins over *base*."""
    return env.get_template(tpl.name).render({**(base or {}), **tpl.context})


def render_fragment(env: Environment, frag: Fragment, base: dict[str, Any] | None = None) -> str:
    template = env.get_template(frag.template_name)
    return template.render_block(frag.block_name, {**(base or {}), **frag.context})


def render_with_layouts(
    env: Environment,
    layout_templates: Sequence[str],
    content: str,
    context: dict[str, Any],
) -> str:
    """Wrap *content* in layouts given root-most first.

    The deepest layout wraps the content first, so the root-most one ends
    up outermost. Each layout template places the inner HTML with
    ``{% block content %}{% end %}``.
    """
    html = content
    for name in reversed(layout_templates):
        html = env.get_template(name).render_with_blocks({"content": html}, **context)
    return html
