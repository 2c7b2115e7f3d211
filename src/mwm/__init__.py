"""mwm: a file-system routed web app starter.

Route files under ``mwm/routes`` become pages, ``/api/*`` serves a typed
JSON API, and an admin area manages roles and permissions.

Basic usage::

    from mwm import App, AppConfig

    app = App(AppConfig.from_env())
    app.run()

Route modules return templates, responses or redirects::

    from mwm import Template

    def handler(ctx):
        return Template("users/index.html", users=...)
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "Fragment",
    "HTTPError",
    "Halt",
    "MethodNotAllowed",
    "Middleware",
    "MwmError",
    "Next",
    "NoRequestContext",
    "NotFound",
    "Redirect",
    "Request",
    "Response",
    "Template",
    "get_params",
    "get_request",
    "get_request_context",
    "get_search_params",
    "get_session",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import mwm`` fast while providing a clean top-level API.
    """
    if name == "App":
        from mwm.app import App

        return App

    if name == "AppConfig":
        from mwm.config import AppConfig

        return AppConfig

    if name == "Request":
        from mwm.http.request import Request

        return Request

    if name in ("Response", "Redirect"):
        from mwm.http import response as _resp

        return getattr(_resp, name)

    if name in ("Template", "Fragment"):
        from mwm.templating import returns as _tmpl

        return getattr(_tmpl, name)

    if name in ("Middleware", "Next"):
        from mwm.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in (
        "get_params",
        "get_request",
        "get_request_context",
        "get_search_params",
        "get_session",
    ):
        from mwm import context as _ctx

        return getattr(_ctx, name)

    if name in (
        "ConfigurationError",
        "HTTPError",
        "Halt",
        "MethodNotAllowed",
        "MwmError",
        "NoRequestContext",
        "NotFound",
    ):
        from mwm import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
