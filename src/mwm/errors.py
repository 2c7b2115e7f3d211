"""mwm exception hierarchy.

Shared across the dispatcher, API router, handler, and middleware so
every module raises and catches the same types.
"""

from dataclasses import dataclass
from typing import Any


class MwmError(Exception):
    """Base for all mwm-specific errors."""


class ConfigurationError(MwmError):
    """Raised when app configuration is invalid.

    Typically caught during ``App._freeze()`` or ``AppConfig.from_env()``.
    """


class NoRequestContext(MwmError, LookupError):
    """Raised when request-scoped state is read outside of a request."""

    def __init__(self, what: str = "request context") -> None:
        super().__init__(
            f"No {what} available: this code is not running inside a request."
        )


class Halt(MwmError):  # noqa: N818
    """Stop handling and send ``response`` as-is.

    Raised by guards and handlers (``require_auth``) to short-circuit
    rendering with a redirect or a ready-made response. The dispatcher
    catches it and treats the carried value as a normal result.
    """

    def __init__(self, response: Any) -> None:
        super().__init__("halt")
        self.response = response


@dataclass(frozen=True, slots=True)
class HTTPError(MwmError):
    """An error that maps directly to an HTTP status code.

    Raised by the dispatcher, middleware, or handlers. The ASGI handler
    catches these and dispatches to the matching error handler.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405: route exists but not for this HTTP method.

    Carries an ``Allow`` header listing the valid methods.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "Method Not Allowed") -> None:
        super().__init__(
            status=405,
            detail=detail,
            headers=(("Allow", ", ".join(sorted(allowed))),),
        )
