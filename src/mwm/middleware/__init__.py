"""Request middleware."""

from mwm.middleware.protocol import Middleware, Next
from mwm.middleware.static import StaticFiles

__all__ = ["Middleware", "Next", "StaticFiles"]
