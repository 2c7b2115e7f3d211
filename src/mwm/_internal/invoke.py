"""Call route handlers, guards and API handlers uniformly.

Route modules may define ``def`` or ``async def`` functions; every call
site goes through :func:`invoke` so the sync/async check lives in one
place.
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call ``handler`` and await the result if it is awaitable."""
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
