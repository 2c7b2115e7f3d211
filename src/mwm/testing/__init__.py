"""Test utilities for mwm applications.

    from mwm.testing import TestClient, assert_redirect
"""

from mwm.testing.assertions import (
    assert_hx_redirect,
    assert_is_fragment,
    assert_is_full_page,
    assert_redirect,
)
from mwm.testing.client import TestClient

__all__ = [
    "TestClient",
    "assert_hx_redirect",
    "assert_is_fragment",
    "assert_is_full_page",
    "assert_redirect",
]
