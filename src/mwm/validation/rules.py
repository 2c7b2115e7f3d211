"""Built-in validation rules.

Each validator is a callable with the signature::

    def rule(value: str) -> str | None:
        '''Return error message, or None if valid.'''

Parameterized validators are factories. Every rule takes an optional
``message`` so forms can phrase errors per field::

    max_length(50, "Name must be 50 characters or less")

Custom validators follow the same protocol.
"""

import re
from collections.abc import Callable

type Validator = Callable[[str], str | None]


# ---------------------------------------------------------------------------
# Presence
# ---------------------------------------------------------------------------


def required(value: str) -> str | None:
    """Field must be present and non-empty."""
    if not value or not value.strip():
        return "This field is required"
    return None


def required_as(message: str) -> Validator:
    """``required`` with a custom message; still stops further checks."""

    def check(value: str) -> str | None:
        if required(value) is not None:
            return message
        return None

    check.stops_on_failure = True  # type: ignore[attr-defined]
    return check


def stops_on_failure(validator: Validator) -> bool:
    """True for presence checks; nothing else is worth running on an empty value."""
    return validator is required or getattr(validator, "stops_on_failure", False)


# ---------------------------------------------------------------------------
# Length
# ---------------------------------------------------------------------------


def max_length(n: int, message: str | None = None) -> Validator:
    def check(value: str) -> str | None:
        if len(value) > n:
            return message or f"Must be at most {n} characters"
        return None

    return check


def min_length(n: int, message: str | None = None) -> Validator:
    def check(value: str) -> str | None:
        if len(value) < n:
            return message or f"Must be at least {n} characters"
        return None

    return check


# ---------------------------------------------------------------------------
# Format
# ---------------------------------------------------------------------------

# Structure only, not deliverability
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")


def email(message: str = "Invalid email address") -> Validator:
    def check(value: str) -> str | None:
        if not _EMAIL_RE.match(value):
            return message
        return None

    check.format = "email"  # type: ignore[attr-defined]
    return check


def matches(pattern: str, message: str | None = None) -> Validator:
    """Value must match *pattern* from its start (``re.match``)."""
    compiled = re.compile(pattern)

    def check(value: str) -> str | None:
        if not compiled.match(value):
            return message or f"Must match pattern: {pattern}"
        return None

    check.pattern = pattern  # type: ignore[attr-defined]
    return check


# Role names, permission resources and actions share this shape.
SLUG_PATTERN = r"^[a-z][a-z0-9_-]*$"


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------


def integer(value: str) -> str | None:
    """Value must be a whole number."""
    try:
        int(value)
    except (ValueError, TypeError):
        return "Must be a whole number"
    return None


def between(low: int, high: int, message: str | None = None) -> Validator:
    """Whole number within ``[low, high]``; non-numbers are left to ``integer``."""

    def check(value: str) -> str | None:
        try:
            number = int(value)
        except (ValueError, TypeError):
            return None
        if not low <= number <= high:
            return message or f"Must be between {low} and {high}"
        return None

    check.bounds = (low, high)  # type: ignore[attr-defined]
    return check
