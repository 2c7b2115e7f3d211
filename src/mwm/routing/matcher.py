"""Path matching over the compiled route table.

Exact paths are looked up in a dict. Otherwise only the dynamic
patterns are tried, segment by segment: segment counts must be equal,
literal segments compare case-sensitively, and a ``:name`` segment
binds the URL-decoded value.

When several dynamic patterns match one path the most specific wins:

1. the longer run of leading literal segments
   (``/users/settings/:tab`` beats ``/users/:id/:tab``),
2. then more literal segments overall
   (``/:org/members/:id`` beats ``/:org/:kind/:id``),
3. then table order, which is sorted by pattern.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from urllib.parse import unquote


@dataclass(frozen=True, slots=True)
class PatternMatch[T]:
    pattern: str
    target: T
    params: dict[str, str]


@dataclass(frozen=True, slots=True)
class _Dynamic[T]:
    pattern: str
    segments: tuple[str, ...]
    target: T


def split_path(path: str) -> tuple[str, ...]:
    return tuple(path.split("/"))


def precedence(pattern: str) -> tuple[int, int]:
    """Sort key: smaller sorts first, i.e. is tried first."""
    segments = split_path(pattern)[1:]
    prefix = 0
    for segment in segments:
        if segment.startswith(":"):
            break
        prefix += 1
    literals = sum(1 for segment in segments if not segment.startswith(":"))
    return (-prefix, -literals)


def match_segments(pattern: tuple[str, ...], parts: tuple[str, ...]) -> dict[str, str] | None:
    """Bind *parts* (still percent-encoded) against *pattern*."""
    if len(pattern) != len(parts):
        return None
    params: dict[str, str] = {}
    for expected, actual in zip(pattern, parts, strict=True):
        if expected.startswith(":"):
            params[expected[1:]] = unquote(actual)
        elif expected != unquote(actual):
            return None
    return params


class RouteMatcher[T]:
    """Immutable matcher built once from ``(pattern, target)`` pairs.

    Usage::

        matcher = RouteMatcher([("/", home), ("/users/:id", user)])
        found = matcher.match("/users/42")
        found.params  # {"id": "42"}
    """

    __slots__ = ("_dynamic", "_exact")

    def __init__(self, routes: Iterable[tuple[str, T]]) -> None:
        self._exact: dict[str, T] = {}
        dynamic: list[_Dynamic[T]] = []
        for pattern, target in routes:
            if ":" in pattern:
                dynamic.append(_Dynamic(pattern, split_path(pattern), target))
            else:
                self._exact.setdefault(pattern, target)
        # sorted() is stable: equal keys keep table order
        self._dynamic = tuple(sorted(dynamic, key=lambda d: precedence(d.pattern)))

    @property
    def patterns(self) -> list[str]:
        return [*self._exact, *(d.pattern for d in self._dynamic)]

    def match(self, path: str) -> PatternMatch[T] | None:
        """Match a raw (percent-encoded) request path."""
        # %2F stays inside its segment, so it never spells a static path
        if "%2f" not in path.lower():
            decoded = unquote(path)
            target = self._exact.get(decoded)
            if target is not None:
                return PatternMatch(decoded, target, {})

        parts = split_path(path)
        for candidate in self._dynamic:
            params = match_segments(candidate.segments, parts)
            if params is not None:
                return PatternMatch(candidate.pattern, candidate.target, params)
        return None
