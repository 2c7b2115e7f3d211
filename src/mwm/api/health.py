"""Liveness endpoint."""

from datetime import UTC, datetime

from mwm.api.router import ApiContext, ApiInput, ApiRouter
from mwm.api.schemas import HealthStatus


def now_iso() -> str:
    """Current UTC time in ISO-8601 with millisecond precision."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def check_health(input: ApiInput[None, None, None], ctx: ApiContext) -> HealthStatus:
    """Report that the service is up."""
    return HealthStatus(timestamp=now_iso())


def register(api: ApiRouter) -> None:
    api.endpoint("GET", "/health", tags=("health",), response=HealthStatus)(check_health)
