"""Typed async data access on SQLite: SQL in, frozen dataclasses out."""

from mwm.data.database import Database
from mwm.data.errors import (
    ConnectionError,
    DataError,
    IntegrityError,
    MigrationError,
    QueryError,
)
from mwm.data.migrate import MigrationResult, migrate

__all__ = [
    "ConnectionError",
    "DataError",
    "Database",
    "IntegrityError",
    "MigrationError",
    "MigrationResult",
    "QueryError",
    "migrate",
]
