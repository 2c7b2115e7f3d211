"""Data layer error hierarchy."""

from mwm.errors import MwmError


class DataError(MwmError):
    """Base for all mwm.data errors."""


class ConnectionError(DataError):  # noqa: A001
    """Raised when the database cannot be opened."""


class QueryError(DataError):
    """Raised when a SQL statement fails."""


class IntegrityError(QueryError):
    """A unique, foreign-key or check constraint rejected the write."""


class MigrationError(DataError):
    """Raised when a migration file is malformed or fails to apply."""
