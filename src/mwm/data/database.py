"""Typed async database access on SQLite.

SQL in, frozen dataclasses out. Connection URL format::

    sqlite:///path/to/mwm.db    # file, relative to the working directory
    sqlite:////abs/path/mwm.db  # absolute file
    sqlite:///:memory:          # in-memory

One connection is shared by the process and serialized by an
``anyio.Lock``; ``transaction()`` holds the lock for its whole block so
its statements are never interleaved with another request's.
"""

import logging
import sqlite3
import time
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any, overload

import anyio

from mwm.data import _sqlite
from mwm.data._mapping import map_row, map_rows
from mwm.data.errors import ConnectionError, DataError, IntegrityError, QueryError

logger = logging.getLogger("mwm.data")

# The connection owned by the current task's open transaction, if any.
_current_conn: ContextVar[_sqlite.SQLiteConnection] = ContextVar("mwm_db_conn")


def _parse_sqlite_path(url: str) -> str:
    for prefix in ("sqlite:///", "sqlite://"):
        if url.startswith(prefix):
            return url[len(prefix) :] or ":memory:"
    msg = f"Unsupported database URL: {url!r}. Expected sqlite:///path"
    raise DataError(msg)


def _query_error(exc: Exception) -> QueryError:
    if isinstance(exc, sqlite3.IntegrityError):
        return IntegrityError(str(exc))
    return QueryError(str(exc))


class Database:
    """Typed async database access.

    Usage::

        db = Database("sqlite:///mwm.db")

        role = await db.fetch_one(Role, "SELECT * FROM roles WHERE id = ?", role_id)
        count = await db.fetch_val("SELECT COUNT(*) FROM roles")

        async with db.transaction():
            await db.execute("UPDATE roles SET display_name = ? WHERE id = ?", name, role_id)
            await db.execute("DELETE FROM role_permissions WHERE role_id = ?", role_id)
    """

    __slots__ = ("_conn", "_echo", "_lock", "_path", "url")

    def __init__(self, url: str, /, *, echo: bool = False) -> None:
        self.url = url
        self._path = _parse_sqlite_path(url)
        self._echo = echo
        self._conn: _sqlite.SQLiteConnection | None = None
        self._lock: anyio.Lock | None = None

    # -- Connection management --

    def _get_lock(self) -> anyio.Lock:
        # Created on first use, inside the running event loop.
        if self._lock is None:
            self._lock = anyio.Lock()
        return self._lock

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[_sqlite.SQLiteConnection]:
        """Reuse the current transaction's connection, or take the lock."""
        try:
            yield _current_conn.get()
            return
        except LookupError:
            pass
        conn = await self.connect()
        async with self._get_lock():
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Run the block atomically: commit on exit, roll back on any exception.

        A nested ``transaction()`` joins the outer one.
        """
        try:
            _current_conn.get()
        except LookupError:
            pass
        else:
            yield
            return

        conn = await self.connect()
        async with self._get_lock():
            token = _current_conn.set(conn)
            conn.begin()
            try:
                yield
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise
            finally:
                conn.end()
                _current_conn.reset(token)

    def _log_query(self, sql: str, params: Any, elapsed: float) -> None:
        if self._echo:
            logger.info("%6.1fms  %s  params=%r", elapsed * 1000, " ".join(sql.split()), params)

    # -- Public query API --

    async def fetch[T](self, cls: type[T], sql: str, /, *params: Any) -> list[T]:
        """All rows of *sql* as ``cls`` instances."""
        return map_rows(cls, await self.fetch_dicts(sql, *params))

    async def fetch_dicts(self, sql: str, /, *params: Any) -> list[dict[str, Any]]:
        t0 = time.perf_counter()
        async with self._connection() as conn:
            try:
                return await conn.fetch_all(sql, params)
            except sqlite3.Error as exc:
                raise _query_error(exc) from exc
            finally:
                self._log_query(sql, params, time.perf_counter() - t0)

    async def fetch_one[T](self, cls: type[T], sql: str, /, *params: Any) -> T | None:
        """The first row of *sql* as a ``cls`` instance, or ``None``."""
        t0 = time.perf_counter()
        async with self._connection() as conn:
            try:
                row = await conn.fetch_one(sql, params)
            except sqlite3.Error as exc:
                raise _query_error(exc) from exc
            finally:
                self._log_query(sql, params, time.perf_counter() - t0)
        return None if row is None else map_row(cls, row)

    @overload
    async def fetch_val(self, sql: str, /, *params: Any) -> Any: ...

    @overload
    async def fetch_val[T](self, sql: str, /, *params: Any, as_type: type[T]) -> T | None: ...

    async def fetch_val(self, sql: str, /, *params: Any, as_type: type | None = None) -> Any:
        """First column of the first row (``COUNT(*)`` and friends)."""
        t0 = time.perf_counter()
        async with self._connection() as conn:
            try:
                row = await conn.fetch_one(sql, params)
            except sqlite3.Error as exc:
                raise _query_error(exc) from exc
            finally:
                self._log_query(sql, params, time.perf_counter() - t0)
        if row is None:
            return None
        value = next(iter(row.values()))
        if as_type is not None and value is not None:
            return as_type(value)
        return value

    async def execute(self, sql: str, /, *params: Any) -> int:
        """Run an INSERT/UPDATE/DELETE and return the affected row count.

        Raises:
            IntegrityError: A constraint (e.g. a unique name) rejected it.
        """
        t0 = time.perf_counter()
        async with self._connection() as conn:
            try:
                return await conn.execute(sql, params)
            except sqlite3.Error as exc:
                raise _query_error(exc) from exc
            finally:
                self._log_query(sql, params, time.perf_counter() - t0)

    async def execute_many(self, sql: str, params_seq: Sequence[tuple[Any, ...]], /) -> int:
        t0 = time.perf_counter()
        async with self._connection() as conn:
            try:
                return await conn.execute_many(sql, params_seq)
            except sqlite3.Error as exc:
                raise _query_error(exc) from exc
            finally:
                self._log_query(sql, f"<{len(params_seq)} rows>", time.perf_counter() - t0)

    async def execute_script(self, sql: str, /) -> None:
        """Run a multi-statement script (migrations)."""
        t0 = time.perf_counter()
        async with self._connection() as conn:
            try:
                await conn.execute_script(sql)
            except sqlite3.Error as exc:
                raise _query_error(exc) from exc
            finally:
                self._log_query("<script>", (), time.perf_counter() - t0)

    # -- Lifecycle --

    async def connect(self) -> _sqlite.SQLiteConnection:
        """Open the connection if needed. Called automatically on first query."""
        if self._conn is None:
            try:
                conn = await _sqlite.connect(self._path)
            except sqlite3.Error as exc:
                msg = f"Cannot open database {self.url!r}: {exc}"
                raise ConnectionError(msg) from exc
            # Another task may have connected while this one was in the thread.
            if self._conn is None:
                self._conn = conn
                logger.debug("Connected to %s", self.url)
            else:
                await conn.close()
        return self._conn

    async def disconnect(self) -> None:
        if self._conn is not None:
            conn, self._conn = self._conn, None
            await conn.close()

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.disconnect()
