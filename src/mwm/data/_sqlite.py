"""Async SQLite connection on stdlib ``sqlite3`` + ``anyio``.

Each public coroutine runs one complete blocking operation (execute and
fetch) in an anyio worker thread, so a query costs a single thread hop.

``check_same_thread=False`` is required because worker threads differ
between calls; ``Database`` serializes access with an ``anyio.Lock``.
"""

import sqlite3
from collections.abc import Callable, Sequence
from typing import Any

import anyio


def _run_sync(func: Callable[..., Any], *args: Any) -> Any:
    return anyio.to_thread.run_sync(func, *args)


def _rows_as_dicts(cursor: sqlite3.Cursor, rows: list[Any]) -> list[dict[str, Any]]:
    columns = [desc[0] for desc in cursor.description or ()]
    return [dict(zip(columns, row, strict=True)) for row in rows]


class SQLiteConnection:
    """One ``sqlite3.Connection`` in autocommit mode.

    ``begin()`` switches to manual commit for the length of a transaction.
    """

    __slots__ = ("_conn",)

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    async def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        def run() -> list[dict[str, Any]]:
            cursor = self._conn.execute(sql, params)
            return _rows_as_dicts(cursor, cursor.fetchall())

        return await _run_sync(run)

    async def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> dict[str, Any] | None:
        def run() -> dict[str, Any] | None:
            cursor = self._conn.execute(sql, params)
            row = cursor.fetchone()
            return None if row is None else _rows_as_dicts(cursor, [row])[0]

        return await _run_sync(run)

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        return await _run_sync(lambda: self._conn.execute(sql, params).rowcount)

    async def execute_many(self, sql: str, params_seq: Sequence[Sequence[Any]]) -> int:
        return await _run_sync(lambda: self._conn.executemany(sql, params_seq).rowcount)

    async def execute_script(self, sql: str) -> None:
        """Run several statements; ``executescript`` commits anything pending first."""
        await _run_sync(self._conn.executescript, sql)

    def begin(self) -> None:
        self._conn.autocommit = False

    def end(self) -> None:
        self._conn.autocommit = True

    async def commit(self) -> None:
        await _run_sync(self._conn.commit)

    async def rollback(self) -> None:
        await _run_sync(self._conn.rollback)

    async def close(self) -> None:
        await _run_sync(self._conn.close)


async def connect(path: str) -> SQLiteConnection:
    """Open *path* with foreign keys enforced and WAL journaling for files."""

    def run() -> sqlite3.Connection:
        conn = sqlite3.connect(path, autocommit=True, check_same_thread=False)
        conn.execute("PRAGMA foreign_keys=ON")
        if path != ":memory:":
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    return SQLiteConnection(await _run_sync(run))
