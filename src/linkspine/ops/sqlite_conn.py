"""SQLite connection adapter.

Wraps :class:`sqlite3.Connection` so it satisfies the
:class:`~linkspine.core.protocols.Connection` protocol: ``execute`` returns
the shared cursor and ``fetchone``/``fetchall`` read from it.

Usage::

    conn = SqliteConnection(":memory:")
    init_store(conn)
    store = LinkStore(conn)
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any


class SqliteConnection:
    """Adapter: ``sqlite3.Connection`` → ``Connection`` protocol.

    Rows come back as :class:`sqlite3.Row`, so repositories can turn them
    into dicts. Foreign keys are enforced.
    """

    def __init__(self, path: str = ":memory:", *, row_factory: Any = sqlite3.Row) -> None:
        if path != ":memory:":
            Path(path).expanduser().parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = row_factory
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._cursor = self._conn.cursor()
        self.path = path

    def execute(self, sql: str, params: tuple = ()) -> Any:
        self._cursor.execute(sql, params)
        return self._cursor

    def executemany(self, sql: str, params: list[tuple]) -> Any:
        self._cursor.executemany(sql, params)
        return self._cursor

    def fetchone(self) -> Any:
        return self._cursor.fetchone()

    def fetchall(self) -> list:
        return self._cursor.fetchall()

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        self._conn.close()

    @property
    def raw(self) -> sqlite3.Connection:
        return self._conn

    def __repr__(self) -> str:
        return f"SqliteConnection({self.path!r})"
