"""Base class for the SQLite link store.

Pairs a :class:`~linkspine.core.protocols.Connection` with a
:class:`~linkspine.core.dialect.Dialect` and turns result rows into
plain dicts.

Usage:
    >>> class ProductLookup(BaseRepository):
    ...     def sku_of(self, entity_id: int):
    ...         row = self.query_one(
    ...             f"SELECT sku FROM product WHERE entity_id = {self.ph(1)}",
    ...             (entity_id,),
    ...         )
    ...         return row["sku"] if row else None
"""

from __future__ import annotations

from typing import Any

from linkspine.core.dialect import Dialect, SQLiteDialect
from linkspine.core.protocols import Connection


class BaseRepository:
    """Dialect-aware query helpers.

    Parameters:
        conn: Any object satisfying the :class:`Connection` protocol.
        dialect: Defaults to :class:`SQLiteDialect`.
    """

    def __init__(self, conn: Connection, dialect: Dialect | None = None) -> None:
        self.conn = conn
        self.dialect: Dialect = dialect or SQLiteDialect()

    def ph(self, count: int) -> str:
        """``count`` placeholders, for embedding in f-strings."""
        return self.dialect.placeholders(count)

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Run one statement; returns the cursor (``rowcount``, ``lastrowid``)."""
        return self.conn.execute(sql, params)

    def query(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        """Run a SELECT and return rows as dicts.

        ``sqlite3.Row`` converts directly; plain tuples are zipped with
        ``cursor.description``.
        """
        cursor = self.conn.execute(sql, params)
        rows = cursor.fetchall()
        if not rows:
            return []
        try:
            return [dict(row) for row in rows]
        except (TypeError, ValueError):
            columns = [desc[0] for desc in cursor.description]
            return [dict(zip(columns, row, strict=False)) for row in rows]

    def query_one(self, sql: str, params: tuple = ()) -> dict[str, Any] | None:
        results = self.query(sql, params)
        return results[0] if results else None

    def commit(self) -> None:
        self.conn.commit()

    def rollback(self) -> None:
        self.conn.rollback()


__all__ = [
    "BaseRepository",
]
