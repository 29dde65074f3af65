"""SQL fragments for the link store.

Store code asks a ``Dialect`` for bind placeholders, ``IN`` lists and
upserts instead of writing them inline, so the SQL in
:mod:`linkspine.store` never hard-codes the driver's parameter style.

Examples:
    >>> d = SQLiteDialect()
    >>> d.placeholders(3)
    '?, ?, ?'
    >>> d.in_clause("entity_id", 2)
    'entity_id IN (?, ?)'

Tags:
    dialect, sql, sqlite, linkspine
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Dialect(Protocol):
    """SQL fragment generator for one database backend."""

    @property
    def name(self) -> str: ...

    def placeholder(self, index: int) -> str:
        """One bind placeholder (0-based ``index``)."""
        ...

    def placeholders(self, count: int) -> str: ...

    def in_clause(self, column: str, count: int) -> str:
        """``column IN (…)`` with ``count`` placeholders."""
        ...

    def upsert(self, table: str, columns: list[str], key_columns: list[str]) -> str:
        """INSERT … ON CONFLICT (keys) DO UPDATE of every non-key column."""
        ...


class SQLiteDialect:
    """SQLite: ``?`` placeholders, ``excluded.`` in upserts."""

    @property
    def name(self) -> str:
        return "sqlite"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    def in_clause(self, column: str, count: int) -> str:
        return f"{column} IN ({self.placeholders(count)})"

    def upsert(self, table: str, columns: list[str], key_columns: list[str]) -> str:
        updates = ", ".join(f"{c} = excluded.{c}" for c in columns if c not in key_columns)
        return (
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({self.placeholders(len(columns))}) "
            f"ON CONFLICT ({', '.join(key_columns)}) DO UPDATE SET {updates}"
        )


__all__ = [
    "Dialect",
    "SQLiteDialect",
]
