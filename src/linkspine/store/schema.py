"""Schema bootstrap for the SQLite link store.

Applies ``schema.sql`` statement by statement and registers link kinds
(the ``link_type`` row plus the ``position``/``qty`` link attributes).
For production deployments the same DDL can be applied by hand.
"""

from __future__ import annotations

import re
from pathlib import Path

from linkspine.core.dialect import Dialect, SQLiteDialect
from linkspine.core.logging import get_logger
from linkspine.core.protocols import Connection
from linkspine.domain.catalog.models import PARTLISTS, LinkKind

logger = get_logger(__name__)

SCHEMA_FILE = Path(__file__).resolve().parent / "schema.sql"

# Attributes every registered link kind carries
LINK_ATTRIBUTES: tuple[tuple[str, str], ...] = (
    ("position", "int"),
    ("qty", "decimal"),
)

_CREATE_TABLE = re.compile(r"CREATE TABLE IF NOT EXISTS (\w+)", re.IGNORECASE)


def split_sql(sql: str) -> list[str]:
    """Split a SQL script into statements, dropping ``--`` comment lines."""
    statements = []
    current: list[str] = []
    for line in sql.splitlines():
        stripped = line.strip()
        if stripped.startswith("--") or not stripped:
            continue
        current.append(line)
        if stripped.endswith(";"):
            stmt = "\n".join(current).strip()
            if stmt and stmt != ";":
                statements.append(stmt)
            current = []
    if current:
        stmt = "\n".join(current).strip()
        if stmt:
            statements.append(stmt)
    return statements


def read_schema_sql(schema_file: Path | str | None = None) -> str:
    return Path(schema_file or SCHEMA_FILE).read_text(encoding="utf-8")


def table_names(schema_file: Path | str | None = None) -> list[str]:
    """Tables created by the schema, in creation order."""
    return _CREATE_TABLE.findall(read_schema_sql(schema_file))


def apply_schema(conn: Connection, schema_file: Path | str | None = None) -> list[str]:
    """Create every table and index (idempotent). Returns the table names."""
    sql = read_schema_sql(schema_file)
    for statement in split_sql(sql):
        conn.execute(statement)
    conn.commit()
    tables = _CREATE_TABLE.findall(sql)
    logger.debug("schema_applied", tables=len(tables))
    return tables


def register_link_kind(
    conn: Connection,
    kind: LinkKind = PARTLISTS,
    dialect: Dialect | None = None,
) -> None:
    """Insert or update the ``link_type`` row and its link attributes."""
    dialect = dialect or SQLiteDialect()
    conn.execute(
        dialect.upsert("link_type", ["link_type_id", "code"], ["link_type_id"]),
        (kind.type_id, kind.code),
    )
    conn.executemany(
        dialect.upsert(
            "link_attribute",
            ["link_type_id", "attribute_code", "data_type"],
            ["link_type_id", "attribute_code"],
        ),
        [(kind.type_id, code, data_type) for code, data_type in LINK_ATTRIBUTES],
    )
    conn.commit()
    logger.info("link_kind_registered", link_kind=kind.code, type_id=kind.type_id)


def unregister_link_kind(
    conn: Connection,
    kind: LinkKind = PARTLISTS,
    dialect: Dialect | None = None,
) -> None:
    """Remove a link kind's attribute definitions and ``link_type`` row.

    Existing link rows of the kind are left in place.
    """
    dialect = dialect or SQLiteDialect()
    ph = dialect.placeholder(0)
    conn.execute(f"DELETE FROM link_attribute WHERE link_type_id = {ph}", (kind.type_id,))
    conn.execute(f"DELETE FROM link_type WHERE link_type_id = {ph}", (kind.type_id,))
    conn.commit()
    logger.info("link_kind_unregistered", link_kind=kind.code, type_id=kind.type_id)


def registered_kinds(conn: Connection) -> dict[str, int]:
    """``{code: link_type_id}`` for every kind registered in the store."""
    conn.execute("SELECT code, link_type_id FROM link_type ORDER BY link_type_id")
    return {row[0]: row[1] for row in conn.fetchall()}


def init_store(conn: Connection, kinds: tuple[LinkKind, ...] = (PARTLISTS,)) -> list[str]:
    """Apply the schema and register ``kinds``."""
    tables = apply_schema(conn)
    for kind in kinds:
        register_link_kind(conn, kind)
    return tables
