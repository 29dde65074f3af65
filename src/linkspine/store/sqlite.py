"""
SQLite-backed link store.

One class plays every collaborator role the core needs:

    ┌────────────────────┬──────────────────────────────────────────────┐
    │ role               │ methods                                      │
    ├────────────────────┼──────────────────────────────────────────────┤
    │ LinkRecordSource   │ fetch, fetch_many                            │
    │ BulkEntityLoader   │ load_many                                    │
    │ SkuResolver        │ ids_for_skus                                 │
    │ LinkWriter         │ get_product_links, save_product_links        │
    │ catalog helpers    │ add_product, get_product, links_for_export   │
    └────────────────────┴──────────────────────────────────────────────┘

Link rows live in ``product_link`` keyed by
``(product_id, link_type_id, linked_product_id)``; ``position`` and ``qty``
are joined from the int/decimal attribute tables and are ``None`` when the
attribute row is missing. Every ``sqlite3.Error`` leaves this module as
``StoreUnavailableError``.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from decimal import Decimal
from typing import Any

from linkspine.core.dialect import Dialect
from linkspine.core.errors import SourceNotFoundError, StoreUnavailableError
from linkspine.core.logging import get_logger
from linkspine.core.protocols import Connection
from linkspine.core.repository import BaseRepository
from linkspine.domain.catalog.models import (
    LinkKind,
    LinkRecord,
    Product,
    ProductLink,
    get_link_kind,
)
from linkspine.resolution.qty import coerce_qty, format_decimal

logger = get_logger(__name__)

# Always selected: the pipeline filters and the writer resolves skus on these
_CORE_COLUMNS = ("entity_id", "sku", "type_id", "status", "visibility", "is_saleable", "has_required_options")

# Columns a caller may ask for through FilterPolicy.attributes
_OPTIONAL_COLUMNS = (
    "name",
    "small_image",
    "thumbnail",
    "price",
    "special_price",
    "amount_incl_tax",
    "amount_excl_tax",
    "tax_class_id",
    "url_key",
)

_DECIMAL_COLUMNS = frozenset({"price", "special_price", "amount_incl_tax", "amount_excl_tax"})

_LINK_SELECT = """
    SELECT l.link_id, l.product_id, l.linked_product_id,
           pos.value AS position, qty.value AS qty
    FROM product_link l
    LEFT JOIN product_link_attribute_int pos
        ON pos.link_id = l.link_id AND pos.attribute_code = 'position'
    LEFT JOIN product_link_attribute_decimal qty
        ON qty.link_id = l.link_id AND qty.attribute_code = 'qty'
"""


@contextmanager
def _store_errors(operation: str, **context: Any) -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as e:
        raise StoreUnavailableError(f"{operation} failed: {e}", cause=e).with_context(
            operation=operation, **context
        ) from e


def _record(row: dict[str, Any]) -> LinkRecord:
    return LinkRecord(
        linked_id=row["linked_product_id"],
        qty=coerce_qty(row["qty"]),
        position=row["position"],
        source_id=row["product_id"],
    )


def _product(row: dict[str, Any]) -> Product:
    values: dict[str, Any] = {
        "id": row["entity_id"],
        "sku": row["sku"],
        "type_id": row["type_id"],
        "status": row["status"],
        "visibility": row["visibility"],
        "is_saleable": bool(row["is_saleable"]),
        "has_required_options": bool(row["has_required_options"]),
    }
    for column in _OPTIONAL_COLUMNS:
        if column in row:
            value = row[column]
            values[column] = coerce_qty(value) if column in _DECIMAL_COLUMNS else value
    return Product(**values)


class LinkStore(BaseRepository):
    """Catalog products and their typed links in SQLite.

    Example::

        conn = SqliteConnection(":memory:")
        init_store(conn)
        store = LinkStore(conn)
        pipeline = ResolutionPipeline(store, store)
    """

    PRODUCT_TABLE = "product"
    LINK_TABLE = "product_link"
    INT_TABLE = "product_link_attribute_int"
    DECIMAL_TABLE = "product_link_attribute_decimal"

    def __init__(self, conn: Connection, dialect: Dialect | None = None) -> None:
        super().__init__(conn, dialect)

    # -- LinkRecordSource --------------------------------------------------

    def fetch(self, source_id: int, kind: LinkKind) -> list[LinkRecord]:
        """Link rows of one source in insertion order.

        Raises:
            SourceNotFoundError: no product with ``source_id``
            StoreUnavailableError: the query failed
        """
        with _store_errors("fetch", source_id=source_id, link_kind=kind.code):
            if not self._product_exists(source_id):
                raise SourceNotFoundError(f"Product {source_id} does not exist").with_context(
                    source_id=source_id, link_kind=kind.code
                )
            rows = self.query(
                f"{_LINK_SELECT} WHERE l.product_id = {self.ph(1)} AND l.link_type_id = {self.ph(1)} "
                "ORDER BY l.link_id",
                (source_id, kind.type_id),
            )
        return [_record(row) for row in rows]

    def fetch_many(self, source_ids: Iterable[int], kind: LinkKind) -> dict[int, list[LinkRecord]]:
        ids = list(dict.fromkeys(source_ids))
        if not ids:
            return {}
        with _store_errors("fetch_many", link_kind=kind.code):
            rows = self.query(
                f"{_LINK_SELECT} WHERE {self.dialect.in_clause('l.product_id', len(ids))} "
                f"AND l.link_type_id = {self.ph(1)} ORDER BY l.link_id",
                (*ids, kind.type_id),
            )
        result: dict[int, list[LinkRecord]] = {}
        for row in rows:
            result.setdefault(row["product_id"], []).append(_record(row))
        return result

    # -- BulkEntityLoader --------------------------------------------------

    def load_many(self, ids: Iterable[int], attributes: frozenset[str] = frozenset()) -> dict[int, Product]:
        """Load products by id in a single query; unknown ids are absent."""
        unique = list(dict.fromkeys(ids))
        if not unique:
            return {}
        columns = [*_CORE_COLUMNS, *(c for c in _OPTIONAL_COLUMNS if c in attributes)]
        with _store_errors("load_many"):
            rows = self.query(
                f"SELECT {', '.join(columns)} FROM {self.PRODUCT_TABLE} "
                f"WHERE {self.dialect.in_clause('entity_id', len(unique))}",
                tuple(unique),
            )
        return {row["entity_id"]: _product(row) for row in rows}

    # -- SkuResolver -------------------------------------------------------

    def ids_for_skus(self, skus: Iterable[str]) -> dict[str, int]:
        unique = list(dict.fromkeys(skus))
        if not unique:
            return {}
        with _store_errors("ids_for_skus"):
            rows = self.query(
                f"SELECT sku, entity_id FROM {self.PRODUCT_TABLE} "
                f"WHERE {self.dialect.in_clause('sku', len(unique))}",
                tuple(unique),
            )
        return {row["sku"]: row["entity_id"] for row in rows}

    # -- LinkWriter --------------------------------------------------------

    def get_product_links(self, source_id: int) -> list[ProductLink]:
        """Every persisted link of a source, all kinds, in insertion order."""
        with _store_errors("get_product_links", source_id=source_id):
            rows = self.query(
                "SELECT src.sku AS sku, t.code AS link_type, dst.sku AS linked_product_sku, "
                "dst.type_id AS linked_product_type, dst.entity_id AS linked_product_id, "
                "pos.value AS position, qty.value AS qty "
                "FROM product_link l "
                "JOIN product src ON src.entity_id = l.product_id "
                "JOIN product dst ON dst.entity_id = l.linked_product_id "
                "JOIN link_type t ON t.link_type_id = l.link_type_id "
                "LEFT JOIN product_link_attribute_int pos "
                "    ON pos.link_id = l.link_id AND pos.attribute_code = 'position' "
                "LEFT JOIN product_link_attribute_decimal qty "
                "    ON qty.link_id = l.link_id AND qty.attribute_code = 'qty' "
                f"WHERE l.product_id = {self.ph(1)} ORDER BY l.link_id",
                (source_id,),
            )
        return [
            ProductLink(
                sku=row["sku"],
                link_type=row["link_type"],
                linked_product_sku=row["linked_product_sku"],
                linked_product_type=row["linked_product_type"],
                position=row["position"] if row["position"] is not None else 0,
                qty=coerce_qty(row["qty"]),
                linked_product_id=row["linked_product_id"],
            )
            for row in rows
        ]

    def save_product_links(
        self,
        source_id: int,
        links: Sequence[ProductLink],
        kinds: Iterable[LinkKind] | None = None,
    ) -> int:
        """Replace the links of ``source_id`` with ``links``.

        With ``kinds`` only rows of those kinds are deleted and rewritten;
        links of any other kind, in ``links`` or in the table, are left
        alone. Without it every row of the source is replaced.

        Links whose linked product cannot be found by id or sku are
        dropped. Returns the number of link rows written.
        """
        type_ids: list[int] | None = None
        if kinds is not None:
            type_ids = sorted({kind.type_id for kind in kinds})
            links = [link for link in links if get_link_kind(link.link_type).type_id in type_ids]

        missing_ids = {link.linked_product_sku for link in links if link.linked_product_id is None}
        sku_ids = self.ids_for_skus(missing_ids) if missing_ids else {}

        written = 0
        with _store_errors("save_product_links", source_id=source_id):
            try:
                self._delete_links(source_id, type_ids)
                for link in links:
                    linked_id = link.linked_product_id or sku_ids.get(link.linked_product_sku)
                    if linked_id is None:
                        logger.warning(
                            "link_dropped_unknown_sku",
                            source_id=source_id,
                            linked_sku=link.linked_product_sku,
                        )
                        continue
                    if self._insert_link(source_id, linked_id, link):
                        written += 1
                self.commit()
            except Exception:
                self.rollback()
                raise
        logger.info("product_links_saved", source_id=source_id, count=written)
        return written

    # -- Catalog helpers ---------------------------------------------------

    def add_product(self, product: Product) -> None:
        """Insert or replace a catalog product."""
        data: dict[str, Any] = {
            "entity_id": product.id,
            "sku": product.sku,
            "type_id": product.type_id,
            "status": int(product.status),
            "visibility": int(product.visibility),
            "is_saleable": 1 if product.is_saleable else 0,
            "has_required_options": 1 if product.has_required_options else 0,
        }
        for column in _OPTIONAL_COLUMNS:
            value = getattr(product, column)
            if column in _DECIMAL_COLUMNS and value is not None:
                value = format_decimal(Decimal(value))
            data[column] = value
        columns = list(data)
        with _store_errors("add_product", source_id=product.id):
            self.execute(self.dialect.upsert(self.PRODUCT_TABLE, columns, ["entity_id"]), tuple(data.values()))
            self.commit()

    def get_product(self, product_id: int) -> Product | None:
        return self.load_many([product_id], frozenset(_OPTIONAL_COLUMNS)).get(product_id)

    def get_product_by_sku(self, sku: str) -> Product | None:
        product_id = self.ids_for_skus([sku]).get(sku)
        return self.get_product(product_id) if product_id is not None else None

    def links_for_export(self, kind: LinkKind) -> list[tuple[str, list[ProductLink]]]:
        """``(source sku, links of kind)`` for every product that has any."""
        with _store_errors("links_for_export", link_kind=kind.code):
            rows = self.query(
                "SELECT src.sku AS sku, dst.sku AS linked_product_sku, "
                "dst.type_id AS linked_product_type, dst.entity_id AS linked_product_id, "
                "pos.value AS position, qty.value AS qty "
                "FROM product_link l "
                "JOIN product src ON src.entity_id = l.product_id "
                "JOIN product dst ON dst.entity_id = l.linked_product_id "
                "LEFT JOIN product_link_attribute_int pos "
                "    ON pos.link_id = l.link_id AND pos.attribute_code = 'position' "
                "LEFT JOIN product_link_attribute_decimal qty "
                "    ON qty.link_id = l.link_id AND qty.attribute_code = 'qty' "
                f"WHERE l.link_type_id = {self.ph(1)} ORDER BY src.sku, l.link_id",
                (kind.type_id,),
            )
        grouped: dict[str, list[ProductLink]] = {}
        for row in rows:
            grouped.setdefault(row["sku"], []).append(
                ProductLink(
                    sku=row["sku"],
                    link_type=kind.code,
                    linked_product_sku=row["linked_product_sku"],
                    linked_product_type=row["linked_product_type"],
                    position=row["position"] if row["position"] is not None else 0,
                    qty=coerce_qty(row["qty"]),
                    linked_product_id=row["linked_product_id"],
                )
            )
        return list(grouped.items())

    # -- internals ---------------------------------------------------------

    def _product_exists(self, product_id: int) -> bool:
        row = self.query_one(
            f"SELECT 1 AS found FROM {self.PRODUCT_TABLE} WHERE entity_id = {self.ph(1)}",
            (product_id,),
        )
        return row is not None

    def _delete_links(self, source_id: int, type_ids: Sequence[int] | None = None) -> None:
        where = f"product_id = {self.ph(1)}"
        params: tuple[Any, ...] = (source_id,)
        if type_ids is not None:
            if not type_ids:
                return
            where += f" AND {self.dialect.in_clause('link_type_id', len(type_ids))}"
            params += tuple(type_ids)
        link_ids = f"SELECT link_id FROM {self.LINK_TABLE} WHERE {where}"
        self.execute(f"DELETE FROM {self.INT_TABLE} WHERE link_id IN ({link_ids})", params)
        self.execute(f"DELETE FROM {self.DECIMAL_TABLE} WHERE link_id IN ({link_ids})", params)
        self.execute(f"DELETE FROM {self.LINK_TABLE} WHERE {where}", params)

    def _insert_link(self, source_id: int, linked_id: int, link: ProductLink) -> bool:
        kind = get_link_kind(link.link_type)
        cursor = self.execute(
            f"INSERT INTO {self.LINK_TABLE} (product_id, linked_product_id, link_type_id) "
            f"VALUES ({self.ph(3)}) "
            "ON CONFLICT (product_id, link_type_id, linked_product_id) DO NOTHING",
            (source_id, linked_id, kind.type_id),
        )
        if not cursor.rowcount:
            return False
        link_id = cursor.lastrowid
        self.execute(
            f"INSERT INTO {self.INT_TABLE} (link_id, attribute_code, value) VALUES ({self.ph(3)})",
            (link_id, "position", int(link.position or 0)),
        )
        if link.qty is not None:
            self.execute(
                f"INSERT INTO {self.DECIMAL_TABLE} (link_id, attribute_code, value) VALUES ({self.ph(3)})",
                (link_id, "qty", format_decimal(link.qty)),
            )
        return True

    def add_link(
        self,
        source_id: int,
        linked_id: int,
        kind: LinkKind,
        *,
        qty: Decimal | str | None = None,
        position: int | None = None,
    ) -> int:
        """Insert one raw link row; attribute rows only for given values.

        Returns the new ``link_id``.
        """
        with _store_errors("add_link", source_id=source_id, link_kind=kind.code):
            cursor = self.execute(
                f"INSERT INTO {self.LINK_TABLE} (product_id, linked_product_id, link_type_id) "
                f"VALUES ({self.ph(3)})",
                (source_id, linked_id, kind.type_id),
            )
            link_id = cursor.lastrowid
            if position is not None:
                self.execute(
                    f"INSERT INTO {self.INT_TABLE} (link_id, attribute_code, value) VALUES ({self.ph(3)})",
                    (link_id, "position", position),
                )
            if qty is not None:
                self.execute(
                    f"INSERT INTO {self.DECIMAL_TABLE} (link_id, attribute_code, value) VALUES ({self.ph(3)})",
                    (link_id, "qty", str(qty)),
                )
            self.commit()
        return link_id
