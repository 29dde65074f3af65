"""In-memory link store.

Same collaborator roles as :class:`~linkspine.store.sqlite.LinkStore`,
backed by dicts. Counts calls so callers can assert the one-fetch,
one-load property, and hands entities back sorted by id rather than in
request order, the way a set-based query would.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from linkspine.core.errors import SourceNotFoundError
from linkspine.domain.catalog.models import LinkKind, LinkRecord, Product, ProductLink, get_link_kind


@dataclass
class CallLog:
    """What the store was asked, in order."""

    fetch: list[tuple[int, str]] = field(default_factory=list)
    fetch_many: list[tuple[tuple[int, ...], str]] = field(default_factory=list)
    load_many: list[tuple[int, ...]] = field(default_factory=list)

    @property
    def load_calls(self) -> int:
        return len(self.load_many)

    @property
    def fetch_calls(self) -> int:
        return len(self.fetch) + len(self.fetch_many)

    def reset(self) -> None:
        self.fetch.clear()
        self.fetch_many.clear()
        self.load_many.clear()


class InMemoryStore:
    """Dict-backed products and raw link rows.

    Unlike the SQLite store, a source may hold the same linked id twice,
    which is how duplicate-row handling is exercised.
    """

    def __init__(self, products: Iterable[Product] = ()) -> None:
        self.products: dict[int, Product] = {p.id: p for p in products}
        self.records: dict[tuple[int, int], list[LinkRecord]] = {}
        self.calls = CallLog()

    # -- setup ---------------------------------------------------------------

    def add_product(self, product: Product) -> None:
        self.products[product.id] = product

    def remove_product(self, product_id: int) -> None:
        self.products.pop(product_id, None)

    def add_link(
        self,
        source_id: int,
        linked_id: int,
        kind: LinkKind,
        *,
        qty=None,
        position: int | None = None,
    ) -> None:
        self.records.setdefault((source_id, kind.type_id), []).append(
            LinkRecord(linked_id=linked_id, qty=qty, position=position, source_id=source_id)
        )

    # -- LinkRecordSource ----------------------------------------------------

    def fetch(self, source_id: int, kind: LinkKind) -> list[LinkRecord]:
        self.calls.fetch.append((source_id, kind.code))
        if source_id not in self.products:
            raise SourceNotFoundError(f"Product {source_id} does not exist")
        return list(self.records.get((source_id, kind.type_id), []))

    def fetch_many(self, source_ids: Iterable[int], kind: LinkKind) -> dict[int, list[LinkRecord]]:
        ids = tuple(source_ids)
        self.calls.fetch_many.append((ids, kind.code))
        return {
            source_id: list(self.records[(source_id, kind.type_id)])
            for source_id in ids
            if (source_id, kind.type_id) in self.records
        }

    # -- BulkEntityLoader ----------------------------------------------------

    def load_many(self, ids: Iterable[int], attributes: frozenset[str] = frozenset()) -> dict[int, Product]:
        unique = tuple(dict.fromkeys(ids))
        if not unique:
            return {}
        self.calls.load_many.append(unique)
        return {pid: self.products[pid] for pid in sorted(unique) if pid in self.products}

    # -- SkuResolver ---------------------------------------------------------

    def ids_for_skus(self, skus: Iterable[str]) -> dict[str, int]:
        wanted = set(skus)
        return {p.sku: p.id for p in self.products.values() if p.sku in wanted}

    # -- LinkWriter ----------------------------------------------------------

    def get_product_links(self, source_id: int) -> list[ProductLink]:
        source = self.products.get(source_id)
        if source is None:
            return []
        links: list[ProductLink] = []
        for (owner, type_id), records in self.records.items():
            if owner != source_id:
                continue
            kind = get_link_kind(type_id)
            for record in records:
                linked = self.products.get(record.linked_id)
                if linked is None:
                    continue
                links.append(
                    ProductLink(
                        sku=source.sku,
                        link_type=kind.code,
                        linked_product_sku=linked.sku,
                        linked_product_type=linked.type_id,
                        position=record.position or 0,
                        qty=record.qty,
                        linked_product_id=linked.id,
                    )
                )
        return links

    def save_product_links(
        self,
        source_id: int,
        links: Sequence[ProductLink],
        kinds: Iterable[LinkKind] | None = None,
    ) -> int:
        type_ids = None if kinds is None else {kind.type_id for kind in kinds}
        for key in [key for key in self.records if key[0] == source_id]:
            if type_ids is None or key[1] in type_ids:
                del self.records[key]
        if type_ids is not None:
            links = [link for link in links if get_link_kind(link.link_type).type_id in type_ids]
        sku_ids = self.ids_for_skus(link.linked_product_sku for link in links)
        written = 0
        for link in links:
            linked_id = link.linked_product_id or sku_ids.get(link.linked_product_sku)
            if linked_id is None:
                continue
            self.add_link(
                source_id,
                linked_id,
                get_link_kind(link.link_type),
                qty=link.qty,
                position=link.position,
            )
            written += 1
        return written
