"""
Write-side link reconciliation.

The admin form posts the complete set of rows for ONE link kind as
``[{id, qty, position}, ...]``. Persisted links are stored per source
entity across every kind, so the posted set has to be merged into the
existing list:

    existing (all kinds)          posted (partlists)        result
    ───────────────────────       ──────────────────        ──────────────────────
    related   → A                                           related   → A
    partlists → 2                 2                         partlists → 2
    partlists → 5                 9                         partlists → 9

- posted rows without an id (empty, zero, negative) are skipped
- a posted id with no entity rejects the whole operation
- links of other kinds are never touched

Duplicating a product copies its links of one kind to the new sku,
skipping linked entities that no longer exist.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from linkspine.core.errors import InvalidLinkRowError, SourceNotFoundError
from linkspine.core.logging import get_logger
from linkspine.core.protocols import BulkEntityLoader, LinkRecordSource
from linkspine.domain.catalog.models import PARTLISTS, LinkKind, ProductLink, get_link_kind
from linkspine.resolution.pipeline import collect_links
from linkspine.resolution.qty import ZERO, coerce_qty

logger = get_logger(__name__)

# Enough to build a ProductLink for a loaded entity
_LINK_ATTRIBUTES = frozenset({"sku", "type_id", "status"})


@dataclass(frozen=True, slots=True)
class PostedLinkRow:
    """One row posted by the admin form."""

    id: int
    qty: Decimal = ZERO
    position: int = 0

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any] | Any) -> PostedLinkRow | None:
        """Parse a posted row; ``None`` for rows without an id.

        Raises:
            InvalidLinkRowError: qty or position is not a number
        """
        get = raw.get if isinstance(raw, Mapping) else lambda key: getattr(raw, key, None)
        raw_id = get("id")
        if raw_id in (None, "", 0, "0") or isinstance(raw_id, bool):
            return None
        try:
            linked_id = int(raw_id)
        except (TypeError, ValueError):
            raise InvalidLinkRowError(f"Linked id is not an integer: {raw_id!r}", row=raw) from None
        if linked_id <= 0:
            return None

        raw_qty = get("qty")
        qty = coerce_qty(raw_qty)
        if qty is None and raw_qty not in (None, ""):
            raise InvalidLinkRowError(f"Quantity is not a number: {raw_qty!r}", row=raw)

        raw_position = get("position")
        try:
            position = int(raw_position) if raw_position not in (None, "") else 0
        except (TypeError, ValueError):
            raise InvalidLinkRowError(f"Position is not an integer: {raw_position!r}", row=raw) from None

        return cls(id=linked_id, qty=max(ZERO, qty) if qty is not None else ZERO, position=position)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "qty": float(self.qty), "position": self.position}


def parse_posted_rows(rows: Iterable[Mapping[str, Any] | Any]) -> list[PostedLinkRow]:
    """Parse posted rows, dropping id-less ones. A repeated id keeps its
    first slot and takes the values of its last row."""
    parsed: dict[int, PostedLinkRow] = {}
    for raw in rows:
        row = PostedLinkRow.from_raw(raw)
        if row is not None:
            parsed[row.id] = row
    return list(parsed.values())


class LinkReconciler:
    """
    Builds the full link list of a source entity after a write.

    Args:
        source: Link rows of the original product (used by ``duplicate``)
        loader: Bulk entity loader used to resolve posted ids to skus
    """

    def __init__(self, source: LinkRecordSource, loader: BulkEntityLoader) -> None:
        self.source = source
        self.loader = loader

    def reconcile(
        self,
        source_id: int,
        existing_links: Sequence[ProductLink],
        posted_rows: Iterable[Mapping[str, Any] | Any] | None,
        kind: LinkKind | str | int = PARTLISTS,
    ) -> list[ProductLink]:
        """
        Merge a posted set of rows for ``kind`` into ``existing_links``.

        ``posted_rows=None`` means the form did not send this kind at all:
        the existing links come back unchanged. An empty list removes every
        link of ``kind``.

        Raises:
            SourceNotFoundError: ``source_id`` has no entity
            InvalidLinkRowError: a posted id has no entity, or a value is
                not a number
        """
        kind = get_link_kind(kind)
        if posted_rows is None:
            return list(existing_links)

        rows = parse_posted_rows(posted_rows)
        loaded = self.loader.load_many([source_id, *(row.id for row in rows)], _LINK_ATTRIBUTES)

        source = loaded.get(source_id)
        if source is None:
            raise SourceNotFoundError(f"Product {source_id} does not exist").with_context(
                source_id=source_id, link_kind=kind.code, operation="reconcile"
            )

        new_links: list[ProductLink] = []
        for row in rows:
            linked = loaded.get(row.id)
            if linked is None:
                raise InvalidLinkRowError(
                    f"Linked product {row.id} does not exist", row=row.to_dict()
                ).with_context(source_id=source_id, linked_id=row.id, link_kind=kind.code)
            new_links.append(
                ProductLink(
                    sku=source.sku,
                    link_type=kind.code,
                    linked_product_sku=linked.sku,
                    linked_product_type=linked.type_id,
                    position=row.position,
                    qty=row.qty,
                    linked_product_id=linked.id,
                )
            )

        kept = [link for link in existing_links if link.link_type != kind.code]
        logger.info(
            "links_reconciled",
            source_id=source_id,
            link_kind=kind.code,
            posted=len(new_links),
            removed=len(existing_links) - len(kept),
        )
        return kept + new_links

    def duplicate(
        self,
        source_id: int,
        duplicate_sku: str,
        kind: LinkKind | str | int = PARTLISTS,
    ) -> list[ProductLink]:
        """Links of ``kind`` re-owned by ``duplicate_sku``.

        Qty and position are copied as stored; linked entities that no
        longer exist are skipped.
        """
        kind = get_link_kind(kind)
        records = self.source.fetch(source_id, kind)
        ids, qty_by_id, pos_by_id = collect_links(records)
        if not ids:
            return []
        loaded = self.loader.load_many(ids, _LINK_ATTRIBUTES)

        links: list[ProductLink] = []
        for linked_id in ids:
            linked = loaded.get(linked_id)
            if linked is None:
                logger.debug("duplicate_link_skipped", source_id=source_id, linked_id=linked_id)
                continue
            links.append(
                ProductLink(
                    sku=duplicate_sku,
                    link_type=kind.code,
                    linked_product_sku=linked.sku,
                    linked_product_type=linked.type_id,
                    position=pos_by_id[linked_id] or 0,
                    qty=qty_by_id[linked_id],
                    linked_product_id=linked.id,
                )
            )
        return links
