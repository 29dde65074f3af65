"""
Linked-entity resolution pipeline.

Turns the raw link rows of one source entity into an ordered, filtered list
of loaded entities with their quantity and position merged on.

Manifesto:
    A bulk load is set-based: it has no opinion about order and it will
    happily return fewer entities than it was asked for. Display and export
    order is whatever the administrator declared, so the pipeline keeps the
    declared order on the side and restores it after the load.

    Link data is an enrichment. A storefront page must render even when the
    link tables are unreachable, so every read path degrades to an empty
    result and logs, rather than raising into the caller.

Architecture:
    ::

        resolve(source_id, kind, policy, mode)
            │
            ├─ 1. fetch        LinkRecordSource.fetch(source_id, kind)
            │                  no identity → empty, no loader call
            ├─ 2. dedupe       ordered-unique positive ids
            │                  qty/position: last occurrence wins
            ├─ 3. bulk load    BulkEntityLoader.load_many(ids, attrs)  (once)
            │                  ── failures in 1-3 → logged, empty result
            ├─ 4. filter       FilterPolicy (missing ids dropped silently)
            ├─ 5. order        declared order from step 2
            ├─ 6. merge        QtyPolicy.normalize(qty), position or 0
            └─ 7. re-sort      POSITION mode: stable sort by position

Call sites:
    ==================  ==========  ===========  ============================
    method              mode        qty context  used by
    ==================  ==========  ===========  ============================
    entities            ORDER       DISPLAY      product-list rendering
    entity_ids          ORDER       DISPLAY      collection providers
    items_with_qty      POSITION    DISPLAY      parts list with quantities
    query_items         POSITION    MAP          API / query responses
    qty_map             (no load)   MAP          raw id → qty lookups
    resolve_many        ORDER       DISPLAY      sku → kind → entities map
    ==================  ==========  ===========  ============================

Examples:
    >>> pipeline = ResolutionPipeline(store, store)
    >>> result = pipeline.resolve(42, PARTLISTS, FilterPolicy(), ResolutionMode.POSITION)
    >>> [(item.id, item.qty, item.position) for item in result]
    [(8, Decimal('1'), 0), (2, Decimal('2.5'), 1)]

Guardrails:
    ❌ DON'T: Load linked entities one id at a time
    ✅ DO: Collect every id first, then call ``load_many`` once

    ❌ DON'T: Trust the order of the loader's result
    ✅ DO: Walk the ids in declared order and look entities up by id

    ❌ DON'T: Cache results on the pipeline instance
    ✅ DO: Return a fresh ``ResolutionResult`` per call

Tags:
    resolution, links, ordering, bulk-load, filtering, linkspine
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from typing import Any

from linkspine.core.errors import SourceNotFoundError
from linkspine.core.logging import LogContext, get_logger
from linkspine.core.protocols import BulkEntityLoader, LinkRecordSource
from linkspine.domain.catalog.enums import QtyContext, ResolutionMode
from linkspine.domain.catalog.models import (
    PARTLISTS,
    FilterPolicy,
    LinkKind,
    LinkRecord,
    ResolutionResult,
    ResolvedItem,
    get_link_kind,
)
from linkspine.resolution.filters import split_eligible
from linkspine.resolution.qty import QtyPolicy, coerce_qty, for_context

logger = get_logger(__name__)


def has_identity(source_id: Any) -> bool:
    """A source that was never persisted has no usable id."""
    if source_id is None or isinstance(source_id, bool):
        return False
    try:
        return int(source_id) > 0
    except (TypeError, ValueError):
        return False


def _valid_id(raw: Any) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


def collect_links(
    records: Iterable[LinkRecord],
) -> tuple[list[int], dict[int, Decimal | None], dict[int, int | None]]:
    """Ordered-unique linked ids plus qty/position lookups.

    Ids keep their first-seen position; when an id repeats, the qty and
    position of its last occurrence win.
    """
    ids: list[int] = []
    qty_by_id: dict[int, Decimal | None] = {}
    pos_by_id: dict[int, int | None] = {}
    for record in records:
        linked_id = _valid_id(record.linked_id)
        if linked_id is None:
            continue
        if linked_id not in qty_by_id:
            ids.append(linked_id)
        qty_by_id[linked_id] = coerce_qty(record.qty)
        pos_by_id[linked_id] = record.position
    return ids, qty_by_id, pos_by_id


def _position(raw: int | None) -> int:
    if raw is None:
        return 0
    try:
        return int(raw)
    except (TypeError, ValueError):
        return 0


class ResolutionPipeline:
    """
    Resolves link rows into ordered, filtered, metadata-enriched entities.

    Holds references to its two collaborators and nothing else; every call
    builds its own maps, so one instance can serve concurrent callers.

    Args:
        source: Where link rows come from
        loader: Bulk entity loader
        default_policy: Policy used when a call passes none
    """

    def __init__(
        self,
        source: LinkRecordSource,
        loader: BulkEntityLoader,
        *,
        default_policy: FilterPolicy | None = None,
    ) -> None:
        self.source = source
        self.loader = loader
        self.default_policy = default_policy or FilterPolicy()

    # ------------------------------------------------------------------
    # Core algorithm
    # ------------------------------------------------------------------

    def resolve(
        self,
        source_id: int | None,
        kind: LinkKind | str | int = PARTLISTS,
        policy: FilterPolicy | None = None,
        mode: ResolutionMode = ResolutionMode.ORDER,
        *,
        qty_policy: QtyPolicy | None = None,
    ) -> ResolutionResult:
        """Run the full pipeline for one source entity and link kind."""
        kind = get_link_kind(kind)
        policy = policy or self.default_policy
        qty_policy = qty_policy or for_context(QtyContext.DISPLAY)

        if not has_identity(source_id):
            return ResolutionResult.empty()

        with LogContext(source_id=source_id, link_kind=kind.code):
            try:
                records = self.source.fetch(int(source_id), kind)
                ids, qty_by_id, pos_by_id = collect_links(records)
                if not ids:
                    return ResolutionResult.empty()
                loaded = self.loader.load_many(ids, policy.attributes)
            except SourceNotFoundError:
                logger.debug("link_source_not_found")
                return ResolutionResult.empty()
            except Exception as e:
                logger.error("link_resolution_failed", error=str(e), exc_info=True)
                return ResolutionResult.empty(error=str(e))

            kept, missing, filtered = split_eligible(ids, loaded, policy)
            if missing:
                logger.debug("linked_entities_missing", missing_ids=missing)

            items = [
                ResolvedItem(
                    entity=loaded[linked_id],
                    qty=qty_policy.normalize(qty_by_id[linked_id]),
                    position=_position(pos_by_id[linked_id]),
                )
                for linked_id in kept
            ]
            if mode == ResolutionMode.POSITION:
                items.sort(key=lambda item: item.position)

            return ResolutionResult(
                items=tuple(items),
                ids=tuple(ids),
                missing_ids=tuple(missing),
                filtered_ids=tuple(filtered),
            )

    # ------------------------------------------------------------------
    # Call-site variants
    # ------------------------------------------------------------------

    def entities(
        self,
        source_id: int | None,
        kind: LinkKind | str | int = PARTLISTS,
        policy: FilterPolicy | None = None,
    ) -> list[Any]:
        """Entities in link-declaration order."""
        return self.resolve(source_id, kind, policy, ResolutionMode.ORDER).entities

    def entity_ids(
        self,
        source_id: int | None,
        kind: LinkKind | str | int = PARTLISTS,
        policy: FilterPolicy | None = None,
    ) -> list[int]:
        return self.resolve(source_id, kind, policy, ResolutionMode.ORDER).entity_ids

    def items_with_qty(
        self,
        source_id: int | None,
        kind: LinkKind | str | int = PARTLISTS,
        policy: FilterPolicy | None = None,
    ) -> list[ResolvedItem]:
        """Position-sorted items for display; never shows a zero quantity."""
        result = self.resolve(
            source_id,
            kind,
            policy,
            ResolutionMode.POSITION,
            qty_policy=for_context(QtyContext.DISPLAY),
        )
        return list(result.items)

    def query_items(
        self,
        source_id: int | None,
        kind: LinkKind | str | int = PARTLISTS,
        policy: FilterPolicy | None = None,
    ) -> list[ResolvedItem]:
        """Position-sorted items for query responses (absent qty → 0)."""
        result = self.resolve(
            source_id,
            kind,
            policy,
            ResolutionMode.POSITION,
            qty_policy=for_context(QtyContext.MAP),
        )
        return list(result.items)

    def qty_map(
        self,
        source_id: int | None,
        kind: LinkKind | str | int = PARTLISTS,
    ) -> dict[int, Decimal]:
        """Raw ``{linked_id: qty}`` for a source, without loading entities."""
        kind = get_link_kind(kind)
        if not has_identity(source_id):
            return {}
        with LogContext(source_id=source_id, link_kind=kind.code):
            try:
                records = self.source.fetch(int(source_id), kind)
            except SourceNotFoundError:
                return {}
            except Exception as e:
                logger.error("link_resolution_failed", error=str(e), exc_info=True)
                return {}
        ids, qty_by_id, _ = collect_links(records)
        policy = for_context(QtyContext.MAP)
        return {linked_id: policy.normalize(qty_by_id[linked_id]) for linked_id in ids}

    def resolve_many(
        self,
        sources: Sequence[Any],
        kind: LinkKind | str | int = PARTLISTS,
        policy: FilterPolicy | None = None,
    ) -> dict[str, dict[str, list[Any]]]:
        """
        Linked entities for several source entities at once.

        Returns ``{source sku: {kind code: [entities]}}`` with entities in
        declaration order. Sources without identity or without surviving
        links are absent from the map. Issues one record fetch and one bulk
        load in total.
        """
        kind = get_link_kind(kind)
        policy = policy or self.default_policy

        roots: dict[int, Any] = {}
        for source in sources:
            if has_identity(getattr(source, "id", None)):
                roots[int(source.id)] = source
        if not roots:
            return {}

        with LogContext(link_kind=kind.code):
            try:
                fetched: Mapping[int, Sequence[LinkRecord]] = self.source.fetch_many(list(roots), kind)
                per_source = {
                    source_id: collect_links(records)[0]
                    for source_id, records in fetched.items()
                    if source_id in roots
                }
                union: list[int] = []
                seen: set[int] = set()
                for ids in per_source.values():
                    for linked_id in ids:
                        if linked_id not in seen:
                            seen.add(linked_id)
                            union.append(linked_id)
                if not union:
                    return {}
                loaded = self.loader.load_many(union, policy.attributes)
            except Exception as e:
                logger.error("link_resolution_failed", error=str(e), exc_info=True)
                return {}

        result: dict[str, dict[str, list[Any]]] = {}
        for source_id, ids in per_source.items():
            kept, _, _ = split_eligible(ids, loaded, policy)
            if kept:
                sku = roots[source_id].sku
                result[sku] = {kind.code: [loaded[linked_id] for linked_id in kept]}
        return result

    # ------------------------------------------------------------------
    # Helpers for renderers
    # ------------------------------------------------------------------

    @staticmethod
    def can_add_to_cart(items: Iterable[ResolvedItem | Any]) -> bool:
        """True if at least one resolved entity can go straight into a cart.

        Composite entities and entities with required options need a choice
        from the shopper first.
        """
        for item in items:
            entity = item.entity if isinstance(item, ResolvedItem) else item
            if getattr(entity, "is_composite", False):
                continue
            if getattr(entity, "has_required_options", False):
                continue
            if entity.is_saleable:
                return True
        return False
