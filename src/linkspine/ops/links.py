"""
Link operations.

Read and write paths for typed product links, shared by the CLI and the
API. Every function takes an :class:`OperationContext` and a request
dataclass and returns an :class:`OperationResult`.

Read paths (``get_links``, ``get_qty_map``, ``get_links_map``) never fail
because of link data: the pipeline already degrades store failures to an
empty result, which shows up here as a warning. Write paths surface
unknown products and unresolvable rows as failed results.
"""

from __future__ import annotations

from decimal import Decimal

from linkspine.core.errors import LinkSpineError, SourceNotFoundError
from linkspine.core.logging import get_logger
from linkspine.core.result import partition_results
from linkspine.domain.catalog.enums import QtyContext, ResolutionMode
from linkspine.domain.catalog.models import FilterPolicy, LinkKind, ProductLink, ResolvedItem, get_link_kind
from linkspine.links.codec import encode_links, linked_skus, links_from_field
from linkspine.links.reconcile import LinkReconciler
from linkspine.ops.context import OperationContext
from linkspine.ops.requests import (
    DuplicateLinksRequest,
    ExportLinksRequest,
    GetLinksRequest,
    ImportLinksRequest,
    LinksMapRequest,
    QtyMapRequest,
    SaveLinksRequest,
)
from linkspine.ops.responses import (
    DuplicateResult,
    ExportResult,
    ImportResult,
    LinkedItem,
    LinkSet,
    LinkSummary,
    RejectedRow,
    SavedLinks,
)
from linkspine.ops.result import OperationResult, start_timer
from linkspine.resolution.amounts import AmountSelector
from linkspine.resolution.pipeline import ResolutionPipeline
from linkspine.resolution.qty import for_context
from linkspine.store.sqlite import LinkStore

logger = get_logger(__name__)


def _store(ctx: OperationContext) -> LinkStore:
    return LinkStore(ctx.conn)


def _policy(ctx: OperationContext, request: GetLinksRequest) -> FilterPolicy:
    base = ctx.policy

    def pick(override: bool | None, default: bool) -> bool:
        return default if override is None else override

    return FilterPolicy(
        include_disabled=pick(request.include_disabled, base.include_disabled),
        include_all_products=pick(request.include_all, base.include_all_products),
        include_invisible=pick(request.include_invisible, base.include_invisible),
        attributes_to_select=base.attributes_to_select,
    )


def _qty(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


def _linked_item(item: ResolvedItem, selector: AmountSelector) -> LinkedItem:
    entity = item.entity
    amount = None
    if getattr(entity, "amount_incl_tax", None) is not None or getattr(entity, "amount_excl_tax", None) is not None:
        amount = float(selector.amount_for_display(entity))
    return LinkedItem(
        id=entity.id,
        sku=entity.sku,
        type_id=entity.type_id,
        name=entity.name,
        qty=float(item.qty),
        position=item.position,
        amount=amount,
    )


def _summaries(links: list[ProductLink], kind: LinkKind) -> list[LinkSummary]:
    return [
        LinkSummary(
            linked_sku=link.linked_product_sku,
            linked_id=link.linked_product_id,
            qty=_qty(link.qty),
            position=link.position,
        )
        for link in links
        if link.link_type == kind.code
    ]


# ------------------------------------------------------------------ #
# Read paths
# ------------------------------------------------------------------ #


def get_links(ctx: OperationContext, request: GetLinksRequest) -> OperationResult[LinkSet]:
    """Resolve the linked products of one source."""
    timer = start_timer()
    try:
        kind = get_link_kind(request.kind)
        mode = ResolutionMode(request.mode)
        qty_policy = for_context(QtyContext(request.qty_context))
    except (LinkSpineError, ValueError) as exc:
        return OperationResult.from_exception(exc, elapsed_ms=timer.elapsed_ms)

    store = _store(ctx)
    pipeline = ResolutionPipeline(store, store)
    result = pipeline.resolve(
        request.source_id,
        kind,
        _policy(ctx, request),
        mode,
        qty_policy=qty_policy,
    )

    selector = AmountSelector(ctx.tax_display_mode)
    link_set = LinkSet(
        source_id=request.source_id,
        kind=kind.code,
        items=[_linked_item(item, selector) for item in result.items],
        missing_ids=list(result.missing_ids),
        filtered_ids=list(result.filtered_ids),
        can_add_to_cart=ResolutionPipeline.can_add_to_cart(result.items),
        degraded=result.degraded,
    )
    warnings = [f"Link data unavailable: {result.error}"] if result.degraded else []
    metadata = {"store_id": request.store_id} if request.store_id is not None else None
    return OperationResult.ok(link_set, warnings=warnings, elapsed_ms=timer.elapsed_ms, metadata=metadata)


def get_qty_map(ctx: OperationContext, request: QtyMapRequest) -> OperationResult[dict[int, float]]:
    """Raw ``{linked_id: qty}`` without loading linked products."""
    timer = start_timer()
    try:
        kind = get_link_kind(request.kind)
    except LinkSpineError as exc:
        return OperationResult.from_exception(exc, elapsed_ms=timer.elapsed_ms)

    store = _store(ctx)
    qty_map = ResolutionPipeline(store, store).qty_map(request.source_id, kind)
    return OperationResult.ok(
        {linked_id: float(qty) for linked_id, qty in qty_map.items()},
        elapsed_ms=timer.elapsed_ms,
    )


def get_links_map(
    ctx: OperationContext, request: LinksMapRequest
) -> OperationResult[dict[str, dict[str, list[str]]]]:
    """``{source sku: {kind: [linked skus]}}`` for several sources at once."""
    timer = start_timer()
    try:
        kind = get_link_kind(request.kind)
    except LinkSpineError as exc:
        return OperationResult.from_exception(exc, elapsed_ms=timer.elapsed_ms)

    store = _store(ctx)
    try:
        sources = list(store.load_many(request.source_ids).values())
    except LinkSpineError as exc:
        logger.error("links_map_failed", link_kind=kind.code, error=exc.message)
        return OperationResult.ok(
            {}, warnings=[f"Link data unavailable: {exc.message}"], elapsed_ms=timer.elapsed_ms
        )
    mapped = ResolutionPipeline(store, store).resolve_many(sources, kind, ctx.policy)
    return OperationResult.ok(
        {
            sku: {code: [entity.sku for entity in entities] for code, entities in by_kind.items()}
            for sku, by_kind in mapped.items()
        },
        elapsed_ms=timer.elapsed_ms,
    )


# ------------------------------------------------------------------ #
# Write paths
# ------------------------------------------------------------------ #


def save_links(ctx: OperationContext, request: SaveLinksRequest) -> OperationResult[SavedLinks]:
    """Reconcile posted ``{id, qty, position}`` rows into the source's links."""
    timer = start_timer()
    try:
        kind = get_link_kind(request.kind)
        store = _store(ctx)
        reconciler = LinkReconciler(store, store)
        existing = store.get_product_links(request.source_id)
        links = reconciler.reconcile(request.source_id, existing, request.links, kind)

        written = 0
        if request.links is not None and not ctx.dry_run:
            written = store.save_product_links(request.source_id, links, kinds=(kind,))
        return OperationResult.ok(
            SavedLinks(
                source_id=request.source_id,
                kind=kind.code,
                links=_summaries(links, kind),
                written=written,
                dry_run=ctx.dry_run,
            ),
            elapsed_ms=timer.elapsed_ms,
        )
    except LinkSpineError as exc:
        logger.warning("save_links_rejected", source_id=request.source_id, error=exc.message)
        return OperationResult.from_exception(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", error=str(exc))
        return OperationResult.from_exception(exc, elapsed_ms=timer.elapsed_ms)


def export_links(ctx: OperationContext, request: ExportLinksRequest) -> OperationResult[ExportResult]:
    """``(sku, field)`` rows for every product with links of the kind."""
    timer = start_timer()
    try:
        kind = get_link_kind(request.kind)
        grouped = _store(ctx).links_for_export(kind)
        rows = [(sku, encode_links(links, kind)) for sku, links in grouped]
        return OperationResult.ok(
            ExportResult(kind=kind.code, column=kind.csv_column, rows=[r for r in rows if r[1]]),
            elapsed_ms=timer.elapsed_ms,
        )
    except LinkSpineError as exc:
        return OperationResult.from_exception(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", error=str(exc))
        return OperationResult.from_exception(exc, elapsed_ms=timer.elapsed_ms)


def import_links(ctx: OperationContext, request: ImportLinksRequest) -> OperationResult[ImportResult]:
    """Apply ``sku|qty|position`` fields, one per product.

    Rows naming an unknown product or an unknown linked sku are rejected
    and reported; the remaining rows are still applied. Skus are resolved
    in one lookup for the whole batch.
    """
    timer = start_timer()
    try:
        kind = get_link_kind(request.kind)
    except LinkSpineError as exc:
        return OperationResult.from_exception(exc, elapsed_ms=timer.elapsed_ms)

    store = _store(ctx)
    rows = [(sku, field) for sku, field in request.rows if field is not None and field.strip()]
    all_skus: set[str] = set()
    for sku, field in rows:
        all_skus.add(sku)
        all_skus.update(linked_skus(field))

    try:
        known_ids = store.ids_for_skus(sorted(all_skus))
    except LinkSpineError as exc:
        return OperationResult.from_exception(exc, elapsed_ms=timer.elapsed_ms)

    rejected: list[RejectedRow] = []
    products_updated = 0
    links_imported = 0
    for sku, field in rows:
        source_id = known_ids.get(sku)
        if source_id is None:
            rejected.append(RejectedRow(sku=sku, row=field, reason=f"Unknown product sku {sku!r}"))
            continue

        links, errors = partition_results(links_from_field(sku, field, known_ids, kind))
        for error in errors:
            rejected.append(
                RejectedRow(sku=sku, row=getattr(error, "row", None), reason=getattr(error, "reason", str(error)))
            )
        if not links:
            continue

        if not ctx.dry_run:
            try:
                store.save_product_links(source_id, links, kinds=(kind,))
            except LinkSpineError as exc:
                return OperationResult.from_exception(exc, elapsed_ms=timer.elapsed_ms)
        products_updated += 1
        links_imported += len(links)

    logger.info(
        "links_imported",
        link_kind=kind.code,
        products=products_updated,
        links=links_imported,
        rejected=len(rejected),
    )
    return OperationResult.ok(
        ImportResult(
            kind=kind.code,
            products_updated=products_updated,
            links_imported=links_imported,
            rejected=rejected,
            dry_run=ctx.dry_run,
        ),
        warnings=[f"{r.sku}: {r.reason}" for r in rejected],
        elapsed_ms=timer.elapsed_ms,
    )


def duplicate_links(ctx: OperationContext, request: DuplicateLinksRequest) -> OperationResult[DuplicateResult]:
    """Copy the links of one kind from a product to its duplicate."""
    timer = start_timer()
    try:
        kind = get_link_kind(request.kind)
        store = _store(ctx)
        duplicate = store.get_product(request.new_source_id)
        if duplicate is None:
            raise SourceNotFoundError(f"Product {request.new_source_id} does not exist").with_context(
                source_id=request.new_source_id, operation="duplicate"
            )
        copied = LinkReconciler(store, store).duplicate(request.source_id, duplicate.sku, kind)
        if copied and not ctx.dry_run:
            existing = [link for link in store.get_product_links(duplicate.id) if link.link_type == kind.code]
            store.save_product_links(duplicate.id, existing + copied, kinds=(kind,))
        return OperationResult.ok(
            DuplicateResult(
                source_id=request.source_id,
                new_source_id=request.new_source_id,
                kind=kind.code,
                copied=len(copied),
                dry_run=ctx.dry_run,
            ),
            elapsed_ms=timer.elapsed_ms,
        )
    except LinkSpineError as exc:
        return OperationResult.from_exception(exc, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", error=str(exc))
        return OperationResult.from_exception(exc, elapsed_ms=timer.elapsed_ms)
