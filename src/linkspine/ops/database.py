"""
Database operations.

Thin wrappers around :mod:`linkspine.store.schema` for creating the link
store and registering link kinds.
"""

from __future__ import annotations

from linkspine.core.errors import LinkSpineError
from linkspine.core.logging import get_logger
from linkspine.domain.catalog.models import get_link_kind
from linkspine.ops.context import OperationContext
from linkspine.ops.requests import DatabaseInitRequest
from linkspine.ops.responses import DatabaseInitResult
from linkspine.ops.result import OperationResult, start_timer
from linkspine.store.schema import apply_schema, register_link_kind, table_names

logger = get_logger(__name__)


def initialize_database(
    ctx: OperationContext,
    request: DatabaseInitRequest | None = None,
) -> OperationResult[DatabaseInitResult]:
    """Create the link store tables and register link kinds (idempotent)."""
    request = request or DatabaseInitRequest()
    timer = start_timer()

    try:
        kinds = [get_link_kind(code) for code in request.kinds]
    except LinkSpineError as exc:
        return OperationResult.from_exception(exc, elapsed_ms=timer.elapsed_ms)

    if ctx.dry_run:
        return OperationResult.ok(
            DatabaseInitResult(
                tables_created=table_names(),
                kinds_registered=[k.code for k in kinds],
                dry_run=True,
            ),
            elapsed_ms=timer.elapsed_ms,
        )

    try:
        tables = apply_schema(ctx.conn)
        for kind in kinds:
            register_link_kind(ctx.conn, kind)
        return OperationResult.ok(
            DatabaseInitResult(tables_created=tables, kinds_registered=[k.code for k in kinds]),
            elapsed_ms=timer.elapsed_ms,
        )
    except Exception as exc:
        logger.exception("op_failed", error=str(exc))
        return OperationResult.fail(
            "INTERNAL",
            f"Failed to create tables: {exc}",
            elapsed_ms=timer.elapsed_ms,
        )
