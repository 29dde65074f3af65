"""
linkspine - typed product links, resolved in declared order.

Reads the link rows of a product, bulk-loads every linked product in one
round trip, filters them, restores the declared order and merges each
link's quantity and position back on.

Quick start::

    from linkspine import ResolutionPipeline, FilterPolicy, PARTLISTS
    from linkspine.ops.sqlite_conn import SqliteConnection
    from linkspine.store import LinkStore, init_store

    conn = SqliteConnection(":memory:")
    init_store(conn)
    store = LinkStore(conn)
    items = ResolutionPipeline(store, store).items_with_qty(42, PARTLISTS, FilterPolicy())
"""

__version__ = "0.1.0"

from linkspine.domain.catalog import (  # noqa: E402
    PARTLISTS,
    FilterPolicy,
    LinkKind,
    LinkRecord,
    Product,
    ProductLink,
    ResolutionResult,
    ResolvedItem,
)
from linkspine.resolution import AmountSelector, QtyPolicy, ResolutionPipeline  # noqa: E402

__all__ = [
    "__version__",
    "AmountSelector",
    "FilterPolicy",
    "LinkKind",
    "LinkRecord",
    "PARTLISTS",
    "Product",
    "ProductLink",
    "QtyPolicy",
    "ResolutionPipeline",
    "ResolutionResult",
    "ResolvedItem",
]
