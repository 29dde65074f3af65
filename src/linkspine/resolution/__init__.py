"""
Resolution core: link rows in, ordered and filtered entities out.

Modules:
    pipeline: ResolutionPipeline (fetch, dedupe, bulk load, filter, order, merge)
    filters: FilterPolicy evaluation against loaded entities
    qty: QtyPolicy (clamping and per-context defaults)
    amounts: AmountSelector (tax-inclusive or base display amount)
"""

from linkspine.resolution.amounts import AmountSelector
from linkspine.resolution.filters import is_eligible, split_eligible
from linkspine.resolution.pipeline import ResolutionPipeline, collect_links, has_identity
from linkspine.resolution.qty import DISPLAY_QTY, MAP_QTY, QtyPolicy, coerce_qty, format_decimal

__all__ = [
    "AmountSelector",
    "DISPLAY_QTY",
    "MAP_QTY",
    "QtyPolicy",
    "ResolutionPipeline",
    "coerce_qty",
    "collect_links",
    "format_decimal",
    "has_identity",
    "is_eligible",
    "split_eligible",
]
