"""
Catalog domain primitives for linked-entity resolution.

STDLIB ONLY - NO PYDANTIC.

Models:
    LinkKind, LinkRecord, Product, FilterPolicy, ResolvedItem,
    ResolutionResult, ProductLink

Enums (in .enums):
    ProductStatus, Visibility, TaxDisplayMode, ResolutionMode,
    QtyContext, ProductType
"""

from linkspine.domain.catalog.enums import (
    VISIBLE_IN_CATALOG,
    ProductStatus,
    ProductType,
    QtyContext,
    ResolutionMode,
    TaxDisplayMode,
    Visibility,
)
from linkspine.domain.catalog.models import (
    CROSSSELL,
    LIST_VIEW_ATTRIBUTES,
    MINIMAL_ATTRIBUTES,
    PARTLISTS,
    RELATED,
    UPSELL,
    FilterPolicy,
    LinkKind,
    LinkRecord,
    Product,
    ProductLink,
    ResolutionResult,
    ResolvedItem,
    get_link_kind,
    link_kinds,
    link_name_to_id,
    register_link_kind,
)

__all__ = [
    # Models
    "LinkKind",
    "LinkRecord",
    "Product",
    "FilterPolicy",
    "ResolvedItem",
    "ResolutionResult",
    "ProductLink",
    # Link kinds
    "RELATED",
    "UPSELL",
    "CROSSSELL",
    "PARTLISTS",
    "get_link_kind",
    "link_kinds",
    "link_name_to_id",
    "register_link_kind",
    # Attribute sets
    "MINIMAL_ATTRIBUTES",
    "LIST_VIEW_ATTRIBUTES",
    # Enums
    "ProductStatus",
    "Visibility",
    "VISIBLE_IN_CATALOG",
    "TaxDisplayMode",
    "ResolutionMode",
    "QtyContext",
    "ProductType",
]
