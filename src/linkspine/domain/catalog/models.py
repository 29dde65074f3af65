"""
Linked-entity domain models (stdlib dataclass).

STDLIB ONLY - NO PYDANTIC.

Models:
    LinkKind: Tag distinguishing purposes of the shared link relation
    LinkRecord: One raw row of the relation (linked id, qty, position)
    Product: A catalog entity as returned by the bulk loader
    FilterPolicy: Inclusion rules applied after the bulk load
    ResolvedItem: Output element (entity + normalized qty + position)
    ResolutionResult: Everything one resolution call computed
    ProductLink: Write-side link (sku based, as posted/imported/exported)

Link records are read-only snapshots fetched fresh per resolution call;
resolved items are transient and owned by the caller. Nothing here is
persisted by the resolution core.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from linkspine.core.errors import UnknownLinkKindError
from linkspine.domain.catalog.enums import ProductStatus, ProductType, Visibility

# =============================================================================
# LinkKind - which purpose of the link relation
# =============================================================================


@dataclass(frozen=True, slots=True)
class LinkKind:
    """
    A link kind: fixed numeric tag plus the short code used at API/CSV
    boundaries.

    Example::

        PARTLISTS = LinkKind(type_id=60, code="partlists")
        PARTLISTS.csv_column  # "_partlists_"
    """

    type_id: int
    code: str

    def __post_init__(self) -> None:
        if self.type_id <= 0:
            raise ValueError(f"type_id must be positive, got {self.type_id}")
        if not self.code or not self.code.isidentifier():
            raise ValueError(f"code must be a short identifier, got {self.code!r}")

    @property
    def csv_column(self) -> str:
        """Import/export column holding this kind's ``sku|qty|position`` triples."""
        return f"_{self.code}_"

    def __str__(self) -> str:
        return self.code


RELATED = LinkKind(type_id=1, code="related")
UPSELL = LinkKind(type_id=4, code="upsell")
CROSSSELL = LinkKind(type_id=5, code="crosssell")
PARTLISTS = LinkKind(type_id=60, code="partlists")

_LINK_KINDS: dict[str, LinkKind] = {k.code: k for k in (RELATED, UPSELL, CROSSSELL, PARTLISTS)}


def register_link_kind(kind: LinkKind) -> LinkKind:
    """Add a link kind to the process-wide registry (idempotent)."""
    existing = _LINK_KINDS.get(kind.code)
    if existing is not None and existing != kind:
        raise ValueError(f"Link kind {kind.code!r} already registered with type_id {existing.type_id}")
    _LINK_KINDS[kind.code] = kind
    return kind


def get_link_kind(kind: str | int | LinkKind) -> LinkKind:
    """Look up a registered link kind by code, numeric tag or instance."""
    if isinstance(kind, LinkKind):
        return kind
    if isinstance(kind, int):
        for candidate in _LINK_KINDS.values():
            if candidate.type_id == kind:
                return candidate
        raise UnknownLinkKindError(kind)
    try:
        return _LINK_KINDS[kind]
    except KeyError:
        raise UnknownLinkKindError(kind) from None


def link_kinds() -> list[LinkKind]:
    """All registered link kinds, ordered by numeric tag."""
    return sorted(_LINK_KINDS.values(), key=lambda k: k.type_id)


def link_name_to_id() -> dict[str, int]:
    """Map CSV column names (``_partlists_``) to numeric link tags."""
    return {k.csv_column: k.type_id for k in link_kinds()}


# =============================================================================
# LinkRecord - one raw row of the relation
# =============================================================================


@dataclass(frozen=True, slots=True)
class LinkRecord:
    """
    One row of the link relation for a ``(source_id, kind)`` pair.

    ``qty`` and ``position`` are ``None`` when the joined attribute row is
    absent in storage. ``linked_id`` is not validated here: rows with a
    non-positive id are discarded by the pipeline.
    """

    linked_id: int
    qty: Decimal | None = None
    position: int | None = None
    source_id: int | None = None


# =============================================================================
# Product - a loaded catalog entity
# =============================================================================


@dataclass(frozen=True, slots=True)
class Product:
    """
    Catalog entity as produced by the bulk loader.

    Status, visibility and saleability flags and final price amounts are
    computed by the store; the resolution pipeline only reads them.
    Attributes the loader was not asked for are ``None``.
    """

    id: int
    sku: str
    type_id: str = ProductType.SIMPLE.value
    status: int = ProductStatus.ENABLED
    visibility: int = Visibility.BOTH
    is_saleable: bool = True
    name: str | None = None
    small_image: str | None = None
    thumbnail: str | None = None
    price: Decimal | None = None
    special_price: Decimal | None = None
    amount_incl_tax: Decimal | None = None
    amount_excl_tax: Decimal | None = None
    tax_class_id: int | None = None
    url_key: str | None = None
    has_required_options: bool = False

    @property
    def is_enabled(self) -> bool:
        return self.status == ProductStatus.ENABLED

    @property
    def is_composite(self) -> bool:
        try:
            return ProductType(self.type_id).is_composite
        except ValueError:
            return False

    def to_dict(self) -> dict[str, Any]:
        """Reference representation used at the query boundary."""
        return {
            "id": self.id,
            "sku": self.sku,
            "type_id": self.type_id,
            "name": self.name,
        }


# =============================================================================
# FilterPolicy - inclusion rules
# =============================================================================

# Fields loaded when disabled entities are explicitly requested
MINIMAL_ATTRIBUTES: frozenset[str] = frozenset(
    {"name", "sku", "small_image", "thumbnail", "price", "special_price", "status", "visibility"}
)

# Standard list-view set: display fields plus final price amounts
LIST_VIEW_ATTRIBUTES: frozenset[str] = MINIMAL_ATTRIBUTES | frozenset(
    {"amount_incl_tax", "amount_excl_tax", "tax_class_id", "url_key", "has_required_options"}
)


@dataclass(frozen=True, slots=True)
class FilterPolicy:
    """
    Immutable inclusion configuration for one resolution call.

    Attributes:
        include_disabled: Bypass status and saleability filtering entirely
        include_all_products: Bypass the "currently purchasable" filter but
            keep status filtering
        include_invisible: Bypass the catalog-visibility filter
        attributes_to_select: Fields the loader must populate; ``None``
            means MINIMAL_ATTRIBUTES when include_disabled, otherwise
            LIST_VIEW_ATTRIBUTES
    """

    include_disabled: bool = False
    include_all_products: bool = False
    include_invisible: bool = False
    attributes_to_select: frozenset[str] | None = None

    @property
    def attributes(self) -> frozenset[str]:
        if self.attributes_to_select:
            return frozenset(self.attributes_to_select)
        return MINIMAL_ATTRIBUTES if self.include_disabled else LIST_VIEW_ATTRIBUTES

    @classmethod
    def from_settings(cls, settings: Any) -> FilterPolicy:
        """Build the default policy from ``LinkSpineSettings``."""
        return cls(
            include_disabled=settings.show_disabled_products,
            include_all_products=settings.show_all_products,
            include_invisible=settings.show_invisible_products,
        )

    @classmethod
    def admin(cls) -> FilterPolicy:
        """Everything that is linked, as an admin screen shows it."""
        return cls(include_disabled=True, include_all_products=True, include_invisible=True)


# =============================================================================
# ResolvedItem / ResolutionResult - pipeline output
# =============================================================================


@dataclass(frozen=True, slots=True)
class ResolvedItem:
    """One resolved entity with its link metadata merged on."""

    entity: Any
    qty: Decimal
    position: int = 0

    @property
    def id(self) -> int:
        return self.entity.id

    def to_dict(self) -> dict[str, Any]:
        entity = self.entity.to_dict() if hasattr(self.entity, "to_dict") else {"id": self.id}
        return {"product": entity, "qty": float(self.qty), "position": self.position}


@dataclass(frozen=True)
class ResolutionResult:
    """
    Everything one resolution call computed, returned by value.

    Attributes:
        items: Resolved items in output order
        ids: Ordered-unique valid linked ids from the link rows
        missing_ids: Ids the bulk load returned no entity for
        filtered_ids: Ids loaded but rejected by the filter policy
        degraded: True when a store failure was swallowed
        error: Description of the swallowed failure
    """

    items: tuple[ResolvedItem, ...] = ()
    ids: tuple[int, ...] = ()
    missing_ids: tuple[int, ...] = ()
    filtered_ids: tuple[int, ...] = ()
    degraded: bool = False
    error: str | None = None

    @classmethod
    def empty(cls, *, error: str | None = None) -> ResolutionResult:
        return cls(degraded=error is not None, error=error)

    @property
    def entities(self) -> list[Any]:
        return [item.entity for item in self.items]

    @property
    def entity_ids(self) -> list[int]:
        return [item.id for item in self.items]

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[ResolvedItem]:
        return iter(self.items)

    def __bool__(self) -> bool:
        return bool(self.items)


# =============================================================================
# ProductLink - write side
# =============================================================================


@dataclass(frozen=True, slots=True)
class ProductLink:
    """
    A persisted or to-be-persisted link, addressed by skus.

    ``qty`` is ``None`` when no quantity is stored for the link.
    """

    sku: str
    link_type: str
    linked_product_sku: str
    linked_product_type: str = ProductType.SIMPLE.value
    position: int = 0
    qty: Decimal | None = None
    linked_product_id: int | None = None

    def with_sku(self, sku: str) -> ProductLink:
        """Same link owned by another source entity."""
        return ProductLink(
            sku=sku,
            link_type=self.link_type,
            linked_product_sku=self.linked_product_sku,
            linked_product_type=self.linked_product_type,
            position=self.position,
            qty=self.qty,
            linked_product_id=self.linked_product_id,
        )
