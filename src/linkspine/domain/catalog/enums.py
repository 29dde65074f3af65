"""
Catalog enums for linked-entity resolution.

STDLIB ONLY - NO PYDANTIC.

Numeric values match the catalog store the entities come from, so rows can
be compared against these enums without translation.
"""

from enum import Enum, IntEnum


class ProductStatus(IntEnum):
    """Entity status flag as stored in the catalog."""

    ENABLED = 1
    DISABLED = 2


class Visibility(IntEnum):
    """Catalog visibility of an entity."""

    NOT_VISIBLE_INDIVIDUALLY = 1
    IN_CATALOG = 2
    IN_SEARCH = 3
    BOTH = 4


# Visibilities that make an entity discoverable on listing pages
VISIBLE_IN_CATALOG: frozenset[int] = frozenset({Visibility.IN_CATALOG, Visibility.BOTH})


class TaxDisplayMode(IntEnum):
    """Store configuration for how prices are shown."""

    EXCLUDING_TAX = 1
    INCLUDING_TAX = 2
    BOTH = 3


class ResolutionMode(str, Enum):
    """Output ordering of a resolution call.

    ORDER: entities in link-declaration order.
    POSITION: stable sort by the explicit position field, ties broken by
    declaration order.
    """

    ORDER = "order"
    POSITION = "position"


class QtyContext(str, Enum):
    """Call context deciding the default for a missing quantity.

    MAP: raw id → qty maps and query responses; absent → 0.0.
    DISPLAY: rendered parts lists; absent or non-positive → 1.0.
    """

    MAP = "map"
    DISPLAY = "display"


class ProductType(str, Enum):
    """Entity type codes; composite types cannot be added to cart directly."""

    SIMPLE = "simple"
    VIRTUAL = "virtual"
    DOWNLOADABLE = "downloadable"
    CONFIGURABLE = "configurable"
    BUNDLE = "bundle"
    GROUPED = "grouped"

    @property
    def is_composite(self) -> bool:
        return self in (ProductType.CONFIGURABLE, ProductType.BUNDLE, ProductType.GROUPED)
