"""
Typed request objects for operations.

Each dataclass is the input contract of one operation function. Requests
carry validated, transport-agnostic data: no HTTP bodies, no Typer params.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# ------------------------------------------------------------------ #
# Database
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class DatabaseInitRequest:
    """Request for :func:`linkspine.ops.database.initialize_database`."""

    kinds: tuple[str, ...] = ("partlists",)


# ------------------------------------------------------------------ #
# Read paths
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class GetLinksRequest:
    """Request for :func:`linkspine.ops.links.get_links`.

    Attributes:
        source_id: Product owning the links.
        kind: Link kind code.
        mode: ``"position"`` (sorted by position) or ``"order"`` (declared order).
        qty_context: ``"display"`` (absent → 1) or ``"map"`` (absent → 0).
        include_disabled: Override the context policy when not ``None``.
        include_all: Override the context policy when not ``None``.
        include_invisible: Override the context policy when not ``None``.
        store_id: Locale/store context, echoed back in metadata.
    """

    source_id: int | None = None
    kind: str = "partlists"
    mode: str = "position"
    qty_context: str = "display"
    include_disabled: bool | None = None
    include_all: bool | None = None
    include_invisible: bool | None = None
    store_id: int | None = None


@dataclass(frozen=True, slots=True)
class QtyMapRequest:
    """Request for :func:`linkspine.ops.links.get_qty_map`."""

    source_id: int | None = None
    kind: str = "partlists"


@dataclass(frozen=True, slots=True)
class LinksMapRequest:
    """Request for :func:`linkspine.ops.links.get_links_map`."""

    source_ids: tuple[int, ...] = ()
    kind: str = "partlists"


# ------------------------------------------------------------------ #
# Write paths
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class SaveLinksRequest:
    """Request for :func:`linkspine.ops.links.save_links`.

    ``links`` holds posted rows ``{"id", "qty", "position"}``; ``None``
    means the kind was not posted and nothing changes.
    """

    source_id: int = 0
    links: list[dict[str, Any]] | None = field(default_factory=list)
    kind: str = "partlists"


@dataclass(frozen=True, slots=True)
class ExportLinksRequest:
    """Request for :func:`linkspine.ops.links.export_links`."""

    kind: str = "partlists"


@dataclass(frozen=True, slots=True)
class ImportLinksRequest:
    """Request for :func:`linkspine.ops.links.import_links`.

    ``rows`` are ``(product sku, field)`` pairs; a ``None`` or blank field
    leaves that product's links alone.
    """

    rows: list[tuple[str, str | None]] = field(default_factory=list)
    kind: str = "partlists"


@dataclass(frozen=True, slots=True)
class DuplicateLinksRequest:
    """Request for :func:`linkspine.ops.links.duplicate_links`."""

    source_id: int = 0
    new_source_id: int = 0
    kind: str = "partlists"
