"""
Typed response objects for operations.

Payloads carried inside :class:`~linkspine.ops.result.OperationResult`.
Plain data only: no HTTP status codes, no console formatting.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class DatabaseInitResult:
    """Result payload for :func:`linkspine.ops.database.initialize_database`."""

    tables_created: list[str]
    kinds_registered: list[str] = field(default_factory=list)
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class LinkedItem:
    """One resolved linked product."""

    id: int
    sku: str
    type_id: str
    name: str | None
    qty: float
    position: int
    amount: float | None = None

    def to_query_dict(self) -> dict[str, Any]:
        """``{product, qty, position}`` shape of the query boundary."""
        return {
            "product": {"id": self.id, "sku": self.sku, "type_id": self.type_id, "name": self.name},
            "qty": self.qty,
            "position": self.position,
        }


@dataclass(frozen=True, slots=True)
class LinkSet:
    """Result payload for :func:`linkspine.ops.links.get_links`."""

    source_id: int | None
    kind: str
    items: list[LinkedItem] = field(default_factory=list)
    missing_ids: list[int] = field(default_factory=list)
    filtered_ids: list[int] = field(default_factory=list)
    can_add_to_cart: bool = False
    degraded: bool = False


@dataclass(frozen=True, slots=True)
class LinkSummary:
    """A persisted link of one kind, as written."""

    linked_sku: str
    linked_id: int | None
    qty: float | None
    position: int


@dataclass(frozen=True, slots=True)
class SavedLinks:
    """Result payload for :func:`linkspine.ops.links.save_links`."""

    source_id: int
    kind: str
    links: list[LinkSummary] = field(default_factory=list)
    written: int = 0
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class ExportResult:
    """Result payload for :func:`linkspine.ops.links.export_links`."""

    kind: str
    column: str
    rows: list[tuple[str, str]] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class RejectedRow:
    """An import triple that was skipped."""

    sku: str
    row: str | None
    reason: str


@dataclass(frozen=True, slots=True)
class ImportResult:
    """Result payload for :func:`linkspine.ops.links.import_links`."""

    kind: str
    products_updated: int = 0
    links_imported: int = 0
    rejected: list[RejectedRow] = field(default_factory=list)
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class DuplicateResult:
    """Result payload for :func:`linkspine.ops.links.duplicate_links`."""

    source_id: int
    new_source_id: int
    kind: str
    copied: int = 0
    dry_run: bool = False
