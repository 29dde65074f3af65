"""
Canonical protocol definitions for linkspine.

This module defines the contracts of the collaborators the resolution
pipeline and the write side depend on. Every module that needs a
Connection, a LinkRecordSource or a BulkEntityLoader imports it from here.

Manifesto:
    The pipeline owns the algorithm, never the storage. By depending on
    shape rather than implementation:
    - **Decoupling:** The pipeline runs unchanged on SQLite or in memory
    - **Testability:** Any object matching the protocol works, including
      call-counting wrappers that prove the one-load-per-resolution bound
    - **Extension points:** Import, export and admin-form adapters call
      these contracts directly instead of wrapping another component

Architecture:
    ::

        protocols.py
        ├── Connection          — sync DB protocol (sqlite3 adapter)
        ├── LinkedEntity        — what the pipeline reads from a loaded entity
        ├── LinkRecordSource    — (source_id, kind) → [LinkRecord]
        ├── BulkEntityLoader    — {ids} → {id: entity}, one retrieval
        ├── SkuResolver         — {skus} → {sku: id}, one retrieval
        └── LinkWriter          — read/replace a source's persisted links

Guardrails:
    ❌ DON'T: Load entities one id at a time inside an implementation
    ✅ DO: Issue at most one retrieval per load_many call

    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts — implementations go in linkspine.store

Tags:
    protocol, connection, link-source, bulk-load, contracts, linkspine
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from linkspine.domain.catalog.models import LinkKind, LinkRecord, ProductLink

# ---------------------------------------------------------------------------
# Database Connection Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class Connection(Protocol):
    """
    Minimal SYNCHRONOUS connection interface for database operations.

    Implementations:
        ``linkspine.ops.sqlite_conn.SqliteConnection`` wraps ``sqlite3``.
    """

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute a single SQL statement."""
        ...

    def executemany(self, sql: str, params: list[tuple]) -> Any:
        """Execute SQL for each parameter set."""
        ...

    def fetchone(self) -> Any:
        """Fetch one row from the last query."""
        ...

    def fetchall(self) -> list[Any]:
        """Fetch all rows from the last query."""
        ...

    def commit(self) -> None:
        """Commit the current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback the current transaction."""
        ...


# ---------------------------------------------------------------------------
# Resolution collaborators
# ---------------------------------------------------------------------------


@runtime_checkable
class LinkedEntity(Protocol):
    """
    The part of a loaded entity the resolution pipeline looks at.

    Everything else about the entity is opaque to the pipeline and is
    carried through to the caller untouched.
    """

    id: int
    status: int
    visibility: int
    is_saleable: bool


@runtime_checkable
class LinkRecordSource(Protocol):
    """
    Fetches raw link rows for one source entity and one link kind.

    Contract:
        - Rows come back in storage-insertion order, which is not
          necessarily the desired display order.
        - Raises ``SourceNotFoundError`` only when the source entity itself
          does not exist; an existing entity without links yields ``[]``.
        - Side-effect free.
    """

    def fetch(self, source_id: int, kind: LinkKind) -> Sequence[LinkRecord]:
        ...

    def fetch_many(
        self, source_ids: Iterable[int], kind: LinkKind
    ) -> Mapping[int, Sequence[LinkRecord]]:
        """Fetch the link rows of several sources in one retrieval.

        Sources without links (or unknown sources) are absent from the map.
        """
        ...


@runtime_checkable
class BulkEntityLoader(Protocol):
    """
    Loads many entities by id in one round trip.

    Contract:
        - At most one retrieval per call regardless of ``len(ids)``.
        - Ids without an entity are absent from the returned map.
        - Empty ``ids`` yields ``{}`` without a retrieval.
        - No status/visibility filtering: the pipeline filters after load.
    """

    def load_many(
        self, ids: Iterable[int], attributes: frozenset[str]
    ) -> Mapping[int, LinkedEntity]:
        ...


@runtime_checkable
class SkuResolver(Protocol):
    """Maps entity skus to ids in one retrieval (import boundary)."""

    def ids_for_skus(self, skus: Iterable[str]) -> Mapping[str, int]:
        ...


@runtime_checkable
class LinkWriter(Protocol):
    """
    Reads and replaces the persisted links of a source entity.

    ``get_product_links`` returns the links of every kind.
    ``save_product_links`` replaces the rows of ``kinds`` only, or every
    row of the source when ``kinds`` is None.
    """

    def get_product_links(self, source_id: int) -> list[ProductLink]:
        ...

    def save_product_links(
        self,
        source_id: int,
        links: Sequence[ProductLink],
        kinds: Iterable[LinkKind] | None = None,
    ) -> int:
        ...


@runtime_checkable
class PriceInfo(Protocol):
    """Final price amounts as computed by the external pricing collaborator."""

    amount_incl_tax: Decimal | None
    amount_excl_tax: Decimal | None


__all__ = [
    "Connection",
    "LinkedEntity",
    "LinkRecordSource",
    "BulkEntityLoader",
    "SkuResolver",
    "LinkWriter",
    "PriceInfo",
]
