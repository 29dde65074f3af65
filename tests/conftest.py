"""
Shared pytest fixtures for linkspine tests.

This module provides:
- A small catalog: one frame product and the parts linked to it
- In-memory and SQLite link stores seeded with that catalog
- A store that fails every call, for degradation tests
- Quiet logging for the whole session

Catalog:
    1  FRAME-01      source product (configurable)
    2  BOLT-M4       simple, enabled, visible
    5  NUT-M4        simple, enabled, visible
    8  WASHER-M4     simple, enabled, visible
    9  SPACER-10     simple, enabled, visible
    3  GASKET-OLD    disabled
    4  SHIM-HIDDEN   not visible individually
    6  SEAL-OOS      not saleable
    7  KIT-CONFIG    configurable
"""

from __future__ import annotations

import sys
from decimal import Decimal
from pathlib import Path

import pytest

# Ensure linkspine package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from linkspine.core.errors import StoreUnavailableError
from linkspine.core.logging import configure_logging
from linkspine.domain.catalog import (
    PARTLISTS,
    RELATED,
    Product,
    ProductStatus,
    ProductType,
    Visibility,
)
from linkspine.ops.sqlite_conn import SqliteConnection
from linkspine.store import InMemoryStore, LinkStore, init_store


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests: api/cli/store are integration, everything else unit."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)
        if test_path.parts[0] in {"api", "cli", "store"}:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True, scope="session")
def _quiet_logging():
    configure_logging(level="WARNING", json_format=False)


# =============================================================================
# Catalog
# =============================================================================


def make_catalog() -> list[Product]:
    return [
        Product(
            id=1,
            sku="FRAME-01",
            type_id=ProductType.CONFIGURABLE.value,
            name="Bike frame",
            amount_incl_tax=Decimal("238.00"),
            amount_excl_tax=Decimal("200.00"),
        ),
        Product(
            id=2,
            sku="BOLT-M4",
            name="Bolt M4",
            amount_incl_tax=Decimal("1.19"),
            amount_excl_tax=Decimal("1.00"),
        ),
        Product(
            id=5,
            sku="NUT-M4",
            name="Nut M4",
            amount_incl_tax=Decimal("0.60"),
            amount_excl_tax=Decimal("0.50"),
        ),
        Product(id=8, sku="WASHER-M4", name="Washer M4", amount_excl_tax=Decimal("0.10")),
        Product(id=9, sku="SPACER-10", name="Spacer 10mm"),
        Product(id=3, sku="GASKET-OLD", name="Old gasket", status=ProductStatus.DISABLED),
        Product(id=4, sku="SHIM-HIDDEN", name="Shim", visibility=Visibility.NOT_VISIBLE_INDIVIDUALLY),
        Product(id=6, sku="SEAL-OOS", name="Seal", is_saleable=False),
        Product(id=7, sku="KIT-CONFIG", name="Kit", type_id=ProductType.CONFIGURABLE.value),
    ]


@pytest.fixture
def catalog() -> list[Product]:
    return make_catalog()


@pytest.fixture
def memory_store(catalog) -> InMemoryStore:
    """In-memory store with the catalog and no links."""
    return InMemoryStore(catalog)


@pytest.fixture
def frame_store(memory_store) -> InMemoryStore:
    """FRAME-01 declares parts 5, 2, 8 with positions 2, 1, 0."""
    memory_store.add_link(1, 5, PARTLISTS, qty=Decimal("4"), position=2)
    memory_store.add_link(1, 2, PARTLISTS, qty=Decimal("2.5"), position=1)
    memory_store.add_link(1, 8, PARTLISTS, qty=None, position=0)
    memory_store.calls.reset()
    return memory_store


class FailingStore:
    """Every collaborator call raises ``StoreUnavailableError``."""

    def __init__(self, message: str = "database is locked") -> None:
        self.message = message

    def fetch(self, source_id, kind):
        raise StoreUnavailableError(self.message)

    def fetch_many(self, source_ids, kind):
        raise StoreUnavailableError(self.message)

    def load_many(self, ids, attributes=frozenset()):
        raise StoreUnavailableError(self.message)


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


# =============================================================================
# SQLite
# =============================================================================


def seed_store(store: LinkStore, products: list[Product]) -> None:
    for product in products:
        store.add_product(product)


@pytest.fixture
def sqlite_conn():
    conn = SqliteConnection(":memory:")
    init_store(conn, (PARTLISTS, RELATED))
    yield conn
    conn.close()


@pytest.fixture
def link_store(sqlite_conn, catalog) -> LinkStore:
    """SQLite store with the catalog and no links."""
    store = LinkStore(sqlite_conn)
    seed_store(store, catalog)
    return store


@pytest.fixture
def frame_link_store(link_store) -> LinkStore:
    """Same links as ``frame_store``, plus one related link."""
    link_store.add_link(1, 5, PARTLISTS, qty="4", position=2)
    link_store.add_link(1, 2, PARTLISTS, qty="2.5", position=1)
    link_store.add_link(1, 8, PARTLISTS, position=0)
    link_store.add_link(1, 9, RELATED, position=0)
    return link_store


@pytest.fixture
def db_path(tmp_path, catalog) -> str:
    """SQLite file seeded like ``frame_link_store``."""
    path = str(tmp_path / "linkspine.db")
    conn = SqliteConnection(path)
    try:
        init_store(conn, (PARTLISTS, RELATED))
        store = LinkStore(conn)
        seed_store(store, catalog)
        store.add_link(1, 5, PARTLISTS, qty="4", position=2)
        store.add_link(1, 2, PARTLISTS, qty="2.5", position=1)
        store.add_link(1, 8, PARTLISTS, position=0)
        store.add_link(1, 9, RELATED, position=0)
    finally:
        conn.close()
    return path
