"""Tests for linkspine.ops.links and linkspine.ops.database."""

from __future__ import annotations

from decimal import Decimal

import pytest

from linkspine.domain.catalog import PARTLISTS, RELATED, FilterPolicy, LinkRecord, Product, TaxDisplayMode
from linkspine.ops.context import OperationContext
from linkspine.ops.database import initialize_database
from linkspine.ops.links import (
    duplicate_links,
    export_links,
    get_links,
    get_links_map,
    get_qty_map,
    import_links,
    save_links,
)
from linkspine.ops.requests import (
    DatabaseInitRequest,
    DuplicateLinksRequest,
    ExportLinksRequest,
    GetLinksRequest,
    ImportLinksRequest,
    LinksMapRequest,
    QtyMapRequest,
    SaveLinksRequest,
)
from linkspine.ops.result import NOT_FOUND, UNAVAILABLE, VALIDATION_FAILED, OperationResult
from linkspine.ops.sqlite_conn import SqliteConnection
from linkspine.store import LinkStore


@pytest.fixture
def ctx(frame_link_store) -> OperationContext:
    return OperationContext(conn=frame_link_store.conn)


class TestGetLinks:
    def test_position_sorted_with_display_qty(self, ctx):
        result = get_links(ctx, GetLinksRequest(source_id=1))
        assert result.success
        assert [(i.id, i.qty, i.position) for i in result.data.items] == [(8, 1.0, 0), (2, 2.5, 1), (5, 4.0, 2)]
        assert result.data.can_add_to_cart is True
        assert result.warnings == []

    def test_order_mode_with_map_qty(self, ctx):
        result = get_links(ctx, GetLinksRequest(source_id=1, mode="order", qty_context="map"))
        assert [(i.id, i.qty) for i in result.data.items] == [(5, 4.0), (2, 2.5), (8, 0.0)]

    def test_amounts_follow_tax_display_mode(self, frame_link_store):
        ctx = OperationContext(conn=frame_link_store.conn, tax_display_mode=TaxDisplayMode.INCLUDING_TAX)
        items = get_links(ctx, GetLinksRequest(source_id=1)).data.items
        assert {i.sku: i.amount for i in items} == {"WASHER-M4": 0.0, "BOLT-M4": 1.19, "NUT-M4": 0.6}

    def test_request_overrides_context_policy(self, frame_link_store):
        frame_link_store.add_link(1, 3, PARTLISTS, position=9)
        ctx = OperationContext(conn=frame_link_store.conn)
        assert 3 not in [i.id for i in get_links(ctx, GetLinksRequest(source_id=1)).data.items]
        result = get_links(ctx, GetLinksRequest(source_id=1, include_disabled=True))
        assert [i.id for i in result.data.items][-1] == 3

        admin = OperationContext(conn=frame_link_store.conn, policy=FilterPolicy.admin())
        result = get_links(admin, GetLinksRequest(source_id=1, include_disabled=False))
        assert 3 in result.data.filtered_ids

    def test_store_id_is_echoed(self, ctx):
        assert get_links(ctx, GetLinksRequest(source_id=1, store_id=2)).metadata == {"store_id": 2}

    def test_unknown_source_is_empty(self, ctx):
        result = get_links(ctx, GetLinksRequest(source_id=404))
        assert result.success
        assert result.data.items == []

    @pytest.mark.parametrize(
        "request_",
        [GetLinksRequest(source_id=1, kind="nope"), GetLinksRequest(source_id=1, mode="random")],
    )
    def test_bad_request(self, ctx, request_):
        result = get_links(ctx, request_)
        assert not result.success
        assert result.error.code == VALIDATION_FAILED

    def test_store_failure_degrades_with_warning(self, link_store):
        link_store.conn.execute("DROP TABLE product_link_attribute_int")
        result = get_links(OperationContext(conn=link_store.conn), GetLinksRequest(source_id=1))
        assert result.success
        assert result.data.degraded is True
        assert result.data.items == []
        assert result.warnings[0].startswith("Link data unavailable")


class TestMaps:
    def test_qty_map(self, ctx):
        result = get_qty_map(ctx, QtyMapRequest(source_id=1))
        assert result.data == {5: 4.0, 2: 2.5, 8: 0.0}

    def test_links_map(self, ctx, frame_link_store):
        frame_link_store.add_link(9, 2, PARTLISTS)
        result = get_links_map(ctx, LinksMapRequest(source_ids=(1, 9, 404)))
        assert result.data == {
            "FRAME-01": {"partlists": ["NUT-M4", "BOLT-M4", "WASHER-M4"]},
            "SPACER-10": {"partlists": ["BOLT-M4"]},
        }

    def test_links_map_degrades_when_products_unreadable(self, link_store):
        link_store.conn.execute("DROP TABLE product")
        result = get_links_map(OperationContext(conn=link_store.conn), LinksMapRequest(source_ids=(1, 9)))
        assert result.success
        assert result.data == {}
        assert result.warnings[0].startswith("Link data unavailable")


class TestSaveLinks:
    def test_replaces_kind_and_keeps_others(self, ctx, frame_link_store):
        result = save_links(
            ctx,
            SaveLinksRequest(source_id=1, links=[{"id": 2, "qty": 3, "position": 1}, {"id": 9, "qty": 1}]),
        )
        assert result.success
        assert result.data.written == 2
        assert [(s.linked_sku, s.qty) for s in result.data.links] == [("BOLT-M4", 3.0), ("SPACER-10", 1.0)]
        assert [r.linked_id for r in frame_link_store.fetch(1, PARTLISTS)] == [2, 9]
        assert [r.linked_id for r in frame_link_store.fetch(1, RELATED)] == [9]

    def test_dry_run_writes_nothing(self, frame_link_store):
        ctx = OperationContext(conn=frame_link_store.conn, dry_run=True)
        result = save_links(ctx, SaveLinksRequest(source_id=1, links=[]))
        assert result.success and result.data.dry_run
        assert result.data.written == 0
        assert len(frame_link_store.fetch(1, PARTLISTS)) == 3

    def test_unknown_linked_id(self, ctx):
        result = save_links(ctx, SaveLinksRequest(source_id=1, links=[{"id": 404}]))
        assert result.error.code == VALIDATION_FAILED
        assert result.error.details["linked_id"] == 404
        assert result.error.details["row"]["id"] == 404

    def test_unknown_source(self, ctx):
        result = save_links(ctx, SaveLinksRequest(source_id=404, links=[{"id": 2}]))
        assert result.error.code == NOT_FOUND

    def test_not_posted_changes_nothing(self, ctx, frame_link_store):
        result = save_links(ctx, SaveLinksRequest(source_id=1, links=None))
        assert result.success
        assert [r.linked_id for r in frame_link_store.fetch(1, PARTLISTS)] == [5, 2, 8]

    def test_links_of_unregistered_kinds_survive(self, catalog):
        conn = SqliteConnection(":memory:")
        try:
            initialize_database(OperationContext(conn=conn), DatabaseInitRequest())
            store = LinkStore(conn)
            for product in catalog:
                store.add_product(product)
            store.add_link(1, 2, RELATED)

            result = save_links(OperationContext(conn=conn), SaveLinksRequest(source_id=1, links=[{"id": 5}]))

            assert result.success
            assert [r.linked_id for r in store.fetch(1, PARTLISTS)] == [5]
            assert [r.linked_id for r in store.fetch(1, RELATED)] == [2]
        finally:
            conn.close()


class TestExportImport:
    def test_export(self, ctx):
        result = export_links(ctx, ExportLinksRequest())
        assert result.data.column == "_partlists_"
        assert result.data.rows == [("FRAME-01", "NUT-M4|4|2,BOLT-M4|2.5|1,WASHER-M4|1|0")]

    def test_import_applies_valid_rows_and_reports_the_rest(self, ctx, frame_link_store):
        result = import_links(
            ctx,
            ImportLinksRequest(
                rows=[
                    ("SPACER-10", "BOLT-M4|2|0,GHOST|1|1,NUT-M4"),
                    ("NOBODY", "BOLT-M4|1|0"),
                    ("FRAME-01", None),
                ]
            ),
        )
        assert result.success
        assert result.data.products_updated == 1
        assert result.data.links_imported == 2
        assert [(r.sku, r.row) for r in result.data.rejected] == [("SPACER-10", "GHOST|1|1"), ("NOBODY", "BOLT-M4|1|0")]
        assert len(result.warnings) == 2
        assert [(r.linked_id, r.qty) for r in frame_link_store.fetch(9, PARTLISTS)] == [(2, Decimal("2")), (5, None)]
        assert len(frame_link_store.fetch(1, PARTLISTS)) == 3

    def test_import_keeps_other_kinds(self, ctx, frame_link_store):
        import_links(ctx, ImportLinksRequest(rows=[("FRAME-01", "SPACER-10|1|0")]))
        assert [r.linked_id for r in frame_link_store.fetch(1, PARTLISTS)] == [9]
        assert [r.linked_id for r in frame_link_store.fetch(1, RELATED)] == [9]

    def test_export_then_import_is_stable(self, ctx, frame_link_store):
        rows = export_links(ctx, ExportLinksRequest()).data.rows
        import_links(ctx, ImportLinksRequest(rows=rows))
        assert export_links(ctx, ExportLinksRequest()).data.rows == [
            ("FRAME-01", "NUT-M4|4|2,BOLT-M4|2.5|1,WASHER-M4|1|0")
        ]


class TestDuplicate:
    def test_copies_links(self, ctx, frame_link_store):
        frame_link_store.add_product(Product(id=11, sku="FRAME-02"))
        result = duplicate_links(ctx, DuplicateLinksRequest(source_id=1, new_source_id=11))
        assert result.data.copied == 3
        assert frame_link_store.fetch(11, PARTLISTS) == [
            LinkRecord(linked_id=r.linked_id, qty=r.qty, position=r.position, source_id=11)
            for r in frame_link_store.fetch(1, PARTLISTS)
        ]

    def test_missing_duplicate(self, ctx):
        result = duplicate_links(ctx, DuplicateLinksRequest(source_id=1, new_source_id=404))
        assert result.error.code == NOT_FOUND


class TestDatabaseInit:
    def test_initialize(self):
        conn = SqliteConnection(":memory:")
        try:
            result = initialize_database(OperationContext(conn=conn), DatabaseInitRequest(kinds=("partlists", "related")))
            assert result.success
            assert "product_link" in result.data.tables_created
            assert result.data.kinds_registered == ["partlists", "related"]
        finally:
            conn.close()

    def test_dry_run(self):
        conn = SqliteConnection(":memory:")
        try:
            result = initialize_database(OperationContext(conn=conn, dry_run=True))
            assert result.data.dry_run is True
            conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
            assert conn.fetchall() == []
        finally:
            conn.close()

    def test_unknown_kind(self):
        conn = SqliteConnection(":memory:")
        try:
            result = initialize_database(OperationContext(conn=conn), DatabaseInitRequest(kinds=("nope",)))
            assert result.error.code == VALIDATION_FAILED
        finally:
            conn.close()


def test_operation_result_to_dict():
    result = OperationResult.fail(UNAVAILABLE, "down", retryable=True)
    assert result.to_dict() == {"success": False, "error": {"code": UNAVAILABLE, "message": "down", "retryable": True}}
