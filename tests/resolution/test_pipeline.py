"""Tests for linkspine.resolution.pipeline (ResolutionPipeline).

Uses the in-memory store from conftest: FRAME-01 (id 1) declares parts
5, 2, 8 in that order with positions 2, 1, 0 and quantities 4, 2.5 and
none.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from structlog.testing import capture_logs

from linkspine.domain.catalog import (
    PARTLISTS,
    RELATED,
    FilterPolicy,
    LinkRecord,
    Product,
    ProductType,
    ResolutionMode,
    ResolvedItem,
)
from linkspine.resolution.pipeline import ResolutionPipeline, collect_links, has_identity
from linkspine.resolution.qty import DISPLAY_QTY, MAP_QTY


def _pipeline(store) -> ResolutionPipeline:
    return ResolutionPipeline(store, store)


class TestHelpers:
    @pytest.mark.parametrize(("source_id", "expected"), [(1, True), ("7", True), (0, False), (-3, False), (None, False), (True, False), ("x", False)])
    def test_has_identity(self, source_id, expected):
        assert has_identity(source_id) is expected

    def test_collect_links_first_slot_last_values(self):
        records = [
            LinkRecord(linked_id=5, qty=Decimal("1"), position=3),
            LinkRecord(linked_id=2, qty=Decimal("2"), position=1),
            LinkRecord(linked_id=5, qty=Decimal("9"), position=7),
            LinkRecord(linked_id=0, qty=Decimal("1")),
            LinkRecord(linked_id=-4),
        ]
        ids, qty_by_id, pos_by_id = collect_links(records)
        assert ids == [5, 2]
        assert qty_by_id[5] == Decimal("9")
        assert pos_by_id[5] == 7


class TestResolveOrder:
    def test_declaration_order_survives_sorted_load(self, frame_store):
        result = _pipeline(frame_store).resolve(1, PARTLISTS)
        assert result.entity_ids == [5, 2, 8]
        assert result.ids == (5, 2, 8)

    def test_position_mode_sorts_by_position(self, frame_store):
        result = _pipeline(frame_store).resolve(1, PARTLISTS, mode=ResolutionMode.POSITION)
        assert result.entity_ids == [8, 2, 5]
        assert [item.position for item in result] == [0, 1, 2]

    def test_position_ties_keep_declaration_order(self, memory_store):
        memory_store.add_link(1, 9, PARTLISTS, position=1)
        memory_store.add_link(1, 2, PARTLISTS, position=0)
        memory_store.add_link(1, 5, PARTLISTS, position=1)
        result = _pipeline(memory_store).resolve(1, PARTLISTS, mode=ResolutionMode.POSITION)
        assert result.entity_ids == [2, 9, 5]

    def test_missing_position_sorts_as_zero(self, memory_store):
        memory_store.add_link(1, 5, PARTLISTS, position=1)
        memory_store.add_link(1, 2, PARTLISTS)
        items = _pipeline(memory_store).items_with_qty(1, PARTLISTS)
        assert [(item.id, item.position) for item in items] == [(2, 0), (5, 1)]

    def test_kind_accepts_code_and_type_id(self, frame_store):
        pipeline = _pipeline(frame_store)
        assert pipeline.entity_ids(1, "partlists") == pipeline.entity_ids(1, 60) == [5, 2, 8]

    def test_other_kinds_are_separate(self, frame_store):
        frame_store.add_link(1, 9, RELATED)
        assert _pipeline(frame_store).entity_ids(1, RELATED) == [9]


class TestQuantities:
    def test_display_defaults_missing_qty_to_one(self, frame_store):
        items = _pipeline(frame_store).items_with_qty(1, PARTLISTS)
        assert {item.id: item.qty for item in items} == {8: Decimal("1"), 2: Decimal("2.5"), 5: Decimal("4")}

    def test_query_items_default_missing_qty_to_zero(self, frame_store):
        items = _pipeline(frame_store).query_items(1, PARTLISTS)
        assert {item.id: item.qty for item in items} == {8: Decimal("0"), 2: Decimal("2.5"), 5: Decimal("4")}

    def test_negative_qty_is_clamped(self, memory_store):
        memory_store.add_link(1, 2, PARTLISTS, qty=Decimal("-3"))
        pipeline = _pipeline(memory_store)
        assert pipeline.resolve(1, qty_policy=MAP_QTY).items[0].qty == Decimal("0")
        assert pipeline.resolve(1, qty_policy=DISPLAY_QTY).items[0].qty == Decimal("1")

    def test_qty_map_skips_the_load(self, frame_store):
        qty_map = _pipeline(frame_store).qty_map(1, PARTLISTS)
        assert qty_map == {5: Decimal("4"), 2: Decimal("2.5"), 8: Decimal("0")}
        assert frame_store.calls.load_calls == 0

    def test_qty_map_includes_ids_without_entity(self, frame_store):
        frame_store.add_link(1, 404, PARTLISTS, qty=Decimal("3"))
        assert _pipeline(frame_store).qty_map(1, PARTLISTS)[404] == Decimal("3")

    def test_duplicate_rows_keep_first_slot_and_last_values(self, memory_store):
        memory_store.add_link(1, 5, PARTLISTS, qty=Decimal("1"), position=0)
        memory_store.add_link(1, 2, PARTLISTS, qty=Decimal("1"), position=1)
        memory_store.add_link(1, 5, PARTLISTS, qty=Decimal("6"), position=4)
        result = _pipeline(memory_store).resolve(1, PARTLISTS)
        assert result.entity_ids == [5, 2]
        assert result.items[0].qty == Decimal("6")
        assert result.items[0].position == 4
        assert memory_store.calls.load_many == [(5, 2)]


class TestFiltering:
    @pytest.fixture
    def mixed_store(self, memory_store):
        for linked_id in (2, 3, 4, 6, 7, 404):
            memory_store.add_link(1, linked_id, PARTLISTS)
        memory_store.calls.reset()
        return memory_store

    def test_default_policy(self, mixed_store):
        result = _pipeline(mixed_store).resolve(1, PARTLISTS)
        assert result.entity_ids == [2, 7]
        assert result.missing_ids == (404,)
        assert result.filtered_ids == (3, 4, 6)

    def test_include_all_products_keeps_unsaleable(self, mixed_store):
        policy = FilterPolicy(include_all_products=True)
        assert _pipeline(mixed_store).entity_ids(1, PARTLISTS, policy) == [2, 6, 7]

    def test_include_disabled_keeps_disabled_but_not_hidden(self, mixed_store):
        policy = FilterPolicy(include_disabled=True)
        assert _pipeline(mixed_store).entity_ids(1, PARTLISTS, policy) == [2, 3, 6, 7]

    def test_admin_policy_keeps_everything_loaded(self, mixed_store):
        assert _pipeline(mixed_store).entity_ids(1, PARTLISTS, FilterPolicy.admin()) == [2, 3, 4, 6, 7]

    def test_default_policy_from_constructor(self, mixed_store):
        pipeline = ResolutionPipeline(mixed_store, mixed_store, default_policy=FilterPolicy.admin())
        assert 4 in pipeline.entity_ids(1, PARTLISTS)

    def test_filter_runs_after_a_single_load(self, mixed_store):
        _pipeline(mixed_store).resolve(1, PARTLISTS)
        assert mixed_store.calls.load_many == [(2, 3, 4, 6, 7, 404)]


class TestLoadCount:
    def test_one_fetch_and_one_load(self, frame_store):
        _pipeline(frame_store).resolve(1, PARTLISTS)
        assert frame_store.calls.fetch_calls == 1
        assert frame_store.calls.load_calls == 1

    def test_many_links_still_one_load(self, memory_store):
        for n in range(100, 160):
            memory_store.add_product(Product(id=n, sku=f"P-{n}"))
            memory_store.add_link(1, n, PARTLISTS)
        memory_store.calls.reset()
        result = _pipeline(memory_store).resolve(1, PARTLISTS)
        assert len(result) == 60
        assert memory_store.calls.load_calls == 1


class TestEmptyResults:
    @pytest.mark.parametrize("source_id", [None, 0, -1])
    def test_no_identity_makes_no_calls(self, frame_store, source_id):
        result = _pipeline(frame_store).resolve(source_id, PARTLISTS)
        assert not result
        assert result.degraded is False
        assert frame_store.calls.fetch_calls == 0
        assert frame_store.calls.load_calls == 0

    def test_no_links_makes_no_load(self, memory_store):
        result = _pipeline(memory_store).resolve(9, PARTLISTS)
        assert not result
        assert memory_store.calls.fetch_calls == 1
        assert memory_store.calls.load_calls == 0

    def test_unknown_source_is_empty(self, memory_store):
        result = _pipeline(memory_store).resolve(12345, PARTLISTS)
        assert not result
        assert result.degraded is False

    def test_missing_entities_are_skipped(self, frame_store):
        frame_store.remove_product(2)
        result = _pipeline(frame_store).resolve(1, PARTLISTS)
        assert result.entity_ids == [5, 8]
        assert result.missing_ids == (2,)


class TestDegradation:
    def test_store_failure_returns_empty_and_logs(self, failing_store):
        with capture_logs() as logs:
            result = _pipeline(failing_store).resolve(1, PARTLISTS)
        assert not result
        assert result.degraded is True
        assert result.error == "database is locked"
        events = [entry for entry in logs if entry["event"] == "link_resolution_failed"]
        assert len(events) == 1
        assert events[0]["log_level"] == "error"

    def test_loader_failure_degrades(self, frame_store, failing_store):
        result = ResolutionPipeline(frame_store, failing_store).resolve(1, PARTLISTS)
        assert result.degraded is True
        assert result.items == ()

    def test_qty_map_failure_is_empty(self, failing_store):
        assert _pipeline(failing_store).qty_map(1, PARTLISTS) == {}

    def test_resolve_many_failure_is_empty(self, failing_store):
        assert _pipeline(failing_store).resolve_many([Product(id=1, sku="FRAME-01")], PARTLISTS) == {}


class TestResolveMany:
    def test_single_fetch_and_load(self, frame_store, catalog):
        frame_store.add_link(9, 2, PARTLISTS)
        frame_store.add_link(9, 7, PARTLISTS)
        frame_store.calls.reset()
        sources = [p for p in catalog if p.id in (1, 9, 5)]

        mapped = _pipeline(frame_store).resolve_many(sources, PARTLISTS)

        assert {sku: [e.id for e in by_kind["partlists"]] for sku, by_kind in mapped.items()} == {
            "FRAME-01": [5, 2, 8],
            "SPACER-10": [2, 7],
        }
        assert frame_store.calls.fetch_calls == 1
        assert frame_store.calls.load_many == [(5, 2, 8, 7)]

    def test_sources_without_identity_are_ignored(self, frame_store):
        mapped = _pipeline(frame_store).resolve_many([Product(id=1, sku="FRAME-01"), Product(id=0, sku="NEW")])
        assert list(mapped) == ["FRAME-01"]

    def test_no_roots(self, frame_store):
        assert _pipeline(frame_store).resolve_many([]) == {}
        assert frame_store.calls.fetch_calls == 0


class TestCanAddToCart:
    def test_simple_saleable(self):
        assert ResolutionPipeline.can_add_to_cart([ResolvedItem(Product(id=1, sku="A"), Decimal("1"))])

    def test_composite_or_required_options_or_unsaleable(self):
        items = [
            ResolvedItem(Product(id=1, sku="A", type_id=ProductType.BUNDLE.value), Decimal("1")),
            ResolvedItem(Product(id=2, sku="B", has_required_options=True), Decimal("1")),
            ResolvedItem(Product(id=3, sku="C", is_saleable=False), Decimal("1")),
        ]
        assert ResolutionPipeline.can_add_to_cart(items) is False

    def test_accepts_plain_entities(self):
        assert ResolutionPipeline.can_add_to_cart([Product(id=1, sku="A")]) is True
        assert ResolutionPipeline.can_add_to_cart([]) is False
