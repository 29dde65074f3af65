"""Tests for linkspine.resolution.filters."""

import pytest

from linkspine.domain.catalog import FilterPolicy, Product, ProductStatus, Visibility
from linkspine.resolution.filters import is_eligible, split_eligible

ENABLED = Product(id=1, sku="A")
DISABLED = Product(id=2, sku="B", status=ProductStatus.DISABLED)
UNSALEABLE = Product(id=3, sku="C", is_saleable=False)
HIDDEN = Product(id=4, sku="D", visibility=Visibility.NOT_VISIBLE_INDIVIDUALLY)
SEARCH_ONLY = Product(id=5, sku="E", visibility=Visibility.IN_SEARCH)
DISABLED_HIDDEN = Product(
    id=6, sku="F", status=ProductStatus.DISABLED, visibility=Visibility.NOT_VISIBLE_INDIVIDUALLY
)


@pytest.mark.parametrize(
    ("entity", "policy", "expected"),
    [
        (ENABLED, FilterPolicy(), True),
        (DISABLED, FilterPolicy(), False),
        (UNSALEABLE, FilterPolicy(), False),
        (HIDDEN, FilterPolicy(), False),
        (SEARCH_ONLY, FilterPolicy(), False),
        # include_all keeps status filtering but drops saleability
        (UNSALEABLE, FilterPolicy(include_all_products=True), True),
        (DISABLED, FilterPolicy(include_all_products=True), False),
        # include_disabled bypasses status and saleability, not visibility
        (DISABLED, FilterPolicy(include_disabled=True), True),
        (UNSALEABLE, FilterPolicy(include_disabled=True), True),
        (DISABLED_HIDDEN, FilterPolicy(include_disabled=True), False),
        (DISABLED_HIDDEN, FilterPolicy(include_disabled=True, include_invisible=True), True),
        (HIDDEN, FilterPolicy(include_invisible=True), True),
    ],
)
def test_is_eligible(entity, policy, expected):
    assert is_eligible(entity, policy) is expected


def test_split_eligible_keeps_id_order():
    loaded = {e.id: e for e in (ENABLED, DISABLED, HIDDEN)}
    kept, missing, filtered = split_eligible([4, 1, 99, 2], loaded, FilterPolicy())
    assert kept == [1]
    assert missing == [99]
    assert filtered == [4, 2]
