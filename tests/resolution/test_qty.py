"""Tests for linkspine.resolution.qty."""

from decimal import Decimal

import pytest

from linkspine.domain.catalog import QtyContext
from linkspine.resolution.qty import DISPLAY_QTY, MAP_QTY, ONE, ZERO, coerce_qty, for_context, format_decimal


class TestCoerceQty:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (Decimal("2.5"), Decimal("2.5")),
            (3, Decimal("3")),
            (0.1, Decimal("0.1")),
            ("4", Decimal("4")),
            (" 1,5 ", Decimal("1.5")),
            ("-2", Decimal("-2")),
        ],
    )
    def test_numeric(self, raw, expected):
        assert coerce_qty(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "abc", "NaN", "inf", True])
    def test_unusable(self, raw):
        assert coerce_qty(raw) is None


class TestQtyPolicy:
    @pytest.mark.parametrize(
        ("raw", "map_qty", "display_qty"),
        [
            (None, ZERO, ONE),
            ("-3", ZERO, ONE),
            ("0", ZERO, ONE),
            ("2.5", Decimal("2.5"), Decimal("2.5")),
            ("junk", ZERO, ONE),
        ],
    )
    def test_normalize(self, raw, map_qty, display_qty):
        assert MAP_QTY.normalize(raw) == map_qty
        assert DISPLAY_QTY.normalize(raw) == display_qty

    def test_never_negative(self):
        assert MAP_QTY.normalize(Decimal("-0.5")) >= ZERO

    def test_for_context(self):
        assert for_context(QtyContext.MAP) is MAP_QTY
        assert for_context(QtyContext.DISPLAY) is DISPLAY_QTY


@pytest.mark.parametrize(
    ("value", "text"),
    [(Decimal("2.500"), "2.5"), (Decimal("1.0"), "1"), (Decimal("10"), "10"), (Decimal("0"), "0"), (Decimal("1E+1"), "10")],
)
def test_format_decimal(value, text):
    assert format_decimal(value) == text
