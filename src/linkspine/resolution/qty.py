"""
Quantity normalization for link rows.

Storage may hold no quantity at all for a link (no joined attribute row),
an empty string, or a negative number entered by hand. Two call contexts
read quantities and they disagree on the default, on purpose:

    ┌──────────────┬────────────┬──────────┬───────────┐
    │ raw          │ MAP        │ DISPLAY  │           │
    ├──────────────┼────────────┼──────────┼───────────┤
    │ absent       │ 0.0        │ 1.0      │           │
    │ -3           │ 0.0        │ 1.0      │ clamped   │
    │ 0            │ 0.0        │ 1.0      │           │
    │ 2.5          │ 2.5        │ 2.5      │ unchanged │
    └──────────────┴────────────┴──────────┴───────────┘

MAP is used by raw id → qty maps and query responses; DISPLAY by rendered
parts lists, which never show "0 of this part".
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from linkspine.domain.catalog.enums import QtyContext

ZERO = Decimal("0")
ONE = Decimal("1")


def coerce_qty(raw: Any) -> Decimal | None:
    """Convert a stored quantity to Decimal; ``None`` when unusable.

    Accepts Decimal, int, float (via ``str`` to avoid binary noise) and
    numeric strings. Empty strings, NaN/infinite values and garbage are
    treated as absent.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, Decimal):
        value = raw
    else:
        text = str(raw).strip()
        if not text:
            return None
        try:
            value = Decimal(text.replace(",", ".")) if isinstance(raw, str) else Decimal(text)
        except InvalidOperation:
            return None
    if not value.is_finite():
        return None
    return value


@dataclass(frozen=True, slots=True)
class QtyPolicy:
    """Normalizes raw quantities for one call context."""

    context: QtyContext = QtyContext.DISPLAY

    @property
    def default(self) -> Decimal:
        return ONE if self.context == QtyContext.DISPLAY else ZERO

    def normalize(self, raw: Any) -> Decimal:
        """Clamp at zero, then apply the context default."""
        value = coerce_qty(raw)
        if value is None:
            return self.default
        value = max(ZERO, value)
        if self.context == QtyContext.DISPLAY and value <= ZERO:
            return ONE
        return value


MAP_QTY = QtyPolicy(QtyContext.MAP)
DISPLAY_QTY = QtyPolicy(QtyContext.DISPLAY)


def for_context(context: QtyContext) -> QtyPolicy:
    return DISPLAY_QTY if context == QtyContext.DISPLAY else MAP_QTY


def format_decimal(value: Decimal) -> str:
    """Plain decimal text without trailing zeros (``2.500`` → ``2.5``, ``1.0`` → ``1``)."""
    text = format(value.normalize(), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"
