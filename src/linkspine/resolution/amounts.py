"""Display amount selection given the store's tax display mode."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from linkspine.domain.catalog.enums import TaxDisplayMode
from linkspine.resolution.qty import ZERO

_INCLUDING = frozenset({TaxDisplayMode.INCLUDING_TAX, TaxDisplayMode.BOTH})


@dataclass(frozen=True, slots=True)
class AmountSelector:
    """Chooses which precomputed final amount an entity is shown with.

    The amounts themselves come from the external pricing collaborator;
    a missing amount reads as zero.
    """

    mode: TaxDisplayMode = TaxDisplayMode.EXCLUDING_TAX

    def amount_for_display(self, entity: Any, mode: TaxDisplayMode | int | None = None) -> Decimal:
        mode = TaxDisplayMode(mode) if mode is not None else self.mode
        if mode in _INCLUDING:
            amount = entity.amount_incl_tax
        else:
            amount = entity.amount_excl_tax
        return amount if amount is not None else ZERO

    def line_total(self, entity: Any, qty: Decimal, mode: TaxDisplayMode | int | None = None) -> Decimal:
        """Unit amount times the required build quantity."""
        return self.amount_for_display(entity, mode) * qty

    @classmethod
    def from_settings(cls, settings: Any) -> AmountSelector:
        return cls(mode=TaxDisplayMode(settings.tax_display_mode))
