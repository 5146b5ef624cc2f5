from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class SaleLineParams:
    """Seller-adjustable percentages for one line."""

    output_vat_percent: Decimal = Decimal("18")
    pis_percent: Decimal = Decimal("0.65")
    cofins_percent: Decimal = Decimal("3")
    fixed_expense_percent: Decimal = Decimal("10")
    margin_percent: Decimal = Decimal("25")

    @classmethod
    def from_dict(cls, d: dict) -> SaleLineParams:
        """Build params from a mapping of field name to percentage, ignoring unknown keys."""
        known = {k: Decimal(str(v)) for k, v in d.items() if k in cls.__dataclass_fields__}
        return cls(**known)

    @property
    def output_tax_fraction(self) -> Decimal:
        return (self.output_vat_percent + self.pis_percent + self.cofins_percent) / 100


@dataclass(frozen=True)
class SaleLineResult:
    net_unit_cost: Decimal
    cost_with_expenses: Decimal
    target_net_price: Decimal
    suggested_gross_price: Decimal
    output_vat_amount: Decimal
    pis_cofins_amount: Decimal
