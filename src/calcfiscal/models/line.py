from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class TaxableLine:
    """One purchased-invoice item after normalization. Never changes after load."""

    line_number: int
    description: str
    ncm: str
    cst: str
    cfop: str
    tax_base: Decimal  # vBC
    origin_rate: Decimal  # pICMS
    vat_charged: Decimal  # vICMS
    quantity: Decimal = Decimal("1")  # qCom
    product_value: Decimal = Decimal("0")  # vProd
    ipi_value: Decimal = Decimal("0")  # vIPI


@dataclass(frozen=True)
class ComputedLine:
    """A TaxableLine with the entry-tax results derived for one destination state."""

    line: TaxableLine
    credit_eligible: bool
    icms_credit: Decimal
    difal: Decimal
    substitution: bool
    method: str | None  # None when no rule exists for the state
    rule_state_applied: bool = False
    fcp: Decimal = Decimal("0")

    @property
    def line_number(self) -> int:
        return self.line.line_number

    @property
    def description(self) -> str:
        return self.line.description

    @property
    def tax_base(self) -> Decimal:
        return self.line.tax_base

    @property
    def origin_rate(self) -> Decimal:
        return self.line.origin_rate

    @property
    def vat_charged(self) -> Decimal:
        return self.line.vat_charged
