from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from calcfiscal.models.invoice import Invoice
from calcfiscal.models.line import ComputedLine


@dataclass(frozen=True)
class Totals:
    tax_base: Decimal = Decimal("0")
    icms_credit: Decimal = Decimal("0")
    difal: Decimal = Decimal("0")
    vat_charged: Decimal = Decimal("0")

    def __add__(self, other: Totals) -> Totals:
        if not isinstance(other, Totals):
            return NotImplemented
        return Totals(
            tax_base=self.tax_base + other.tax_base,
            icms_credit=self.icms_credit + other.icms_credit,
            difal=self.difal + other.difal,
            vat_charged=self.vat_charged + other.vat_charged,
        )


def aggregate_lines(lines: Iterable[ComputedLine]) -> Totals:
    totals = Totals()
    for line in lines:
        totals = totals + Totals(line.tax_base, line.icms_credit, line.difal, line.vat_charged)
    return totals


def aggregate_invoice(invoice: Invoice) -> Totals:
    """Sub-totals of a single invoice."""
    return aggregate_lines(invoice.lines)


def aggregate(invoices: Iterable[Invoice]) -> Totals:
    """Fold every line of every invoice. Always computed on demand."""
    totals = Totals()
    for invoice in invoices:
        totals = totals + aggregate_invoice(invoice)
    return totals
