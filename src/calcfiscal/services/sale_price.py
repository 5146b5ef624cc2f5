"""Suggested resale price from entry net cost, expenses, margin and output taxes.

The price is the gross amount whose net-of-tax portion equals the target net
price::

    gross = cost * (1 + expenses) * (1 + margin) / (1 - (icms + pis + cofins))
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from decimal import Decimal

from calcfiscal.models.invoice import Invoice
from calcfiscal.models.line import ComputedLine
from calcfiscal.models.sale import SaleLineParams, SaleLineResult
from calcfiscal.services.exceptions import UndefinedPriceFormationError

logger = logging.getLogger(__name__)

LineKey = tuple[str, int]  # (document_key, line_number)

_HUNDRED = Decimal("100")


def compute_price(
    entry_line: ComputedLine,
    params: SaleLineParams,
    *,
    document_key: str | None = None,
) -> SaleLineResult:
    """Compute the suggested gross sale price for one entry line.

    Raises UndefinedPriceFormationError when output taxes take 100% or more of
    the price.
    """
    line = entry_line.line
    net_unit_cost = (line.product_value + line.ipi_value - entry_line.icms_credit) / line.quantity
    cost_with_expenses = net_unit_cost * (1 + params.fixed_expense_percent / _HUNDRED)
    target_net_price = cost_with_expenses * (1 + params.margin_percent / _HUNDRED)

    fraction = params.output_tax_fraction
    if fraction >= 1:
        raise UndefinedPriceFormationError(fraction, document_key, line.line_number)

    gross = target_net_price / (1 - fraction)
    return SaleLineResult(
        net_unit_cost=net_unit_cost,
        cost_with_expenses=cost_with_expenses,
        target_net_price=target_net_price,
        suggested_gross_price=gross,
        output_vat_amount=gross * params.output_vat_percent / _HUNDRED,
        pis_cofins_amount=gross * (params.pis_percent + params.cofins_percent) / _HUNDRED,
    )


def compute_prices(
    invoices: Iterable[Invoice],
    params_by_line: dict[LineKey, SaleLineParams],
    default: SaleLineParams | None = None,
) -> dict[LineKey, SaleLineResult | UndefinedPriceFormationError]:
    """Price every line, reporting undefined prices per line without stopping."""
    default = default or SaleLineParams()
    results: dict[LineKey, SaleLineResult | UndefinedPriceFormationError] = {}
    for invoice in invoices:
        for entry_line in invoice.lines:
            key = (invoice.document_key, entry_line.line_number)
            params = params_by_line.get(key, default)
            try:
                results[key] = compute_price(entry_line, params, document_key=invoice.document_key)
            except UndefinedPriceFormationError as exc:
                logger.warning("%s", exc)
                results[key] = exc
    return results


class PricingSheet:
    """Per-line seller parameters and their latest price result.

    Lines are independent: editing one line's parameters recomputes only that
    line.
    """

    def __init__(self, default: SaleLineParams | None = None) -> None:
        self.default = default or SaleLineParams()
        self._entries: dict[LineKey, ComputedLine] = {}
        self._params: dict[LineKey, SaleLineParams] = {}
        self._results: dict[LineKey, SaleLineResult | UndefinedPriceFormationError] = {}

    def sync(self, invoices: Iterable[Invoice]) -> None:
        """Align the sheet with the loaded invoices.

        New lines start with the default parameters, lines of removed invoices
        are dropped, and lines whose entry computation changed are repriced.
        Parameters already edited for a surviving line are kept.
        """
        entries: dict[LineKey, ComputedLine] = {}
        for invoice in invoices:
            for entry_line in invoice.lines:
                entries[(invoice.document_key, entry_line.line_number)] = entry_line

        for key in list(self._entries):
            if key not in entries:
                del self._entries[key]
                self._params.pop(key, None)
                self._results.pop(key, None)

        for key, entry_line in entries.items():
            if self._entries.get(key) != entry_line:
                self._entries[key] = entry_line
                self._params.setdefault(key, self.default)
                self._recompute(key)

    def update(self, key: LineKey, **changes: Decimal) -> SaleLineResult | UndefinedPriceFormationError:
        """Change some parameters of one line and reprice it."""
        if key not in self._entries:
            raise KeyError(key)
        self._params[key] = replace(self._params[key], **changes)
        return self._recompute(key)

    def _recompute(self, key: LineKey) -> SaleLineResult | UndefinedPriceFormationError:
        try:
            result: SaleLineResult | UndefinedPriceFormationError = compute_price(
                self._entries[key], self._params[key], document_key=key[0]
            )
        except UndefinedPriceFormationError as exc:
            result = exc
        self._results[key] = result
        return result

    def keys(self) -> list[LineKey]:
        return sorted(self._entries)

    def entry(self, key: LineKey) -> ComputedLine:
        return self._entries[key]

    def params(self, key: LineKey) -> SaleLineParams:
        return self._params[key]

    def result(self, key: LineKey) -> SaleLineResult | UndefinedPriceFormationError:
        return self._results[key]

    def __len__(self) -> int:
        return len(self._entries)
