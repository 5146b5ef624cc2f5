from __future__ import annotations

from decimal import Decimal

from samples import KEY_A, KEY_B, parsed_invoice, raw_item

from calcfiscal.services.consolidation import Totals, aggregate, aggregate_invoice, aggregate_lines
from calcfiscal.services.invoice_collection import InvoiceCollection


def _collection(rule_store) -> InvoiceCollection:
    collection = InvoiceCollection(rule_store, "SP")
    collection.load(parsed_invoice(KEY_A))
    collection.load(
        parsed_invoice(
            KEY_B,
            itens=[
                raw_item(nItem="1", vBC="500", pICMS="7", vICMS="35"),
                raw_item(nItem="2", cst="40", vBC="200", pICMS="12", vICMS="24"),
            ],
        )
    )
    return collection


def test_empty():
    assert aggregate([]) == Totals()


def test_invoice_subtotals(rule_store):
    inv = _collection(rule_store).get(KEY_B)
    totals = aggregate_invoice(inv)
    assert totals.tax_base == Decimal("700")
    assert totals.vat_charged == Decimal("59")
    # CST 40 has no credit
    assert totals.icms_credit == Decimal("35")
    # 500 * 11% + 200 * 6%
    assert totals.difal == Decimal("67")


def test_total_is_sum_of_lines(rule_store):
    invoices = _collection(rule_store).get_all()
    lines = [line for inv in invoices for line in inv.lines]
    assert aggregate(invoices) == aggregate_lines(lines)
    assert aggregate(invoices).difal == sum((line.difal for line in lines), Decimal("0"))


def test_additive(rule_store):
    invoices = _collection(rule_store).get_all()
    assert aggregate(invoices) == aggregate(invoices[:1]) + aggregate(invoices[1:])


def test_follows_state_change(rule_store):
    collection = _collection(rule_store)
    before = aggregate(collection.get_all())
    collection.set_destination_state("AC")
    after = aggregate(collection.get_all())
    assert after.difal == 0
    assert after.tax_base == before.tax_base
    # Without a rule every line gets full credit
    assert after.icms_credit == after.vat_charged


def test_totals_add_rejects_other_types():
    assert Totals().__add__(1) is NotImplemented
