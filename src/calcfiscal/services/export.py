"""Stable, formula-free records for reporting (spreadsheets, PDFs, JSON).

Field names here are a contract with exporters; they do not follow the
engine's internal attribute names.
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterable
from decimal import Decimal
from pathlib import Path
from typing import Any

from calcfiscal.models.invoice import Invoice
from calcfiscal.services.consolidation import Totals, aggregate, aggregate_invoice


def _money(value: Decimal) -> str:
    return f"{value:.2f}"


def export_lines(invoice: Invoice) -> list[dict[str, Any]]:
    """Flat per-line records of one invoice."""
    return [
        {
            "lineNumber": line.line_number,
            "description": line.description,
            "taxBase": _money(line.tax_base),
            "originRate": _money(line.origin_rate),
            "vatCharged": _money(line.vat_charged),
            "icmsCredit": _money(line.icms_credit),
            "difal": _money(line.difal),
            "method": line.method or "",
        }
        for line in invoice.lines
    ]


def export_summary(totals: Totals) -> dict[str, str]:
    return {
        "taxBase": _money(totals.tax_base),
        "icmsCredit": _money(totals.icms_credit),
        "difal": _money(totals.difal),
        "vatCharged": _money(totals.vat_charged),
    }


def export_report(invoices: Iterable[Invoice]) -> dict[str, Any]:
    """Per-invoice lines and sub-totals plus the consolidated record."""
    invoices = list(invoices)
    return {
        "invoices": [
            {
                "documentKey": inv.document_key,
                "destinationState": inv.destination_state,
                "sourceFileName": inv.source_file_name,
                "lines": export_lines(inv),
                "totals": export_summary(aggregate_invoice(inv)),
            }
            for inv in invoices
        ],
        "totals": export_summary(aggregate(invoices)),
    }


def write_report(path: Path, invoices: Iterable[Invoice]) -> Path:
    """Write the report as JSON (atomic write)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(export_report(invoices), indent=2, ensure_ascii=False) + "\n")
    os.replace(tmp, path)
    return path
