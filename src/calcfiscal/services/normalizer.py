from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

from calcfiscal.models.line import TaxableLine
from calcfiscal.services.exceptions import MalformedLineError
from calcfiscal.utils.validators import normalize_cst, parse_decimal

logger = logging.getLogger(__name__)

# Raw parser keys that must be present and numeric
REQUIRED_NUMERIC = ("vBC", "pICMS", "vICMS", "qCom", "vProd")


def _required(raw: Mapping[str, Any], key: str, index: int) -> Decimal:
    value = raw.get(key)
    if value is None and key == "qCom":
        value = raw.get("qtd")
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MalformedLineError(index, key)
    try:
        return parse_decimal(value)
    except ValueError:
        raise MalformedLineError(index, key, f"inválido: '{value}'") from None


def _optional(raw: Mapping[str, Any], key: str, index: int) -> Decimal:
    value = raw.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        return Decimal("0")
    try:
        return parse_decimal(value)
    except ValueError:
        raise MalformedLineError(index, key, f"inválido: '{value}'") from None


def normalize_line(raw: Mapping[str, Any], index: int) -> TaxableLine:
    """Map one raw parsed item into a TaxableLine.

    *index* is the 1-based position of the item in the invoice, used in error
    reports. Raises MalformedLineError instead of zeroing a missing value.
    """
    if not isinstance(raw, Mapping):
        raise MalformedLineError(index, "item", "não é um mapeamento")
    values = {key: _required(raw, key, index) for key in REQUIRED_NUMERIC}
    ipi = _optional(raw, "vIPI", index)

    if values["vBC"] < 0:
        raise MalformedLineError(index, "vBC", "negativo")
    if not (0 <= values["pICMS"] <= 100):
        raise MalformedLineError(index, "pICMS", "fora do intervalo 0-100")
    if values["qCom"] <= 0:
        raise MalformedLineError(index, "qCom", "deve ser positivo")

    try:
        line_number = int(raw.get("nItem", index))
    except (TypeError, ValueError):
        raise MalformedLineError(index, "nItem", f"inválido: '{raw.get('nItem')}'") from None

    return TaxableLine(
        line_number=line_number,
        description=str(raw.get("xProd") or ""),
        ncm=str(raw.get("ncm") or raw.get("NCM") or ""),
        cst=normalize_cst(raw.get("cst") or raw.get("CST")),
        cfop=str(raw.get("cfop") or raw.get("CFOP") or ""),
        tax_base=values["vBC"],
        origin_rate=values["pICMS"],
        vat_charged=values["vICMS"],
        quantity=values["qCom"],
        product_value=values["vProd"],
        ipi_value=ipi,
    )


def normalize_items(
    itens: Iterable[Mapping[str, Any]],
) -> tuple[list[TaxableLine], list[MalformedLineError]]:
    """Normalize every raw item, skipping (and reporting) malformed ones."""
    lines: list[TaxableLine] = []
    errors: list[MalformedLineError] = []
    seen: set[int] = set()
    for index, raw in enumerate(itens, start=1):
        try:
            line = normalize_line(raw, index)
            if line.line_number in seen:
                raise MalformedLineError(index, "nItem", "duplicado")
        except MalformedLineError as exc:
            logger.warning("Skipping malformed line: %s", exc)
            errors.append(exc)
            continue
        seen.add(line.line_number)
        lines.append(line)
    return lines, errors
