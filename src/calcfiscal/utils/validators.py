from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from calcfiscal.config import ESTADOS


def parse_decimal(value: object) -> Decimal:
    """Parse a numeric value as delivered by the XML parser or typed by a user.

    Accepts ``int``/``float``/``Decimal`` and strings with either ``.`` or
    ``,`` as decimal separator. Raises ValueError for empty, non-numeric or
    non-finite input.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Valor numerico invalido: '{value}'")
    if isinstance(value, Decimal):
        d = value
    else:
        text = str(value).strip()
        if not text:
            raise ValueError("Valor numerico vazio")
        if "," in text:
            # 1.234,56 -> 1234.56
            text = text.replace(".", "").replace(",", ".")
        try:
            d = Decimal(text)
        except InvalidOperation:
            raise ValueError(f"Valor numerico invalido: '{value}'") from None
    if not d.is_finite():
        raise ValueError(f"Valor numerico invalido: '{value}'")
    return d


def validate_percent(value: str) -> Decimal:
    """Validate a percentage typed by the seller (0.00-100.00)."""
    try:
        d = parse_decimal(value)
    except ValueError:
        raise ValueError(f"Percentual invalido: '{value}'") from None
    if d < 0 or d > 100:
        raise ValueError("Percentual deve estar entre 0.00 e 100.00")
    return d


def validate_margin(value: str) -> Decimal:
    """Validate a margin percentage: non-negative, may exceed 100."""
    try:
        d = parse_decimal(value)
    except ValueError:
        raise ValueError(f"Margem invalida: '{value}'") from None
    if d < 0:
        raise ValueError("Margem nao pode ser negativa")
    return d


def validate_uf(value: str) -> str:
    """Validate a Brazilian state code, returning it upper-cased."""
    uf = value.strip().upper()
    if uf not in ESTADOS:
        raise ValueError(f"UF invalida: '{value}'")
    return uf


def validate_access_key(value: str) -> str:
    """Validate an NF-e access key: exactly 44 digits."""
    if not re.fullmatch(r"\d{44}", value):
        raise ValueError("Chave de acesso: deve ter exatamente 44 digitos")
    return value


def normalize_cst(value: object) -> str:
    """Reduce an ICMS CST to its two tax-situation digits.

    Parsers sometimes deliver the origin digit in front (``"040"``); the
    origin is not part of the situation code.
    """
    digits = re.sub(r"\D", "", str(value or ""))
    if not digits:
        return ""
    return digits[-2:].zfill(2)
