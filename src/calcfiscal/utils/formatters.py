from __future__ import annotations

from decimal import Decimal


def format_brl(value: Decimal | str) -> str:
    """Format a monetary value as R$ X.XXX,XX."""
    d = Decimal(value)
    formatted = f"{d:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    return f"R$ {formatted}"


def format_percent(value: Decimal | str) -> str:
    """Format a rate as 12,00%."""
    d = Decimal(value)
    return f"{d:.2f}%".replace(".", ",")
