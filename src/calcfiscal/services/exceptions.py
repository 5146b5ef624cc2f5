from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class MissingStateConfig:
    """No rule exists for the destination state; credit defaults to full and DIFAL to zero.

    A notice, not an exception: computation continues with the fallback.
    """

    state_code: str

    @property
    def message(self) -> str:
        return f"Não há regra de cálculo para a UF {self.state_code}. O DIFAL será zerado."


class DuplicateDocumentError(Exception):
    """An invoice with the same access key is already loaded."""

    def __init__(self, document_key: str) -> None:
        super().__init__(f"Nota já carregada: {document_key}")
        self.document_key = document_key


class UndefinedPriceFormationError(Exception):
    """Output taxes add up to 100% or more of the gross price."""

    def __init__(
        self,
        fraction: Decimal,
        document_key: str | None = None,
        line_number: int | None = None,
    ) -> None:
        where = ""
        if document_key is not None and line_number is not None:
            where = f" (nota {document_key}, item {line_number})"
        elif line_number is not None:
            where = f" (item {line_number})"
        super().__init__(
            f"Impostos de saída somam {fraction * 100:.2f}% do preço; "
            f"preço de venda indefinido{where}"
        )
        self.fraction = fraction
        self.document_key = document_key
        self.line_number = line_number


class MalformedLineError(Exception):
    """A raw invoice line is missing a required numeric field or breaks an invariant."""

    def __init__(self, index: int, field: str, reason: str = "ausente") -> None:
        super().__init__(f"Item na posição {index}: campo {field} {reason}")
        self.index = index
        self.field = field
        self.reason = reason
        self.document_key: str | None = None


class InvoiceParseError(Exception):
    """The fiscal document could not be turned into header + items."""

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(f"{source}: {message}" if source else message)
        self.source = source


class RuleConfigError(ValueError):
    """An entry of the per-state rule table is invalid."""
