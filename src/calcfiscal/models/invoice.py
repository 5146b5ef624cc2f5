from __future__ import annotations

from dataclasses import dataclass

from calcfiscal.models.line import ComputedLine, TaxableLine


@dataclass(frozen=True)
class Invoice:
    document_key: str  # chNFe, 44 digits
    destination_state: str
    source_file_name: str
    base_lines: tuple[TaxableLine, ...]
    lines: tuple[ComputedLine, ...]

    # Header details kept for display/export — empty when the parser lacks them
    number: str = ""
    issuer_name: str = ""
    issuer_state: str = ""
