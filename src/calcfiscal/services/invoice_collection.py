from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from calcfiscal.models.invoice import Invoice
from calcfiscal.services.entry_calculator import compute_lines, missing_config_notice
from calcfiscal.services.exceptions import (
    DuplicateDocumentError,
    InvoiceParseError,
    MalformedLineError,
    MissingStateConfig,
)
from calcfiscal.services.normalizer import normalize_items
from calcfiscal.services.rule_store import TaxRuleStore
from calcfiscal.utils.validators import validate_access_key

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    """Outcome of loading one parsed invoice."""

    invoice: Invoice
    skipped: list[MalformedLineError] = field(default_factory=list)
    notice: MissingStateConfig | None = None


class InvoiceCollection:
    """Loaded purchase invoices, all computed for one destination state.

    The collection is the only owner of Invoice objects. Every change of
    destination state recomputes all lines from their immutable base fields;
    nothing is patched in place.
    """

    def __init__(self, rule_store: TaxRuleStore, destination_state: str) -> None:
        self._rules = rule_store
        self._state = destination_state.upper()
        self._invoices: dict[str, Invoice] = {}
        self._lock = threading.Lock()

    @property
    def destination_state(self) -> str:
        return self._state

    @property
    def rule_store(self) -> TaxRuleStore:
        return self._rules

    def build(
        self,
        parsed: Mapping[str, Any],
        source_file_name: str = "",
    ) -> LoadResult:
        """Normalize and compute a parsed ``{capa, itens}`` document without storing it.

        The invoice is computed for the collection's current destination state.
        """
        capa = parsed.get("capa")
        itens = parsed.get("itens")
        if not isinstance(capa, Mapping) or itens is None:
            raise InvoiceParseError("Resposta inválida: faltando 'capa' ou 'itens'", source_file_name)
        document_key = str(capa.get("chNFe") or "").strip()
        if not document_key:
            raise InvoiceParseError("Chave de acesso (chNFe) ausente", source_file_name)
        try:
            validate_access_key(document_key)
        except ValueError as e:
            raise InvoiceParseError(str(e), source_file_name) from None

        base_lines, skipped = normalize_items(itens)
        for err in skipped:
            err.document_key = document_key

        state = self._state
        config = self._rules.get_config(state)
        invoice = Invoice(
            document_key=document_key,
            destination_state=state,
            source_file_name=source_file_name,
            base_lines=tuple(base_lines),
            lines=tuple(compute_lines(base_lines, state, config)),
            number=str(capa.get("nNF") or ""),
            issuer_name=str(capa.get("emitNome") or ""),
            issuer_state=str(capa.get("emitUF") or ""),
        )
        return LoadResult(invoice, skipped, missing_config_notice(state, config))

    def load(self, parsed: Mapping[str, Any], source_file_name: str = "") -> LoadResult:
        """Build and add a parsed document. Raises DuplicateDocumentError."""
        result = self.build(parsed, source_file_name)
        self.add(result.invoice)
        return result

    def add(self, invoice: Invoice) -> None:
        """Add *invoice*, rejecting a duplicate access key.

        An invoice computed for another state is recomputed on the way in so
        every stored line reflects the current destination.
        """
        with self._lock:
            if invoice.document_key in self._invoices:
                raise DuplicateDocumentError(invoice.document_key)
            if invoice.destination_state != self._state:
                invoice = self._recompute(invoice, self._state)
            self._invoices[invoice.document_key] = invoice
        logger.info("Invoice %s added (%d line(s))", invoice.document_key, len(invoice.lines))

    def remove(self, document_key: str) -> bool:
        with self._lock:
            removed = self._invoices.pop(document_key, None)
        if removed is not None:
            logger.info("Invoice %s removed", document_key)
        return removed is not None

    def set_destination_state(self, state: str) -> list[MissingStateConfig]:
        """Recompute every line of every invoice for *state*.

        Returns the notices the caller must surface (empty when a rule exists).
        """
        state = state.upper()
        with self._lock:
            self._state = state
            self._invoices = {
                key: self._recompute(inv, state) for key, inv in self._invoices.items()
            }
        notice = missing_config_notice(state, self._rules.get_config(state))
        return [notice] if notice else []

    def _recompute(self, invoice: Invoice, state: str) -> Invoice:
        config = self._rules.get_config(state)
        return replace(
            invoice,
            destination_state=state,
            lines=tuple(compute_lines(invoice.base_lines, state, config)),
        )

    def get(self, document_key: str) -> Invoice | None:
        return self._invoices.get(document_key)

    def get_all(self) -> list[Invoice]:
        """Loaded invoices in insertion order."""
        with self._lock:
            return list(self._invoices.values())

    def __len__(self) -> int:
        return len(self._invoices)

    def __contains__(self, document_key: object) -> bool:
        return document_key in self._invoices
