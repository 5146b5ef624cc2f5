from __future__ import annotations

from textual.app import App
from textual.binding import Binding

from calcfiscal.models.sale import SaleLineParams
from calcfiscal.services.exceptions import RuleConfigError
from calcfiscal.services.invoice_collection import InvoiceCollection
from calcfiscal.services.rule_store import TaxRuleStore
from calcfiscal.services.sale_price import PricingSheet


class CalculoFiscalApp(App):
    """Cálculo Fiscal TUI application."""

    CSS_PATH = "app.tcss"
    TITLE = "Cálculo Fiscal"
    ENABLE_COMMAND_PALETTE = False

    BINDINGS = [
        Binding("q", "quit", "Sair"),
    ]

    def __init__(
        self,
        destination_state: str | None = None,
        rule_store: TaxRuleStore | None = None,
    ) -> None:
        super().__init__()
        from calcfiscal.config import get_default_sale_params, get_default_uf

        self.startup_error: str | None = None
        if rule_store is None:
            try:
                rule_store = TaxRuleStore.load()
            except RuleConfigError as e:
                self.startup_error = f"Regras por UF inválidas: {e}"
                rule_store = TaxRuleStore()
        self.collection = InvoiceCollection(rule_store, destination_state or get_default_uf())
        self.pricing = PricingSheet(SaleLineParams.from_dict(get_default_sale_params()))

    def on_mount(self) -> None:
        from calcfiscal.tui.screens.entrada import EntradaScreen

        self.push_screen(EntradaScreen())
        if self.startup_error:
            self.notify(self.startup_error, severity="error", timeout=8)
