from __future__ import annotations

from datetime import datetime

from rich.markup import escape
from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import Key
from textual.screen import Screen
from textual.widgets import Button, DataTable, Footer, Label, Select, Static

from calcfiscal.services.consolidation import aggregate
from calcfiscal.services.invoice_collection import InvoiceCollection
from calcfiscal.tui.options import METHOD_BADGES, UF_OPTIONS
from calcfiscal.utils.formatters import format_brl, format_percent


class EntradaScreen(Screen):
    """Entry invoice analysis: loaded invoices, per-line credit/DIFAL and totals."""

    BINDINGS = [
        # List actions — hidden from footer (have buttons above table)
        Binding("a", "load", "Carregar XML", show=False),
        Binding("d", "remove", "Remover nota", show=False),
        Binding("v", "pricing", "Preço de venda", show=False),
        Binding("x", "export", "Exportar", show=False),
        Binding("s", "save", "Salvar análise", show=False),
        # Generic actions — shown in footer
        Binding("r", "rules", "Regras UF"),
        Binding("u", "focus_uf", "UF destino"),
        Binding("h", "help", "Ajuda"),
        Binding("q", "quit", "Sair"),
    ]

    @property
    def collection(self) -> InvoiceCollection:
        return self.app.collection  # type: ignore[attr-defined]

    def compose(self) -> ComposeResult:
        with Horizontal(id="top-bar"):
            yield Static("Análise de Notas Fiscais de Entrada", id="app-title")
            yield Static("UF de destino:", id="label-uf")
            yield Select(
                UF_OPTIONS,
                value=self.collection.destination_state,
                allow_blank=False,
                id="uf-select",
                tooltip="Alterar a UF recalcula todas as notas carregadas (u)",
            )

        with Horizontal(id="info-bar"):
            with Vertical(id="card-vicms", classes="info-card"):
                yield Label("ICMS Destacado Total", classes="card-title")
                yield Label("…", id="total-vicms", classes="card-value")
            with Vertical(id="card-credito", classes="info-card"):
                yield Label("Crédito ICMS Total", classes="card-title")
                yield Label("…", id="total-credito", classes="card-value")
            with Vertical(id="card-difal", classes="info-card"):
                yield Label("DIFAL Total", classes="card-title")
                yield Label("…", id="total-difal", classes="card-value")
            with Vertical(id="card-notas", classes="info-card"):
                yield Label("Notas", classes="card-title")
                yield Label("…", id="total-notas", classes="card-value")

        with Horizontal(id="action-bar"):
            yield Button(
                "+ Carregar XML",
                id="btn-load",
                variant="primary",
                tooltip="Carregar arquivos XML de NF-e (a)",
            )
            yield Button("✕ Remover", id="btn-remove", tooltip="Remover nota selecionada (d)")
            yield Button(
                "$ Preço de venda",
                id="btn-pricing",
                tooltip="Formação do preço de venda por item (v)",
            )
            yield Button("⤓ Exportar", id="btn-export", tooltip="Exportar relatório JSON (x)")
            yield Button(
                "✓ Salvar análise",
                id="btn-save",
                variant="success",
                tooltip="Salvar um retrato desta análise (s)",
            )

        yield DataTable(id="lines-table", cursor_type="row")

        yield Static(
            "Nenhuma nota fiscal carregada.\n"
            "Pressione [bold]a[/bold] para carregar arquivos XML de NF-e.",
            id="empty-state",
        )

        yield Footer()

    def on_mount(self) -> None:
        self._refresh()
        self.query_one("#lines-table", DataTable).focus()

    def on_key(self, event: Key) -> None:
        table = self.query_one("#lines-table", DataTable)
        match event.key:
            case "j":
                table.action_cursor_down()
            case "k":
                table.action_cursor_up()
            case _:
                return
        event.prevent_default()
        event.stop()

    # --- Rendering ---

    def _refresh(self) -> None:
        invoices = self.collection.get_all()
        table = self.query_one("#lines-table", DataTable)
        table.clear(columns=True)
        table.add_columns(
            "Nota", "Item", "Descrição", "vBC", "% ICMS Orig.", "vICMS", "Crédito ICMS", "DIFAL", "Método"
        )

        for inv in invoices:
            nota = inv.number or inv.document_key[-9:]
            for line in inv.lines:
                method = METHOD_BADGES.get(line.method, str(line.method))
                if line.rule_state_applied:
                    method += " ★"
                if line.substitution:
                    method += " ST"
                credit = format_brl(line.icms_credit)
                if not line.credit_eligible:
                    credit = f"[red]{credit}[/red]"
                table.add_row(
                    nota,
                    str(line.line_number),
                    escape(line.description[:40]),
                    format_brl(line.tax_base),
                    format_percent(line.origin_rate),
                    format_brl(line.vat_charged),
                    credit,
                    format_brl(line.difal),
                    method,
                    key=f"{inv.document_key}:{line.line_number}",
                )

        totals = aggregate(invoices)
        self._update_label("total-vicms", format_brl(totals.vat_charged))
        self._update_label("total-credito", f"[green]{format_brl(totals.icms_credit)}[/green]")
        self._update_label("total-difal", f"[yellow]{format_brl(totals.difal)}[/yellow]")
        self._update_label("total-notas", str(len(invoices)))

        has_rows = table.row_count > 0
        table.display = has_rows
        self.query_one("#empty-state", Static).display = not has_rows

    def _update_label(self, label_id: str, text: str) -> None:
        self.query_one(f"#{label_id}", Label).update(text)

    def _selected_document_key(self) -> str | None:
        """Return the access key of the invoice owning the selected row."""
        table = self.query_one("#lines-table", DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return str(row_key.value).rsplit(":", 1)[0]

    # --- Event handlers ---

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id != "uf-select" or event.value is Select.BLANK:
            return
        uf = str(event.value)
        if uf == self.collection.destination_state:
            return
        for notice in self.collection.set_destination_state(uf):
            self.notify(notice.message, title="Regra não encontrada", severity="warning", timeout=5)
        self._refresh()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        match event.button.id:
            case "btn-load":
                self.action_load()
            case "btn-remove":
                self.action_remove()
            case "btn-pricing":
                self.action_pricing()
            case "btn-export":
                self.action_export()
            case "btn-save":
                self.action_save()

    # --- Actions ---

    def action_load(self) -> None:
        from calcfiscal.tui.screens.load_xml import LoadXmlScreen

        self.app.push_screen(LoadXmlScreen(), callback=self._on_loaded)

    def _on_loaded(self, loaded: int | None) -> None:
        select = self.query_one("#uf-select", Select)
        if select.value != self.collection.destination_state:
            select.value = self.collection.destination_state
        self._refresh()

    def action_remove(self) -> None:
        document_key = self._selected_document_key()
        if not document_key:
            self.notify("Nenhuma nota selecionada", severity="warning", timeout=3)
            return
        from calcfiscal.tui.screens.confirm import ConfirmScreen

        def _confirmed(confirmed: bool | None) -> None:
            if confirmed and self.collection.remove(document_key):
                self.notify("A nota fiscal e seus itens foram removidos da lista.", title="Nota Removida")
                self._refresh()

        self.app.push_screen(
            ConfirmScreen(f"Remover a nota {document_key} e todos os seus itens?"),
            callback=_confirmed,
        )

    def action_pricing(self) -> None:
        if len(self.collection) == 0:
            self.notify("Carregue ao menos uma nota fiscal", severity="warning", timeout=3)
            return
        from calcfiscal.tui.screens.pricing import PricingScreen

        self.app.push_screen(PricingScreen())

    def action_export(self) -> None:
        invoices = self.collection.get_all()
        if not invoices:
            self.notify("Nenhum dado para exportar!", severity="warning", timeout=3)
            return
        from calcfiscal.config import get_reports_dir
        from calcfiscal.services.export import write_report

        ts = datetime.now().strftime("%Y%m%d-%H%M%S")
        path = get_reports_dir() / f"calculo_entrada_{ts}.json"
        try:
            write_report(path, invoices)
        except OSError as e:
            self.notify(f"Erro ao exportar: {e}", severity="error", timeout=5)
            return
        self.notify(f"Relatório salvo em {path}", title="Exportação Concluída", timeout=5)

    def action_save(self) -> None:
        if len(self.collection) == 0:
            self.notify("Nenhuma nota carregada para salvar", severity="warning", timeout=3)
            return
        self._run_save()

    @work(thread=True)
    def _run_save(self) -> None:
        try:
            from calcfiscal.utils.analyses import save_analysis

            entry = save_analysis("", self.collection.get_all(), self.collection.destination_state)
            self.app.call_from_thread(
                self.notify, f"Análise salva: {entry['name']} ({entry['id']})", timeout=4
            )
        except Exception as e:
            self.app.call_from_thread(
                self.notify, f"Erro ao salvar análise: {e}", severity="error", timeout=5
            )

    def action_rules(self) -> None:
        from calcfiscal.tui.screens.validate import ValidateScreen

        self.app.push_screen(ValidateScreen())

    def action_focus_uf(self) -> None:
        self.query_one("#uf-select", Select).focus()

    def action_help(self) -> None:
        from calcfiscal.tui.screens.help import HelpScreen

        self.app.push_screen(HelpScreen())

    def action_quit(self) -> None:
        self.app.exit()
