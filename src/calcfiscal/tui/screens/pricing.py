from __future__ import annotations

from rich.markup import escape
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Button, DataTable, Input, Label, Static

from calcfiscal.services.exceptions import UndefinedPriceFormationError
from calcfiscal.services.sale_price import LineKey, PricingSheet
from calcfiscal.tui.options import CST_LABELS
from calcfiscal.utils.formatters import format_brl, format_percent

# (input id, SaleLineParams field, label)
_PARAM_FIELDS = (
    ("param-icms", "output_vat_percent", "ICMS saída %"),
    ("param-pis", "pis_percent", "PIS %"),
    ("param-cofins", "cofins_percent", "COFINS %"),
    ("param-despesa", "fixed_expense_percent", "Despesa fixa %"),
    ("param-margem", "margin_percent", "Margem %"),
)


class PricingScreen(ModalScreen):
    """Sale price formation for every loaded line, with per-line parameters."""

    BINDINGS = [
        Binding("escape", "go_back", "Voltar"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._selected: LineKey | None = None

    @property
    def sheet(self) -> PricingSheet:
        return self.app.pricing  # type: ignore[attr-defined]

    def compose(self) -> ComposeResult:
        with Vertical(id="modal-dialog"):
            with Horizontal(id="modal-title-bar"):
                yield Static("Formação do Preço de Venda", id="header-bar")
                yield Button("✕", id="btn-modal-close")
            yield DataTable(id="pricing-table", cursor_type="row")
            yield Label("", id="line-info")
            with Horizontal(id="param-bar"):
                for input_id, _, label in _PARAM_FIELDS:
                    with Vertical(classes="param-field"):
                        yield Label(label, classes="form-label")
                        yield Input(id=input_id)
            yield Label("", id="error-label")
            with Horizontal(classes="button-bar"):
                yield Button("✕ Fechar", id="btn-voltar")
                yield Button("▶ Aplicar", id="btn-aplicar", variant="primary")

    def on_mount(self) -> None:
        self.sheet.sync(self.app.collection.get_all())  # type: ignore[attr-defined]
        self._refresh()
        table = self.query_one("#pricing-table", DataTable)
        table.focus()
        keys = self.sheet.keys()
        if keys:
            self._select(keys[0])

    def on_key(self, event: Key) -> None:
        table = self.query_one("#pricing-table", DataTable)
        if not table.has_focus:
            return
        match event.key:
            case "j":
                table.action_cursor_down()
            case "k":
                table.action_cursor_up()
            case _:
                return
        event.prevent_default()
        event.stop()

    def _refresh(self) -> None:
        table = self.query_one("#pricing-table", DataTable)
        cursor_row = table.cursor_row
        table.clear(columns=True)
        table.add_columns(
            "Nota", "Item", "Descrição", "Custo líquido un.", "Custo + despesas",
            "Preço líquido", "Preço sugerido", "ICMS saída", "PIS/COFINS",
        )
        for key in self.sheet.keys():
            document_key, line_number = key
            entry = self.sheet.entry(key)
            result = self.sheet.result(key)
            row_key = f"{document_key}:{line_number}"
            if isinstance(result, UndefinedPriceFormationError):
                table.add_row(
                    document_key[-9:], str(line_number), escape(entry.description[:30]),
                    "—", "—", "—", "[red]indefinido[/red]", "—", "—",
                    key=row_key,
                )
                continue
            table.add_row(
                document_key[-9:],
                str(line_number),
                escape(entry.description[:30]),
                format_brl(result.net_unit_cost),
                format_brl(result.cost_with_expenses),
                format_brl(result.target_net_price),
                f"[green]{format_brl(result.suggested_gross_price)}[/green]",
                format_brl(result.output_vat_amount),
                format_brl(result.pis_cofins_amount),
                key=row_key,
            )
        if table.row_count:
            table.move_cursor(row=min(cursor_row, table.row_count - 1))

    def _select(self, key: LineKey) -> None:
        self._selected = key
        entry = self.sheet.entry(key)
        params = self.sheet.params(key)
        for input_id, field_name, _ in _PARAM_FIELDS:
            self.query_one(f"#{input_id}", Input).value = str(getattr(params, field_name))

        cst = CST_LABELS.get(entry.line.cst, entry.line.cst or "?")
        self.query_one("#line-info", Label).update(
            f"Item {entry.line_number} — CST {cst} — "
            f"crédito {format_brl(entry.icms_credit)} — ICMS orig. {format_percent(entry.origin_rate)}"
        )
        result = self.sheet.result(key)
        error_label = self.query_one("#error-label", Label)
        if isinstance(result, UndefinedPriceFormationError):
            error_label.update(str(result))
        else:
            error_label.update("")

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        if event.row_key is None or event.row_key.value is None:
            return
        document_key, line_number = str(event.row_key.value).rsplit(":", 1)
        self._select((document_key, int(line_number)))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self._do_apply()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        match event.button.id:
            case "btn-aplicar":
                self._do_apply()
            case "btn-voltar" | "btn-modal-close":
                self.app.pop_screen()

    def _do_apply(self) -> None:
        from calcfiscal.utils.validators import validate_margin, validate_percent

        error_label = self.query_one("#error-label", Label)
        if self._selected is None:
            error_label.update("Selecione um item")
            return

        changes = {}
        for input_id, field_name, label in _PARAM_FIELDS:
            raw = self.query_one(f"#{input_id}", Input).value.strip()
            validate = validate_margin if field_name == "margin_percent" else validate_percent
            try:
                changes[field_name] = validate(raw)
            except ValueError as e:
                error_label.update(f"{label}: {e}")
                return

        result = self.sheet.update(self._selected, **changes)
        if isinstance(result, UndefinedPriceFormationError):
            error_label.update(str(result))
            self.notify("Preço de venda indefinido para este item", severity="warning", timeout=4)
        else:
            error_label.update("")
        self._refresh()

    def action_go_back(self) -> None:
        self.app.pop_screen()
