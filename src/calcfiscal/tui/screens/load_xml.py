from __future__ import annotations

from pathlib import Path

from rich.markup import escape
from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, RichLog, Static

from calcfiscal.services.intake import FileOutcome


class LoadXmlScreen(ModalScreen[int]):
    """Load one or more NF-e XML files (or a folder of them) into the analysis.

    Dismisses with the number of invoices loaded.
    """

    BINDINGS = [
        Binding("escape", "go_back", "Voltar"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._loaded = 0

    def compose(self) -> ComposeResult:
        with Vertical(id="modal-dialog"):
            with Horizontal(id="modal-title-bar"):
                yield Static("Carregar NF-e", id="header-bar")
                yield Button("✕", id="btn-modal-close")
            yield Label("Arquivos XML ou pasta (separe vários com ;)", classes="form-label")
            yield Input(
                placeholder="/caminho/nota.xml; /caminho/pasta",
                id="path-input",
                tooltip="Caminho de um ou mais arquivos .xml ou de uma pasta",
            )
            yield Label("", id="error-label")
            yield RichLog(id="load-result", wrap=True, markup=True)
            with Horizontal(classes="button-bar"):
                yield Button("✕ Fechar", id="btn-voltar")
                yield Button("▶ Carregar", id="btn-carregar", variant="primary")

    def on_mount(self) -> None:
        self.query_one("#path-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self._do_load()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        match event.button.id:
            case "btn-carregar":
                self._do_load()
            case "btn-voltar" | "btn-modal-close":
                self.dismiss(self._loaded)

    def _do_load(self) -> None:
        raw = self.query_one("#path-input", Input).value
        paths = [Path(p.strip()).expanduser() for p in raw.split(";") if p.strip()]
        error_label = self.query_one("#error-label", Label)
        if not paths:
            error_label.update("Informe ao menos um arquivo XML")
            return
        missing = [str(p) for p in paths if not p.exists()]
        if missing:
            error_label.update(f"Arquivo não encontrado: {missing[0]}")
            return
        error_label.update("")
        self.query_one("#btn-carregar", Button).disabled = True
        self.notify("Processando…", severity="information", timeout=2)
        self._run_load(paths)

    @work(thread=True)
    def _run_load(self, paths: list[Path]) -> None:
        from calcfiscal.services.intake import load_paths

        collection = self.app.collection  # type: ignore[attr-defined]
        outcomes = load_paths(collection, paths, adopt_state=True)
        self.app.call_from_thread(self._show_outcomes, outcomes)

    def _show_outcomes(self, outcomes: list[FileOutcome]) -> None:
        log = self.query_one("#load-result", RichLog)
        for outcome in outcomes:
            name = escape(outcome.path.name)
            if outcome.result is None:
                log.write(f"[red]ERRO[/red] {name}: {escape(str(outcome.error))}")
                continue
            self._loaded += 1
            inv = outcome.result.invoice
            log.write(f"[green]OK[/green] {name}: nota {inv.document_key} ({len(inv.lines)} itens)")
            for err in outcome.result.skipped:
                log.write(f"   [yellow]item ignorado[/yellow] {escape(str(err))}")
            if outcome.result.notice:
                log.write(f"   [yellow]AVISO[/yellow] {outcome.result.notice.message}")
        self.query_one("#btn-carregar", Button).disabled = False
        if any(o.ok for o in outcomes):
            self.notify("Nota(s) fiscal(is) processada(s)", timeout=3)
        if not all(o.ok for o in outcomes):
            self.notify("Alguns arquivos não foram carregados", severity="warning", timeout=4)

    def action_go_back(self) -> None:
        self.dismiss(self._loaded)
