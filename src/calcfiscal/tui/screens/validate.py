from __future__ import annotations

from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, RichLog, Static

from calcfiscal.models.uf_config import METHOD_LABELS


class ValidateScreen(ModalScreen):
    """Per-state rule table and local data health."""

    BINDINGS = [
        Binding("escape", "go_back", "Voltar"),
        Binding("q", "go_back", show=False),
    ]

    def compose(self) -> ComposeResult:
        with Vertical(id="modal-dialog"):
            with Horizontal(id="modal-title-bar"):
                yield Static("Regras por UF", id="header-bar")
                yield Button("✕", id="btn-modal-close")
            yield RichLog(id="validation-output", wrap=True, markup=True)
            with Horizontal(classes="button-bar"):
                yield Button("✕ Fechar", id="btn-voltar", variant="error")

    def on_mount(self) -> None:
        self.notify("Validando regras…", severity="information", timeout=2)
        self._run_validation()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        match event.button.id:
            case "btn-voltar" | "btn-modal-close":
                self.app.pop_screen()

    @work(thread=True)
    def _run_validation(self) -> None:
        lines: list[str] = []

        # Rule table file (re-read from disk to catch edits made after startup)
        try:
            from calcfiscal.config import get_uf_rules_path
            from calcfiscal.services.rule_store import TaxRuleStore

            path = get_uf_rules_path()
            if path.is_file():
                store = TaxRuleStore.load()
                lines.append(f"[green]OK[/green] Tabela de regras: {len(store)} UF(s)")
                lines.append(f"   Arquivo: {path}")
            else:
                lines.append(f"[yellow]AVISO[/yellow] Tabela de regras não encontrada: {path}")
                lines.append("   Execute 'calculo-fiscal init' para criar o exemplo")
        except Exception as e:
            lines.append(f"[red]ERRO[/red] Tabela de regras: {e}")

        # Rules in use by this session
        collection = self.app.collection  # type: ignore[attr-defined]
        in_use = collection.rule_store
        for cfg in in_use:
            method = METHOD_LABELS.get(cfg.difal_method, cfg.difal_method)
            extra = ""
            if cfg.fcp_rate:
                extra += f", FCP {cfg.fcp_rate}%"
            if cfg.special_rule:
                extra += f" — {cfg.special_rule}"
            lines.append(
                f"   {cfg.state_code}: interna {cfg.internal_rate}%, DIFAL {method}{extra}"
            )

        uf = collection.destination_state
        if in_use.get_config(uf) is None:
            lines.append(f"[yellow]AVISO[/yellow] UF de destino {uf}: sem regra, DIFAL zerado")
        else:
            lines.append(f"[green]OK[/green] UF de destino {uf}: regra configurada")

        # Saved analyses
        try:
            from calcfiscal.utils.analyses import list_analyses

            saved = list_analyses()
            lines.append(f"[green]OK[/green] Análises salvas: {len(saved)}")
        except Exception as e:
            lines.append(f"[red]ERRO[/red] Análises salvas: {e}")

        self.app.call_from_thread(self._display_lines, lines)

    def _display_lines(self, lines: list[str]) -> None:
        log = self.query_one("#validation-output", RichLog)
        for line in lines:
            log.write(line)
        has_errors = any("[red]" in line for line in lines)
        if has_errors:
            self.notify("Validação concluída com erros", severity="warning", timeout=3)
        else:
            self.notify("Validação concluída", timeout=3)

    def action_go_back(self) -> None:
        self.app.pop_screen()
