from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, RichLog, Static

_SHORTCUTS = (
    ("a", "Carregar XML", "Carregar arquivos ou pasta de NF-e"),
    ("d", "Remover nota", "Remover a nota da linha selecionada"),
    ("u", "UF destino", "Trocar a UF (recalcula todas as notas)"),
    ("v", "Preço de venda", "Formação do preço por item"),
    ("x", "Exportar", "Gravar relatório JSON"),
    ("s", "Salvar análise", "Guardar um retrato da análise"),
    ("r", "Regras UF", "Conferir a tabela de regras por UF"),
    ("h", "Ajuda", "Esta tela"),
    ("q", "Sair", "Encerrar aplicação"),
)


class HelpScreen(ModalScreen):
    """Keyboard shortcuts, calculation rules and disclaimer."""

    BINDINGS = [
        Binding("escape", "go_back", "Voltar"),
    ]

    def compose(self) -> ComposeResult:
        with Vertical(id="modal-dialog"):
            with Horizontal(id="modal-title-bar"):
                yield Static("Ajuda", id="header-bar")
                yield Button("✕", id="btn-modal-close")
            yield RichLog(id="help-content", wrap=True, markup=True)
            with Horizontal(classes="button-bar"):
                yield Button("✕ Fechar", id="btn-voltar")

    def on_mount(self) -> None:
        log = self.query_one("#help-content", RichLog)

        log.write("[bold]Cálculo Fiscal[/bold]")
        log.write("")
        log.write(
            "Análise de notas fiscais de entrada (NF-e): crédito de ICMS, "
            "DIFAL devido à UF de destino e formação do preço de venda."
        )
        log.write("")

        log.write("[bold]Atalhos de teclado[/bold]")
        log.write("")
        for key, name, desc in _SHORTCUTS:
            log.write(f"  [bold cyan]{key}[/bold cyan]  {name:<18} {desc}")
        log.write("")
        log.write("[bold]Navegação na tabela[/bold]")
        log.write("")
        log.write("  [bold cyan]j / ↓[/bold cyan]  Próxima linha")
        log.write("  [bold cyan]k / ↑[/bold cyan]  Linha anterior")
        log.write("")

        log.write("[bold]Regras de cálculo[/bold]")
        log.write("")
        log.write(
            "  Crédito: o ICMS destacado é creditado integralmente, exceto para "
            "CST 20, 30, 40, 41, 50, 51, 60, 70, 80, 81 e 90 (crédito zero)."
        )
        log.write(
            "  DIFAL [bold]duplo[/bold] (por dentro): "
            "vBC × (1 − orig.) ÷ (1 − interna) × interna − vBC × orig."
        )
        log.write("  DIFAL [bold]simples[/bold] (por fora): vBC × (interna − orig.)")
        log.write("  O DIFAL nunca é negativo. Sem regra para a UF, o DIFAL é zerado.")
        log.write(
            "  Preço sugerido: custo × (1 + despesa) × (1 + margem) ÷ "
            "(1 − (ICMS + PIS + COFINS))"
        )
        log.write("")

        log.write("[bold yellow]Aviso[/bold yellow]")
        log.write("")
        log.write(
            "Este software é fornecido \"como está\", sem garantias de qualquer tipo. "
            "Os valores calculados são estimativas e dependem da tabela de regras "
            "configurada em uf_rules.yaml. Consulte seu contador para orientação fiscal."
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id in ("btn-voltar", "btn-modal-close"):
            self.app.pop_screen()

    def action_go_back(self) -> None:
        self.app.pop_screen()
