from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Static


class ConfirmScreen(ModalScreen[bool]):
    """Yes/no dialog shown before discarding loaded invoices (y / n)."""

    DEFAULT_CSS = """
    ConfirmScreen {
        align: center middle;
    }
    #confirm-box {
        width: 72;
        height: auto;
        border: heavy $warning;
        background: $panel;
        padding: 0 2;
    }
    #confirm-title {
        text-style: bold;
        color: $warning;
        padding: 1 0 0 0;
    }
    #confirm-message {
        padding: 1 0;
    }
    #confirm-actions {
        height: 3;
        align-horizontal: right;
        margin-bottom: 1;
    }
    #confirm-actions Button {
        margin-left: 2;
    }
    """

    BINDINGS = [
        ("escape", "cancel", "Cancelar"),
        Binding("n", "cancel", show=False),
        Binding("y", "confirm", show=False),
    ]

    def __init__(self, message: str, title: str = "Confirmar remoção") -> None:
        super().__init__()
        self._message = message
        self._title = title

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-box"):
            yield Static(self._title, id="confirm-title")
            yield Static(self._message, id="confirm-message")
            with Horizontal(id="confirm-actions"):
                yield Button("Não (n)", id="btn-cancel")
                yield Button("Sim, remover (y)", id="btn-confirm", variant="warning")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        match event.button.id:
            case "btn-confirm":
                self.action_confirm()
            case _:
                self.action_cancel()

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)
