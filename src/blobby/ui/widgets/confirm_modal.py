"""Confirmation modal dialog."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Center, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, Static


class ConfirmModal(ModalScreen[bool]):
    """Modal dialog for confirming deletes, clearing a board and migration."""

    DEFAULT_CSS = """
    ConfirmModal {
        align: center middle;
    }

    ConfirmModal > Vertical {
        width: 56;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: solid $primary;
    }

    ConfirmModal Label {
        width: 100%;
        text-align: center;
        margin-bottom: 1;
    }

    ConfirmModal .confirm-detail {
        width: 100%;
        text-align: center;
        color: $text-muted;
        margin-bottom: 1;
    }

    ConfirmModal .buttons {
        width: 100%;
        height: auto;
        align: center middle;
    }

    ConfirmModal Button {
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("y", "confirm", "Yes"),
        Binding("n", "cancel", "No"),
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, message: str, detail: str = "", destructive: bool = True) -> None:
        super().__init__()
        self.message = message
        self.detail = detail
        self.destructive = destructive

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Label(self.message)
            if self.detail:
                yield Static(self.detail, classes="confirm-detail")
            with Center(classes="buttons"):
                yield Button("Yes", id="yes", variant="error" if self.destructive else "success")
                yield Button("No", id="no", variant="primary")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "yes")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)
