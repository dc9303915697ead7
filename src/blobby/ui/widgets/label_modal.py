"""Modal prompting for a blob label."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Label


class LabelModal(ModalScreen[str | None]):
    """Ask for a label. Dismisses with the text, or None when cancelled or blank."""

    DEFAULT_CSS = """
    LabelModal {
        align: center middle;
    }

    LabelModal > Vertical {
        width: 50;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: solid $primary;
    }

    LabelModal Label {
        width: 100%;
        text-align: center;
        margin-bottom: 1;
        text-style: bold;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, title: str, initial: str = "") -> None:
        """
        Args:
            title: Prompt shown above the input
            initial: Text the input starts with
        """
        super().__init__()
        self.title_text = title
        self.initial = initial

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Label(self.title_text)
            yield Input(value=self.initial, placeholder="Task label", id="label-input")

    def on_mount(self) -> None:
        self.query_one("#label-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        label = event.value.strip()
        self.dismiss(label or None)

    def action_cancel(self) -> None:
        self.dismiss(None)
