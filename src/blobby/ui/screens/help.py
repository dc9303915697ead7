"""Help screen showing keyboard shortcuts and mouse gestures."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Static

MOUSE_HELP = [
    ("Drag", "Move a blob"),
    ("Drop on trash", "Delete a blob"),
    ("Right-click", "Rename a blob"),
]

BLOB_HELP = [
    ("n", "New blob"),
    ("r / Enter", "Rename focused blob"),
    ("h j k l / Arrows", "Nudge focused blob"),
    ("d", "Delete focused blob"),
    ("X", "Clear the board"),
]


class HelpScreen(ModalScreen):
    """Modal help screen."""

    DEFAULT_CSS = """
    HelpScreen {
        align: center middle;
    }

    HelpScreen > Vertical {
        width: 64;
        height: auto;
        max-height: 90%;
        padding: 1 2;
        background: $surface;
        border: solid $primary;
    }

    HelpScreen .help-title {
        text-align: center;
        text-style: bold;
        padding-bottom: 1;
        border-bottom: solid $primary-darken-2;
    }

    HelpScreen .help-section {
        height: auto;
        padding: 1 0 0 0;
    }

    HelpScreen .section-title {
        text-style: bold;
        color: $primary;
    }

    HelpScreen .help-row {
        height: 1;
    }

    HelpScreen .help-key {
        width: 18;
        text-style: bold;
    }

    HelpScreen .help-desc {
        width: 1fr;
        color: $text-muted;
    }

    HelpScreen .help-footer {
        text-align: center;
        color: $text-muted;
        padding-top: 1;
        border-top: solid $primary-darken-2;
    }
    """

    BINDINGS = [
        Binding("escape", "dismiss", "Close", show=False),
        Binding("?", "dismiss", "Close", show=False),
        Binding("q", "dismiss", "Close", show=False),
    ]

    def __init__(self, signed_in: bool = True) -> None:
        super().__init__()
        self.signed_in = signed_in

    def sections(self) -> list[tuple[str, list[tuple[str, str]]]]:
        """Help sections as (title, [(keys, description), ...])."""
        boards = [
            ("Tab", "Next board"),
            ("Shift+Tab", "Previous board"),
            ("R", "Reload board"),
        ]
        if self.signed_in:
            boards.append(("m", "Move local boards to your account"))
        return [
            ("Mouse", MOUSE_HELP),
            ("Blobs", BLOB_HELP),
            ("Boards", boards),
            ("General", [("?", "Show this help"), ("q", "Quit")]),
        ]

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static("Blobby", classes="help-title")
            for title, rows in self.sections():
                with Vertical(classes="help-section"):
                    yield Static(title, classes="section-title")
                    for key, description in rows:
                        yield self._help_row(key, description)
            if not self.signed_in:
                yield Static(
                    "[dim]Signed out: boards are saved on this machine only[/]",
                    classes="help-section",
                )
            yield Static("Press any key to close", classes="help-footer")

    def _help_row(self, key: str, description: str) -> Horizontal:
        """Create a help row with key and description."""
        row = Horizontal(classes="help-row")
        row.compose_add_child(Static(key, classes="help-key"))
        row.compose_add_child(Static(description, classes="help-desc"))
        return row

    def on_key(self, event) -> None:
        """Dismiss on any key press and prevent propagation."""
        event.stop()
        self.dismiss()
