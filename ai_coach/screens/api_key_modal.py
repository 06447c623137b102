"""Modal dialog for selecting the Google API key."""

from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Static


class ApiKeyModal(ModalScreen[str | None]):
    """Asks the user for an API key. Dismisses with the key, or None if cancelled."""

    DEFAULT_CSS = """
    ApiKeyModal {
        align: center middle;
    }

    ApiKeyModal > Container {
        background: $surface;
        border: solid $border;
        padding: 2;
        width: 70;
        height: auto;
    }

    #api-key-title {
        text-align: center;
        margin-bottom: 1;
        text-style: bold;
        color: $text-primary;
    }

    ApiKeyModal .hint {
        color: $text-muted;
        margin-bottom: 1;
    }

    ApiKeyModal Input {
        border: solid $border;
        width: 100%;
        background: $panel;
    }

    ApiKeyModal Input:focus {
        border: solid $primary;
    }

    #api-key-buttons {
        align: center middle;
        height: 3;
        margin-top: 1;
    }

    #api-key-buttons Button {
        margin: 0 1;
        min-width: 12;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, message: str | None = None, **kwargs):
        super().__init__(**kwargs)
        self.message = message

    def compose(self) -> ComposeResult:
        with Container():
            yield Static("Select API Key", id="api-key-title")
            if self.message:
                yield Label(self.message, classes="hint")
            yield Label("Google API Key:")
            yield Input(
                placeholder="Enter your Google API key",
                password=True,
                id="api-key-input",
            )
            with Horizontal(id="api-key-buttons"):
                yield Button("Save", id="btn-save", variant="primary")
                yield Button("Cancel", id="btn-cancel", variant="default")

    def on_mount(self) -> None:
        self.query_one("#api-key-input", Input).focus()

    @on(Input.Submitted, "#api-key-input")
    @on(Button.Pressed, "#btn-save")
    def on_save(self) -> None:
        """Dismiss with the entered key, if any."""
        api_key = self.query_one("#api-key-input", Input).value.strip()
        if not api_key:
            self.notify("Please enter an API key", severity="warning")
            return
        self.dismiss(api_key)

    @on(Button.Pressed, "#btn-cancel")
    def on_cancel_pressed(self) -> None:
        self.dismiss(None)

    def action_cancel(self) -> None:
        self.dismiss(None)
