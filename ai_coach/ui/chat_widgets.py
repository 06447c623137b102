"""Widgets for chat transcript entries."""

import pyperclip

from textual import on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Collapsible, Static
from rich.markdown import Markdown

from ..core.reply import ReplySections, parse_reply

STREAMING_CURSOR = "▍"


class CoachMessage(Vertical):
    """A model reply split into explanation, formula and description panels.

    The narration block is never shown; it is only meant to be spoken.
    """

    DEFAULT_CSS = """
    CoachMessage {
        width: 100%;
        height: auto;
        margin: 0 0 1 0;
        border: solid $accent;
        background: $surface;
    }

    CoachMessage .message-header {
        layout: horizontal;
        width: 100%;
        height: auto;
        padding: 0 1;
        background: $boost;
    }

    CoachMessage .message-title {
        width: 1fr;
        content-align: left middle;
        padding: 0 1;
    }

    CoachMessage .copy-button {
        min-width: 10;
        height: auto;
        padding: 0 1;
        margin: 0;
    }

    CoachMessage .message-content {
        width: 100%;
        padding: 1 2 0 2;
    }

    CoachMessage .latex-formula {
        width: 100%;
        margin: 1 2 0 2;
        padding: 0 1;
        background: $panel;
        color: $text-primary;
        text-style: bold;
    }

    CoachMessage .formula-description {
        width: 100%;
        padding: 1 2 0 2;
        color: $text-muted;
        text-style: italic;
    }

    CoachMessage Collapsible {
        width: 100%;
        border: none;
        background: $surface;
    }

    CoachMessage .hidden {
        display: none;
    }
    """

    def __init__(self, content: str = "", streaming: bool = False, **kwargs):
        kwargs["classes"] = f"{kwargs.get('classes', '')} ai-message".strip()
        super().__init__(**kwargs)
        self.message_content = str(content) if content is not None else ""
        self.streaming = streaming
        self.sections = parse_reply(self.message_content)

    def compose(self) -> ComposeResult:
        with Horizontal(classes="message-header"):
            yield Static("🤖 Pro-Bot", classes="message-title")
            yield Button("📋 Copy", classes="copy-button", variant="primary")

        yield Static(classes="message-content explanation")
        yield Static(classes="latex-formula", markup=False)
        with Collapsible(title="MathML", collapsed=True, classes="markup-formula"):
            yield Static(classes="markup-content", markup=False)
        yield Static(classes="formula-description", markup=False)

    def on_mount(self) -> None:
        self._render_sections()

    def update_content(self, content: str, streaming: bool = False) -> None:
        """Show new reply content (the full reply so far, not a delta)."""
        self.message_content = str(content) if content is not None else ""
        self.streaming = streaming
        self.sections = parse_reply(self.message_content)
        if self.is_mounted:
            self._render_sections()

    def _render_sections(self) -> None:
        sections: ReplySections = self.sections

        explanation = sections.explanation
        if self.streaming:
            explanation = f"{explanation}{STREAMING_CURSOR}"
        self.query_one(".explanation", Static).update(Markdown(explanation))

        self._show(".latex-formula", sections.latex)
        self._show(".formula-description", sections.description)

        markup = self.query_one(".markup-formula", Collapsible)
        markup.set_class(sections.markup is None, "hidden")
        self.query_one(".markup-content", Static).update(sections.markup or "")

    def _show(self, selector: str, text) -> None:
        widget = self.query_one(selector, Static)
        widget.set_class(text is None, "hidden")
        widget.update(text or "")

    @property
    def display_text(self) -> str:
        """The reply as shown to the user, without the narration block."""
        parts = [self.sections.explanation]
        if self.sections.latex:
            parts.append(f"$${self.sections.latex}$$")
        if self.sections.markup:
            parts.append(self.sections.markup)
        if self.sections.description:
            parts.append(f"Description: {self.sections.description}")
        return "\n\n".join(part for part in parts if part)

    @on(Button.Pressed, ".copy-button")
    def copy_message(self, event: Button.Pressed) -> None:
        """Handle copy button press."""
        event.stop()
        try:
            pyperclip.copy(self.display_text)
            self.app.notify("Message copied to clipboard", title="Success")
        except pyperclip.PyperclipException as e:
            self.app.notify(f"Failed to copy: {e}", title="Error", severity="error")


class UserMessage(Horizontal):
    """Simple user message display."""

    DEFAULT_CSS = """
    UserMessage {
        width: 100%;
        height: auto;
        padding: 1 2;
        margin: 0 0 1 0;
        background: $panel;
        border-left: thick $primary;
    }

    UserMessage .user-label {
        color: $primary;
        text-style: bold;
        width: auto;
    }

    UserMessage .user-content {
        width: 1fr;
    }
    """

    def __init__(self, content: str, **kwargs):
        self.message_content = str(content) if content is not None else ""
        super().__init__(**kwargs)

    def compose(self) -> ComposeResult:
        yield Static("You: ", classes="user-label")
        yield Static(self.message_content, classes="user-content", markup=False)
