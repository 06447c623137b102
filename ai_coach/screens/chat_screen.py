"""Chat screen showing the coach transcript."""

from datetime import datetime
from typing import List, Optional, TYPE_CHECKING

import pyperclip
from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, VerticalScroll
from textual.screen import Screen
from textual.widget import Widget
from textual.widgets import Button, Footer, Input, Label, Static, Switch

from ..config.settings_manager import set_settings
from ..core.config_paths import ConfigPaths
from ..core.key_gate import KeyState
from ..core.transcript import Role
from ..ui.chat_widgets import CoachMessage, UserMessage

if TYPE_CHECKING:
    from ..core.coach import CoachPipeline


class CoachScreen(Screen):
    """Transcript, message input and voice controls."""

    BASE_TITLE = "AI Probability Coach"

    KEY_STATUS = {
        KeyState.CHECKING: "⏳ Checking API key...",
        KeyState.NEEDED: "🔑 An API key is needed to talk to the coach.",
        KeyState.ERROR: "❌ The API key service is unavailable.",
    }

    CSS = """
    CoachScreen {
        layout: vertical;
    }

    #chat-container {
        height: 1fr;
        width: 100%;
        padding: 1 2 0 2;
    }

    #chat-log {
        height: 100%;
        width: 100%;
        border: solid $border;
        border-title-align: center;
        padding: 1 2;
        background: $surface;
    }

    #key-bar {
        height: auto;
        margin: 0 2;
    }

    #key-status {
        width: 1fr;
        color: $text-muted;
        padding: 1 0 0 0;
    }

    #input-bar {
        height: auto;
        margin: 0 2 1 2;
    }

    #chat-input {
        width: 1fr;
        border: solid $border;
        background: $panel;
    }

    #chat-input:focus {
        border: solid $primary;
    }

    #input-bar Button {
        margin-left: 1;
        min-width: 10;
    }

    #voice-label {
        padding: 1 0 0 2;
        width: auto;
    }

    .hidden {
        display: none;
    }
    """

    BINDINGS = [
        Binding("ctrl+l", "clear_chat", "Clear Chat"),
        Binding("ctrl+y", "copy_chat", "Copy Chat"),
        Binding("ctrl+e", "export_chat", "Export Chat"),
        Binding("ctrl+t", "toggle_voice", "Voice Mode"),
        Binding("escape", "app.quit", "Back"),
    ]

    def __init__(self):
        super().__init__()
        self.pipeline: Optional["CoachPipeline"] = None
        self.chat_log: Optional[VerticalScroll] = None
        self.chat_input: Optional[Input] = None
        self._turn_widgets: List[Widget] = []

    def compose(self) -> ComposeResult:
        with Container(id="chat-container"):
            with VerticalScroll(id="chat-log") as vs:
                vs.can_focus = True

        with Horizontal(id="key-bar"):
            yield Static("", id="key-status")
            yield Button("Select API key", id="btn-select-key", variant="warning")

        with Horizontal(id="input-bar"):
            yield Input(id="chat-input", placeholder="AI is not available", disabled=True)
            yield Button("Send", id="btn-send", variant="primary", disabled=True)
            yield Label("Voice", id="voice-label")
            yield Switch(value=False, id="voice-switch")

        yield Footer()

    def on_mount(self) -> None:
        """Bind to the app's pipeline and render the current state."""
        self.chat_log = self.query_one("#chat-log", VerticalScroll)
        self.chat_input = self.query_one("#chat-input", Input)

        if getattr(self.app, "pipeline", None) is not None:
            self.bind_pipeline(self.app.pipeline)
        self.refresh_view()
        self.chat_input.focus()

    def bind_pipeline(self, pipeline: "CoachPipeline") -> None:
        self.pipeline = pipeline
        pipeline.on_change = self.refresh_view

        switch = self.query_one("#voice-switch", Switch)
        with switch.prevent(Switch.Changed):
            switch.value = pipeline.voice_mode
        switch.disabled = not pipeline.narrator.available

    # Rendering

    def refresh_view(self) -> None:
        """Bring widgets in line with the pipeline state."""
        if self.pipeline is None or self.chat_log is None:
            return
        self._sync_transcript()
        self._update_controls()
        self._update_title()

    def _sync_transcript(self) -> None:
        transcript = self.pipeline.transcript
        streaming = self.pipeline.is_streaming

        if len(transcript) < len(self._turn_widgets):
            # Transcript was reset (new session or cleared)
            self.chat_log.remove_children()
            self._turn_widgets = []

        last_index = len(transcript) - 1
        for index, turn in enumerate(transcript):
            is_streaming_turn = streaming and index == last_index and turn.is_model
            if index < len(self._turn_widgets):
                widget = self._turn_widgets[index]
                if isinstance(widget, CoachMessage) and (
                    widget.message_content != turn.content
                    or widget.streaming != is_streaming_turn
                ):
                    widget.update_content(turn.content, streaming=is_streaming_turn)
                continue

            if turn.role is Role.USER:
                widget = UserMessage(content=turn.content)
            else:
                widget = CoachMessage(content=turn.content, streaming=is_streaming_turn)
            self._turn_widgets.append(widget)
            self.chat_log.mount(widget)

        self.chat_log.scroll_end(animate=False)

    def _update_controls(self) -> None:
        pipeline = self.pipeline
        can_send = pipeline.can_send

        self.chat_input.disabled = not can_send
        self.chat_input.placeholder = pipeline.input_placeholder
        self.query_one("#btn-send", Button).disabled = (
            not can_send or not self.chat_input.value.strip()
        )

        state = pipeline.key_state
        status = self.KEY_STATUS.get(state, "")
        if state in (KeyState.NEEDED, KeyState.ERROR) and pipeline.gate.error_message:
            status = f"{status} {pipeline.gate.error_message}"

        key_status = self.query_one("#key-status", Static)
        key_status.update(status)
        key_status.set_class(state is KeyState.READY, "hidden")
        self.query_one("#btn-select-key", Button).set_class(
            state is not KeyState.NEEDED, "hidden"
        )

        if can_send and self.app.focused is None:
            self.chat_input.focus()

    def _update_title(self) -> None:
        voice_status = "ON" if self.pipeline.voice_mode else "OFF"
        title_parts = [self.BASE_TITLE, f"Voice: {voice_status}"]
        if self.pipeline.is_streaming:
            title_parts.append("⏳ Thinking...")
        self.chat_log.border_title = " • ".join(title_parts)

    # Events

    @on(Input.Changed, "#chat-input")
    def on_input_changed(self, event: Input.Changed) -> None:
        if self.pipeline is not None:
            self.query_one("#btn-send", Button).disabled = (
                not self.pipeline.can_send or not event.value.strip()
            )

    @on(Input.Submitted, "#chat-input")
    @on(Button.Pressed, "#btn-send")
    def on_send(self) -> None:
        """Send the current input, unless the pipeline drops it."""
        if self.pipeline is None:
            return

        message = self.pipeline.submit(self.chat_input.value)
        if message is None:
            return

        self.chat_input.value = ""
        self.run_worker(self.pipeline.stream(message), exclusive=False)

    @on(Button.Pressed, "#btn-select-key")
    def on_select_key(self) -> None:
        if self.pipeline is not None:
            self.run_worker(self.pipeline.select_key(), exclusive=True, group="key")

    @on(Switch.Changed, "#voice-switch")
    def on_voice_switch(self, event: Switch.Changed) -> None:
        if self.pipeline is None:
            return
        enabled = self.pipeline.set_voice_mode(event.value)
        set_settings({"voice_mode": enabled})

    # Actions

    def action_toggle_voice(self) -> None:
        """Flip voice mode (the switch handler persists the change)."""
        switch = self.query_one("#voice-switch", Switch)
        if not switch.disabled:
            switch.toggle()

    def action_clear_chat(self) -> None:
        if self.pipeline is None or self.pipeline.is_streaming:
            return
        self.pipeline.clear()

    def action_copy_chat(self) -> None:
        """Copy the entire transcript to the clipboard."""
        if self.pipeline is None or not len(self.pipeline.transcript):
            self.notify("No messages to copy", title="Info", severity="information")
            return

        try:
            pyperclip.copy(self.pipeline.transcript.as_text())
            self.notify(
                f"Copied {len(self.pipeline.transcript)} messages to clipboard",
                title="Success",
            )
        except pyperclip.PyperclipException as e:
            self.notify(f"Failed to copy: {e}", title="Error", severity="error")

    def action_export_chat(self) -> None:
        """Write the transcript to a markdown file in the exports directory."""
        if self.pipeline is None or not len(self.pipeline.transcript):
            self.notify("No messages to export", title="Info", severity="information")
            return

        try:
            stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
            output_file = ConfigPaths.get_exports_dir() / f"coach_{stamp}.md"
            output_file.write_text(
                f"# {self.BASE_TITLE}\n\n{self.pipeline.transcript.as_text()}\n",
                encoding="utf-8",
            )
            self.notify(f"Chat exported to {output_file}", title="Export Complete")
        except OSError as e:
            self.notify(f"Failed to export: {e}", title="Error", severity="error")
