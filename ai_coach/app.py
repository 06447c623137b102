"""Main application module for AI Coach."""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from textual.app import App
from textual.binding import Binding

from .config.models import ModelRegistry, get_default_model_id
from .config.settings_manager import (
    get_theme_setting,
    get_voice_mode_setting,
    get_voice_settings,
    set_settings,
)
from .core.coach import CoachPipeline
from .core.key_gate import KeyGate, SettingsKeyManager
from .core.narrator import Narrator, VoiceProfile, create_default_engine
from .core.session import GenAISessionFactory
from .screens.api_key_modal import ApiKeyModal
from .screens.chat_screen import CoachScreen

logger = logging.getLogger(__name__)


class CoachApp(App):
    """AI Probability Coach TUI application."""

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", priority=True),
        Binding("ctrl+d", "toggle_dark", "Toggle Dark Mode"),
    ]

    TITLE = "AI Coach"
    SUB_TITLE = "Probability made friendly"

    def __init__(
        self,
        model_id: Optional[str] = None,
        voice_mode: Optional[bool] = None,
        use_key_dialog: bool = True,
    ):
        """Initialize the application.

        Args:
            model_id: Model to chat with (defaults to the configured model)
            voice_mode: Initial voice mode (defaults to the saved setting)
            use_key_dialog: Offer the API key dialog when no key is in the
                environment
        """
        super().__init__()
        self.theme = get_theme_setting(self.available_themes)

        self.api_key: Optional[str] = None
        self._load_api_key()

        self.model_id = model_id or get_default_model_id()
        if voice_mode is None:
            voice_mode = get_voice_mode_setting()

        # A key from the environment is ambient configuration; otherwise the
        # key is selected through the dialog and stored in config.json.
        key_manager = None
        if not self.api_key and use_key_dialog:
            key_manager = SettingsKeyManager(self.prompt_for_api_key)

        self.narrator = Narrator(
            create_default_engine(),
            VoiceProfile.from_dict(get_voice_settings()),
        )
        self.pipeline = CoachPipeline(
            gate=KeyGate(key_manager),
            session_factory=GenAISessionFactory(model_id=self.model_id),
            narrator=self.narrator,
            voice_mode=voice_mode,
        )

    def _load_api_key(self) -> None:
        """Load API key from environment."""
        load_dotenv()

        self.api_key = os.environ.get("GOOGLE_API_KEY") or os.environ.get(
            "GEMINI_API_KEY"
        )

    def on_mount(self) -> None:
        """Show the chat screen and start the key check."""
        model = ModelRegistry.get_by_id(self.model_id)
        if model:
            self.sub_title = f"{self.SUB_TITLE} • {model.display_name}"

        self.push_screen(CoachScreen())
        self.run_worker(self.pipeline.start(), exclusive=True, group="startup")

    async def prompt_for_api_key(self) -> Optional[str]:
        """Open the API key dialog and wait for the user's answer."""
        return await self.push_screen_wait(
            ApiKeyModal(message=self.pipeline.gate.error_message)
        )

    def action_toggle_dark(self) -> None:
        """Toggle dark mode and remember the choice."""
        self.theme = "textual-dark" if self.theme == "textual-light" else "textual-light"
        set_settings({"theme": self.theme})

    async def action_quit(self) -> None:
        """Silence any narration before exiting."""
        self.narrator.cancel()
        await super().action_quit()
