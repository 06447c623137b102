"""The coach pipeline: key gate, session, dispatcher and narrator wired together."""

import logging
from typing import Callable, Optional

from .dispatcher import DispatchState, MessageDispatcher
from .key_gate import KeyGate, KeyState
from .narrator import Narrator
from .prompts import GREETING, INPUT_PLACEHOLDER, UNAVAILABLE_PLACEHOLDER
from .session import ChatSession, SessionFactory, SessionInitializer
from .transcript import Role, Transcript, Turn

logger = logging.getLogger(__name__)


class CoachPipeline:
    """Owns the transcript and the single live chat session.

    Args:
        gate: Key availability gate
        session_factory: Coroutine factory producing a fresh ChatSession
        narrator: Speech narrator used in voice mode
        voice_mode: Initial voice mode
    """

    def __init__(
        self,
        gate: KeyGate,
        session_factory: SessionFactory,
        narrator: Optional[Narrator] = None,
        voice_mode: bool = False,
    ):
        self.gate = gate
        self.narrator = narrator or Narrator()
        self.transcript = Transcript()
        self.voice_mode = voice_mode and self.narrator.available
        self.initializer = SessionInitializer(gate, self.transcript, session_factory)
        self.dispatcher = MessageDispatcher(
            self.transcript,
            session_provider=lambda: self.session,
            voice_mode_provider=lambda: self.voice_mode,
            narrator=self.narrator,
        )
        self.on_change: Optional[Callable[[], None]] = None
        self.dispatcher.on_transcript_changed = lambda _: self._changed()
        self.dispatcher.on_state_changed = lambda _: self._changed()

    def _changed(self) -> None:
        if self.on_change:
            self.on_change()

    @property
    def session(self) -> Optional[ChatSession]:
        return self.initializer.session

    @property
    def key_state(self) -> KeyState:
        return self.gate.state

    @property
    def is_streaming(self) -> bool:
        return self.dispatcher.is_streaming

    @property
    def dispatch_state(self) -> DispatchState:
        return self.dispatcher.state

    @property
    def can_send(self) -> bool:
        return (
            self.session is not None
            and not self.is_streaming
            and not self.initializer.initializing
        )

    @property
    def input_placeholder(self) -> str:
        return INPUT_PLACEHOLDER if self.session is not None else UNAVAILABLE_PLACEHOLDER

    async def start(self) -> KeyState:
        """Run the key check and, if it passes, start the session."""
        state = await self.gate.check()
        self._changed()
        if state is KeyState.READY:
            await self.initializer.initialize()
            self._changed()
        return self.gate.state

    async def select_key(self) -> KeyState:
        """Let the user pick a key, then start over with a fresh session."""
        state = await self.gate.select_key()
        self._changed()
        if state is KeyState.READY:
            self.initializer.reset()
            await self.initializer.initialize()
            self._changed()
        return self.gate.state

    def submit(self, text: str) -> Optional[str]:
        return self.dispatcher.submit(text)

    async def stream(self, message: str) -> str:
        return await self.dispatcher.stream(message)

    async def send(self, text: str) -> bool:
        return await self.dispatcher.send(text)

    def set_voice_mode(self, enabled: bool) -> bool:
        """Turn voice mode on or off. Turning it off silences any narration."""
        self.voice_mode = bool(enabled) and self.narrator.available
        if not self.voice_mode:
            self.narrator.cancel()
        logger.info("Voice mode %s", "on" if self.voice_mode else "off")
        self._changed()
        return self.voice_mode

    def toggle_voice_mode(self) -> bool:
        return self.set_voice_mode(not self.voice_mode)

    def clear(self) -> None:
        """Reset the visible transcript to the greeting, keeping the session."""
        if self.is_streaming:
            return
        if self.session is not None:
            self.transcript.reset([Turn(Role.MODEL, GREETING)])
        else:
            self.transcript.reset()
        self._changed()
