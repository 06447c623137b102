"""Sends user turns to the session and streams replies into the transcript."""

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from .narrator import Narrator
from .prompts import STREAM_ERROR_MESSAGE, VOICE_MODE_OFF, VOICE_MODE_ON
from .reply import extract_voice_over
from .session import ChatSession
from .transcript import Transcript

logger = logging.getLogger(__name__)


class DispatchState(Enum):
    """Lifecycle of a single exchange."""

    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"


class MessageDispatcher:
    """Runs one user/model exchange at a time.

    A submission is split in two steps: submit() synchronously validates the
    input and records the new turns, stream() consumes the provider's reply.
    Submissions made while an exchange is in flight are dropped.
    """

    def __init__(
        self,
        transcript: Transcript,
        session_provider: Callable[[], Optional[ChatSession]],
        voice_mode_provider: Callable[[], bool] = lambda: False,
        narrator: Optional[Narrator] = None,
        interpreter: Callable[[str], Optional[str]] = extract_voice_over,
        send_off_directive: bool = False,
    ):
        self.transcript = transcript
        self.session_provider = session_provider
        self.voice_mode_provider = voice_mode_provider
        self.narrator = narrator
        self.interpreter = interpreter
        self.send_off_directive = send_off_directive

        self.state = DispatchState.IDLE
        self.last_error: Optional[BaseException] = None
        self.voice_mode_at_send = False

        self.on_transcript_changed: Optional[Callable[[Transcript], None]] = None
        self.on_state_changed: Optional[Callable[[DispatchState], None]] = None

    @property
    def is_streaming(self) -> bool:
        return self.state is not DispatchState.IDLE

    def _set_state(self, state: DispatchState) -> None:
        self.state = state
        if self.on_state_changed:
            self.on_state_changed(state)

    def _notify_transcript(self) -> None:
        if self.on_transcript_changed:
            self.on_transcript_changed(self.transcript)

    def compose_message(self, text: str, voice_mode: bool) -> str:
        """Prefix the voice mode directive the model expects."""
        if voice_mode:
            return f"{VOICE_MODE_ON}\n{text}"
        if self.send_off_directive:
            return f"{VOICE_MODE_OFF}\n{text}"
        return text

    def submit(self, text: str) -> Optional[str]:
        """Record a user turn and a placeholder reply.

        Args:
            text: Raw user input

        Returns:
            The message to send to the session, or None if the submission
            was dropped (blank input, no session, or an exchange in flight)
        """
        if not text or not text.strip():
            return None
        if self.session_provider() is None or self.is_streaming:
            return None

        self.last_error = None
        self.voice_mode_at_send = self.voice_mode_provider()
        self.transcript.append_user(text)
        self.transcript.append_model("")
        self._set_state(DispatchState.SENDING)
        self._notify_transcript()

        return self.compose_message(text, self.voice_mode_at_send)

    async def stream(self, message: str) -> str:
        """Stream the reply to ``message`` into the trailing model turn.

        Returns:
            The final content of the trailing model turn
        """
        session = self.session_provider()
        accumulated = ""
        try:
            if session is None:
                raise RuntimeError("No chat session available")

            self._set_state(DispatchState.STREAMING)
            async for fragment in session.send_stream(message):
                accumulated += fragment
                logger.debug("Received %d characters", len(fragment))
                self.transcript.replace_last(accumulated)
                self._notify_transcript()
        except Exception as e:
            logger.exception("Error while streaming reply")
            self.last_error = e
            accumulated = STREAM_ERROR_MESSAGE
            self.transcript.replace_last(accumulated)
            self._notify_transcript()
            return accumulated
        except asyncio.CancelledError:
            logger.info("Reply stream cancelled")
            if not accumulated:
                self.transcript.replace_last(STREAM_ERROR_MESSAGE)
                self._notify_transcript()
            raise
        finally:
            self._set_state(DispatchState.IDLE)

        # Voice mode as it was when the message was sent; switching it off
        # since then still silences the reply
        speak = self.voice_mode_at_send and self.voice_mode_provider()
        if speak and self.narrator is not None:
            narration = self.interpreter(accumulated)
            if narration:
                self.narrator.speak(narration)

        return accumulated

    async def send(self, text: str) -> bool:
        """Submit ``text`` and stream the reply.

        Returns:
            False if the submission was dropped
        """
        message = self.submit(text)
        if message is None:
            return False
        await self.stream(message)
        return True
