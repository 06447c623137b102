"""Chat session construction for the Gemini provider."""

import logging
import os
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, Optional, Protocol

from google import genai
from google.genai import types

from ..config.models import get_default_model_id
from ..config.settings_manager import get_setting
from .key_gate import KeyGate
from .prompts import (
    GREETING,
    INVALID_KEY_MESSAGE,
    KEY_NOT_CONFIGURED_MESSAGE,
    SYSTEM_INSTRUCTION,
    UNAVAILABLE_MESSAGE,
    UNEXPECTED_INIT_MESSAGE,
)
from .transcript import Role, Transcript, Turn

logger = logging.getLogger(__name__)

# Lower-cased fragments of provider errors caused by a bad or unauthorized key
INVALID_KEY_PATTERNS = (
    "api key not valid",
    "api_key_invalid",
    "permission denied",
    "permission_denied",
    "requested entity was not found",
    "403",
)


class ChatSession(Protocol):
    """Opaque handle to a provider-side conversation."""

    def send_stream(self, text: str) -> AsyncIterator[str]:
        ...


class MissingApiKeyError(RuntimeError):
    """Raised when a session is requested but no API key is available."""


class InitErrorKind(Enum):
    """Classification of session construction failures."""

    INVALID_KEY = "invalid_key"
    UNEXPECTED = "unexpected"


def classify_init_error(error: BaseException) -> InitErrorKind:
    """Tell an invalid/forbidden key apart from any other failure."""
    message = str(error).lower()
    if any(pattern in message for pattern in INVALID_KEY_PATTERNS):
        return InitErrorKind.INVALID_KEY
    return InitErrorKind.UNEXPECTED


def resolve_api_key() -> Optional[str]:
    """Return the API key from the environment, falling back to settings."""
    return (
        os.environ.get("GOOGLE_API_KEY")
        or os.environ.get("GEMINI_API_KEY")
        or get_setting("api_key")
        or None
    )


class GenAISession:
    """ChatSession backed by a google-genai async chat."""

    def __init__(self, chat):
        self._chat = chat

    async def send_stream(self, text: str) -> AsyncIterator[str]:
        """Send one user turn and yield reply fragments in delivery order."""
        stream = await self._chat.send_message_stream(text)
        async for chunk in stream:
            if chunk is None:
                continue
            fragment = getattr(chunk, "text", None)
            if fragment:
                yield fragment


class GenAISessionFactory:
    """Builds a brand new Gemini chat session on every call.

    The API key is looked up at call time so that a key selected moments
    ago is picked up by the next session.
    """

    def __init__(
        self,
        api_key_provider: Callable[[], Optional[str]] = resolve_api_key,
        model_id: Optional[str] = None,
        system_instruction: str = SYSTEM_INSTRUCTION,
    ):
        self.api_key_provider = api_key_provider
        self.model_id = model_id
        self.system_instruction = system_instruction

    async def __call__(self) -> ChatSession:
        api_key = self.api_key_provider()
        if not api_key:
            raise MissingApiKeyError(
                "API key not provided. Set GOOGLE_API_KEY or GEMINI_API_KEY."
            )

        model_id = self.model_id or get_default_model_id()
        client = genai.Client(api_key=api_key)
        # Chats are built locally; look the model up so a bad key fails here
        await client.aio.models.get(model=model_id)
        chat = client.aio.chats.create(
            model=model_id,
            config=types.GenerateContentConfig(
                system_instruction=self.system_instruction,
            ),
        )
        logger.info("Created chat session with model %s", model_id)
        return GenAISession(chat)


SessionFactory = Callable[[], Awaitable[ChatSession]]


class SessionInitializer:
    """Owns the single live session and seeds the transcript when it starts."""

    def __init__(self, gate: KeyGate, transcript: Transcript, factory: SessionFactory):
        self.gate = gate
        self.transcript = transcript
        self.factory = factory
        self.session: Optional[ChatSession] = None
        self.initializing = False

    async def initialize(self) -> bool:
        """Create a session if the key is ready and none is live.

        Returns:
            True if a new session was created
        """
        if not self.gate.is_ready or self.session is not None or self.initializing:
            return False

        self.initializing = True
        try:
            session = await self.factory()
        except Exception as e:
            missing_key = isinstance(e, MissingApiKeyError)
            if missing_key:
                logger.warning("Cannot start chat session: %s", e)
            else:
                logger.exception("Failed to initialize chat session")

            if self.gate.can_reselect:
                self.gate.require_reselect(self._reselect_message(e))
            elif missing_key:
                self.transcript.append(Turn(Role.MODEL, KEY_NOT_CONFIGURED_MESSAGE))
            else:
                self.transcript.append(Turn(Role.MODEL, UNAVAILABLE_MESSAGE))
            return False
        finally:
            self.initializing = False

        self.session = session
        self.transcript.reset([Turn(Role.MODEL, GREETING)])
        return True

    @staticmethod
    def _reselect_message(error: BaseException) -> str:
        if isinstance(error, MissingApiKeyError):
            return INVALID_KEY_MESSAGE
        if classify_init_error(error) is InitErrorKind.INVALID_KEY:
            return INVALID_KEY_MESSAGE
        return UNEXPECTED_INIT_MESSAGE

    def reset(self) -> None:
        """Forget the live session so the next initialize() builds a new one."""
        self.session = None
