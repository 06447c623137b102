"""Speech narration of coach replies."""

import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Protocol

import pyttsx3

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoiceProfile:
    """Vocal parameters, relative to the engine default (1.0)."""

    pitch: float = 1.2
    rate: float = 1.1
    volume: float = 1.0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "VoiceProfile":
        """Build a profile from settings, ignoring unknown or invalid values."""
        defaults = cls()
        if not isinstance(data, dict):
            return defaults

        values = {}
        for name in ("pitch", "rate", "volume"):
            if name not in data:
                continue
            try:
                values[name] = float(data[name])
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid voice %s: %r", name, data[name])
        if "volume" in values:
            values["volume"] = min(max(values["volume"], 0.0), 1.0)
        return replace(defaults, **values)


class SpeechEngine(Protocol):
    """Text-to-speech backend."""

    def speak(self, text: str, pitch: float, rate: float, volume: float) -> None:
        ...

    def cancel(self) -> None:
        ...


class Pyttsx3Engine:
    """SpeechEngine built on pyttsx3.

    Playback runs on a background thread so speak() returns immediately.
    """

    BASE_RATE = 200  # words per minute

    def __init__(self, engine=None):
        self._engine = engine if engine is not None else pyttsx3.init()
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    def speak(self, text: str, pitch: float, rate: float, volume: float) -> None:
        with self._lock:
            self._engine.setProperty("rate", int(self.BASE_RATE * rate))
            self._engine.setProperty("volume", volume)
            try:
                self._engine.setProperty("pitch", pitch)
            except (KeyError, AttributeError, NotImplementedError):
                logger.debug("Speech driver does not support pitch")
            self._engine.say(text)

        self._thread = threading.Thread(
            target=self._run, name="coach-narrator", daemon=True
        )
        self._thread.start()

    def _run(self) -> None:
        try:
            self._engine.runAndWait()
        except RuntimeError as e:
            # pyttsx3 refuses to start a second loop while one is running
            logger.debug("Speech loop not started: %s", e)

    def cancel(self) -> None:
        self._engine.stop()


def create_default_engine() -> Optional[SpeechEngine]:
    """Return a pyttsx3 engine, or None if no speech driver is usable."""
    try:
        return Pyttsx3Engine()
    except Exception as e:
        logger.warning("Speech synthesis unavailable: %s", e)
        return None


class Narrator:
    """Speaks one piece of text at a time; each call supersedes the last."""

    def __init__(
        self,
        engine: Optional[SpeechEngine] = None,
        profile: Optional[VoiceProfile] = None,
    ):
        self.engine = engine
        self.profile = profile or VoiceProfile()

    @property
    def available(self) -> bool:
        return self.engine is not None

    def speak(self, text: Optional[str]) -> bool:
        """Cancel current speech and speak ``text``.

        Returns:
            True if speech was started
        """
        if not text or not text.strip() or self.engine is None:
            return False

        self.engine.cancel()
        self.engine.speak(
            text.strip(),
            pitch=self.profile.pitch,
            rate=self.profile.rate,
            volume=self.profile.volume,
        )
        return True

    def cancel(self) -> None:
        if self.engine is not None:
            self.engine.cancel()
