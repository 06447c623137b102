"""Shared fixtures for the AI Coach test suite."""

from typing import List, Optional
from unittest.mock import Mock

import pytest

from ai_coach.core.config_paths import ConfigPaths


class FakeSession:
    """ChatSession double yielding canned fragments.

    Args:
        fragments: Fragments to yield, in order
        fail_after: Raise after yielding this many fragments (None = never)
    """

    def __init__(self, fragments: List[str], fail_after: Optional[int] = None):
        self.fragments = fragments
        self.fail_after = fail_after
        self.sent: List[str] = []

    async def send_stream(self, text: str):
        self.sent.append(text)
        for index, fragment in enumerate(self.fragments):
            if self.fail_after is not None and index >= self.fail_after:
                break
            yield fragment
        if self.fail_after is not None:
            raise ConnectionError("stream interrupted")


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep settings and logs out of the real home directory."""
    monkeypatch.setattr(ConfigPaths, "BASE_DIR", tmp_path / "ai-coach")
    for name in ("GOOGLE_API_KEY", "GEMINI_API_KEY", "AI_COACH_MODEL"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path / "ai-coach"


@pytest.fixture
def make_session():
    """Factory fixture for FakeSession instances."""
    return FakeSession


@pytest.fixture
def speech_engine():
    """Mock SpeechEngine recording speak/cancel calls."""
    engine = Mock()
    engine.speak = Mock()
    engine.cancel = Mock()
    return engine
