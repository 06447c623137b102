"""Persistent user settings for AI Coach.

Settings live in a single JSON object in ``config.json``:

    {
        "api_key": str,       # Google API key selected through the key dialog
        "model": str,         # Model ID (e.g., "gemini-2.5-flash")
        "voice_mode": bool,   # Narrate replies on start-up
        "theme": str,         # Textual theme name
        "voice": {"pitch": float, "rate": float, "volume": float},
    }

A missing, empty or unreadable file behaves like an empty object.
"""

import json
import logging
from typing import Any, Dict, Iterable

from ai_coach.core.config_paths import ConfigPaths

LOGGER = logging.getLogger(__name__)

DEFAULT_THEME = "textual-dark"


def read_settings() -> Dict[str, Any]:
    """Return the saved settings object."""
    config_file = ConfigPaths.get_config_file()
    try:
        raw = config_file.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as e:
        LOGGER.warning("Cannot read %s: %s", config_file, e)
        return {}

    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        LOGGER.warning("Ignoring malformed settings in %s: %s", config_file, e)
        return {}
    if not isinstance(data, dict):
        LOGGER.warning("Ignoring settings in %s: not a JSON object", config_file)
        return {}
    return data


def get_setting(key: str, default: Any = None) -> Any:
    """Retrieve a single saved setting."""
    return read_settings().get(key, default)


def set_settings(updates: Dict[str, Any]) -> None:
    """Merge ``updates`` into the saved settings."""
    data = read_settings()
    data.update(updates)

    config_file = ConfigPaths.get_config_file()
    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        config_file.write_text(json.dumps(data, indent=4), encoding="utf-8")
    except OSError as e:
        LOGGER.error("Failed to save settings to %s: %s", config_file, e)


def get_theme_setting(available: Iterable[str]) -> str:
    """Saved theme if it is one of ``available``, else DEFAULT_THEME."""
    theme = get_setting("theme", DEFAULT_THEME)
    return theme if theme in set(available) else DEFAULT_THEME


def get_voice_mode_setting() -> bool:
    """Whether voice mode should be on when the app starts."""
    return get_setting("voice_mode", False) is True


def get_voice_settings() -> Dict[str, Any]:
    """Return the saved narration voice parameters (may be empty)."""
    voice = get_setting("voice", {})
    return voice if isinstance(voice, dict) else {}
