import json
from pathlib import Path
import pytest
from unittest.mock import MagicMock

from ai_coach.config.settings_manager import (
    read_settings,
    set_settings,
    get_setting,
    get_theme_setting,
    get_voice_mode_setting,
    get_voice_settings,
    DEFAULT_THEME,
)


THEMES = {"textual-dark": object(), "textual-light": object(), "gruvbox": object()}


@pytest.fixture
def mock_config_file(tmp_path: Path, monkeypatch):
    """Fixture to mock ConfigPaths.get_config_file to return a temp file path."""
    temp_config_file = tmp_path / "config.json"
    mock_config_paths = MagicMock()
    mock_config_paths.get_config_file.return_value = temp_config_file

    monkeypatch.setattr(
        "ai_coach.config.settings_manager.ConfigPaths", mock_config_paths
    )

    return temp_config_file


def test_read_settings_missing_file(mock_config_file: Path):
    """Test loading data when the config file does not exist."""
    assert not mock_config_file.exists()
    assert read_settings() == {}


def test_read_settings_empty_file(mock_config_file: Path):
    """Test loading data from an empty config file."""
    mock_config_file.write_text("")
    assert read_settings() == {}


def test_read_settings_corrupt_json(mock_config_file: Path):
    """Test loading data from a file with invalid JSON."""
    mock_config_file.write_text("this is not json")
    assert read_settings() == {}


def test_read_settings_non_object(mock_config_file: Path):
    """A JSON list is not a valid settings file."""
    mock_config_file.write_text("[1, 2, 3]")
    assert read_settings() == {}


def test_set_settings_new_file(mock_config_file: Path):
    """Test setting a new configuration when the file doesn't exist."""
    set_settings({"api_key": "123", "voice_mode": True})

    content = json.loads(mock_config_file.read_text())
    assert content == {"api_key": "123", "voice_mode": True}


def test_set_settings_merges_existing(mock_config_file: Path):
    """Updates keep unrelated settings."""
    mock_config_file.write_text(json.dumps({"model": "gemini-2.5-pro", "theme": "nord"}))

    set_settings({"theme": "dracula"})

    content = json.loads(mock_config_file.read_text())
    assert content == {"model": "gemini-2.5-pro", "theme": "dracula"}


def test_get_setting_default(mock_config_file: Path):
    assert get_setting("missing", "fallback") == "fallback"


def test_get_theme_setting_invalid_falls_back(mock_config_file: Path):
    mock_config_file.write_text(json.dumps({"theme": "bogus"}))
    assert get_theme_setting(THEMES) == DEFAULT_THEME


def test_get_theme_setting_saved(mock_config_file: Path):
    mock_config_file.write_text(json.dumps({"theme": "gruvbox"}))
    assert get_theme_setting(THEMES) == "gruvbox"


def test_get_voice_mode_setting(mock_config_file: Path):
    assert get_voice_mode_setting() is False

    mock_config_file.write_text(json.dumps({"voice_mode": "yes"}))
    assert get_voice_mode_setting() is False

    mock_config_file.write_text(json.dumps({"voice_mode": True}))
    assert get_voice_mode_setting() is True


def test_get_voice_settings(mock_config_file: Path):
    assert get_voice_settings() == {}

    mock_config_file.write_text(json.dumps({"voice": "loud"}))
    assert get_voice_settings() == {}

    mock_config_file.write_text(json.dumps({"voice": {"pitch": 1.4}}))
    assert get_voice_settings() == {"pitch": 1.4}


def test_get_theme_setting_default(mock_config_file: Path):
    assert get_theme_setting(THEMES) == DEFAULT_THEME


def test_read_settings_unreadable(mock_config_file: Path):
    """A config path that cannot be read as a file behaves like no settings."""
    mock_config_file.mkdir()
    assert read_settings() == {}


def test_set_settings_unwritable_does_not_raise(mock_config_file: Path):
    mock_config_file.mkdir()
    set_settings({"theme": "nord"})
    assert mock_config_file.is_dir()
