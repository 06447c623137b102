"""Configuration utilities for the AI Coach application."""

from .models import ModelConfig, ModelRegistry, get_default_model, get_default_model_id
from .settings_manager import (
    get_setting,
    set_settings,
    get_theme_setting,
    get_voice_mode_setting,
    get_voice_settings,
    read_settings,
    DEFAULT_THEME,
)

__all__ = [
    # Model configuration
    "ModelConfig",
    "ModelRegistry",
    "get_default_model",
    "get_default_model_id",
    # Settings management
    "get_setting",
    "set_settings",
    "get_theme_setting",
    "get_voice_mode_setting",
    "get_voice_settings",
    "read_settings",
    "DEFAULT_THEME",
]
