"""Centralized model configuration for AI Coach."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ai_coach.core.config_paths import ConfigPaths

LOGGER = logging.getLogger(__name__)

MODEL_ENV_VAR = "AI_COACH_MODEL"


@dataclass(frozen=True)
class ModelConfig:
    """Configuration metadata for a Gemini model."""

    id: str
    full_id: str
    display_name: str
    description: str
    supports_streaming: bool = True
    deprecated: bool = False
    replacement: Optional[str] = None

    @property
    def api_id(self) -> str:
        """Return the identifier that should be sent to the API."""

        return self.full_id or self.id


class ModelRegistry:
    """Registry providing a single source of truth for Gemini models."""

    FLASH_25 = ModelConfig(
        id="gemini-2.5-flash",
        full_id="gemini-2.5-flash",
        display_name="Gemini 2.5 Flash",
        description="Fast, inexpensive model suited to short conversational answers.",
    )

    FLASH_LATEST = ModelConfig(
        id="gemini-flash-latest",
        full_id="gemini-flash-latest",
        display_name="Gemini Flash (Latest)",
        description="Latest Flash model.",
    )

    PRO_25 = ModelConfig(
        id="gemini-2.5-pro",
        full_id="gemini-2.5-pro",
        display_name="Gemini 2.5 Pro",
        description="Thinking model for complex reasoning in math and STEM.",
    )

    _ALL_MODELS: Tuple[ModelConfig, ...] = (
        FLASH_25,
        FLASH_LATEST,
        PRO_25,
    )

    # Short names accepted on the command line and in config.json
    _ALIASES: Dict[str, str] = {
        "flash": FLASH_25.id,
        "gemini-flash": FLASH_25.id,
        "pro": PRO_25.id,
        "gemini-pro": PRO_25.id,
    }

    DEFAULT = FLASH_25

    @classmethod
    def all_models(cls) -> Tuple[ModelConfig, ...]:
        """Return all registered models."""

        return cls._ALL_MODELS

    @classmethod
    def _indexed_models(cls) -> Dict[str, ModelConfig]:
        """Return a mapping of model identifiers to configuration objects."""

        if not hasattr(cls, "_cached_indexed_models"):
            cls._cached_indexed_models = {model.id: model for model in cls.all_models()}
        return cls._cached_indexed_models

    @classmethod
    def get_by_id(cls, model_id: Optional[str]) -> Optional[ModelConfig]:
        """Return configuration for ``model_id`` or one of its aliases."""

        if not model_id:
            return None

        clean_id = model_id.removeprefix("models/")
        models = cls._indexed_models()
        model = models.get(clean_id)
        if model:
            return model
        return models.get(cls._ALIASES.get(clean_id, ""))

    @classmethod
    def ui_options(cls) -> List[Tuple[str, str]]:
        """Return options suitable for Textual ``Select`` widgets."""

        return [
            (model.display_name, model.id)
            for model in cls.all_models()
            if not model.deprecated
        ]

    @classmethod
    def validate_model_id(cls, model_id: Optional[str]) -> Tuple[bool, Optional[str]]:
        """Validate ``model_id`` returning ``(is_valid, error_message)``."""

        if not model_id:
            return False, "Model identifier cannot be empty"

        model = cls.get_by_id(model_id)
        if not model:
            return False, f"Unknown model or alias: {model_id}"

        if model.deprecated:
            message = f"Model {model.id} is deprecated."
            if model.replacement:
                message += f" Use {model.replacement} instead."
            return False, message

        return True, None


def _load_json_config(path) -> Dict[str, Any]:
    """Loads and returns content of a JSON file."""
    if not path.exists():
        return {}
    try:
        content = path.read_text(encoding="utf-8")
        if not content.strip():
            return {}
        return json.loads(content)
    except (OSError, json.JSONDecodeError):
        LOGGER.debug(f"Failed to load configuration file: {path}", exc_info=True)
        return {}


def _load_model_from_config() -> Optional[ModelConfig]:
    """Load the default model from the persisted configuration file."""

    data = _load_json_config(ConfigPaths.get_config_file())
    if not isinstance(data, dict):
        return None
    return ModelRegistry.get_by_id(data.get("model"))


def get_default_model() -> ModelConfig:
    """Return the model configured for the application."""

    env_model = os.environ.get(MODEL_ENV_VAR)
    if env_model:
        model = ModelRegistry.get_by_id(env_model)
        if model:
            return model
        LOGGER.warning("Invalid %s=%s, falling back to defaults", MODEL_ENV_VAR, env_model)

    config_model = _load_model_from_config()
    if config_model:
        return config_model

    return ModelRegistry.DEFAULT


def get_default_model_id() -> str:
    """Return the API identifier for the default model."""

    return get_default_model().api_id
