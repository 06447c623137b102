"""Centralized configuration path management for AI Coach.

All configuration and data files live under ~/.config/ai-coach/, following
the XDG Base Directory specification.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class ConfigPaths:
    """Single source of truth for AI Coach file locations."""

    BASE_DIR = Path.home() / ".config" / "ai-coach"

    @classmethod
    def get_base_dir(cls) -> Path:
        """Get base configuration directory, creating if needed.

        Returns:
            Path to ~/.config/ai-coach/
        """
        cls.BASE_DIR.mkdir(parents=True, exist_ok=True)
        return cls.BASE_DIR

    @classmethod
    def get_config_file(cls) -> Path:
        """Get path to main configuration file.

        Returns:
            Path to config.json
        """
        cls.get_base_dir()
        return cls.BASE_DIR / "config.json"

    @classmethod
    def get_log_file(cls) -> Path:
        """Get path to the application log file.

        Returns:
            Path to ai-coach.log
        """
        cls.get_base_dir()
        return cls.BASE_DIR / "ai-coach.log"

    @classmethod
    def get_exports_dir(cls) -> Path:
        """Get path to the transcript exports directory."""
        exports_dir = cls.BASE_DIR / "exports"
        exports_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("Using exports directory %s", exports_dir)
        return exports_dir
