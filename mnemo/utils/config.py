"""Configuration management for Mnemo application."""

import os
from pathlib import Path
from typing import Dict, Any, Optional

from ..engine.db import Database, SETTINGS_KEY, save

TEXT_MODELS = [
    ("gemini-2.5-pro", "Gemini 2.5 Pro (smart & stable)"),
    ("gemini-2.5-flash", "Gemini 2.5 Flash (fast)"),
]

IMAGE_MODELS = [
    ("imagen-4.0-generate-001", "Imagen 4.0 (stable drawing)"),
    ("gemini-2.5-flash-image", "Gemini 2.5 Flash (image)"),
]

DEFAULT_TEXT_MODEL = "gemini-2.5-pro"
DEFAULT_IMAGE_MODEL = "imagen-4.0-generate-001"

DEFAULTS = {
    "api_key": None,
    "selected_voice": "",
    "text_model": DEFAULT_TEXT_MODEL,
    "image_model": DEFAULT_IMAGE_MODEL,
    "notifications_enabled": True,
    "window_geometry": None,
}


def data_dir() -> Path:
    """Directory holding the database, caches and logs (``~/.mnemo``)."""
    override = os.environ.get("MNEMO_HOME")
    path = Path(override).expanduser() if override else Path.home() / ".mnemo"
    path.mkdir(parents=True, exist_ok=True)
    return path


class ConfigManager:
    """Manages user settings stored under the ``settings`` key.

    Created once at startup and handed to whatever needs it.
    """

    def __init__(self, db: Optional[Database] = None, stored: Optional[Dict[str, Any]] = None):
        self.db = db
        self._config = self._load_config(stored)

    def _load_config(self, stored: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Merge stored settings over the defaults."""
        config = dict(DEFAULTS)
        if isinstance(stored, dict):
            config.update(stored)
        return config

    def _save_config(self) -> None:
        """Persist settings; failures are logged by the storage layer."""
        if self.db is not None:
            save(self.db, SETTINGS_KEY, self._config)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set configuration value and save."""
        self._config[key] = value
        self._save_config()

    def get_api_key(self) -> Optional[str]:
        """Stored API key, falling back to ``GEMINI_API_KEY``."""
        return self.get("api_key") or os.environ.get("GEMINI_API_KEY")

    def set_api_key(self, api_key: str) -> None:
        self.set("api_key", api_key)

    @property
    def selected_voice(self) -> str:
        return self.get("selected_voice") or ""

    @property
    def text_model(self) -> str:
        return self.get("text_model") or DEFAULT_TEXT_MODEL

    @property
    def image_model(self) -> str:
        return self.get("image_model") or DEFAULT_IMAGE_MODEL

    @property
    def notifications_enabled(self) -> bool:
        return bool(self.get("notifications_enabled", True))
