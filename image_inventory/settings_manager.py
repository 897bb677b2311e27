from __future__ import annotations

import json
import os
from typing import Any

from .logger import get_logger
from .path_utils import abs_dir

_logger = get_logger("settings")


def default_settings_path() -> str:
    env = (os.getenv("IMAGE_INVENTORY_SETTINGS") or "").strip()
    if env:
        return env
    return os.path.join(os.path.expanduser("~"), ".image_inventory", "settings.json")


class SettingsManager:
    def __init__(self, settings_path: str):
        self.settings_path = settings_path
        self._settings: dict[str, Any] = {}
        self.load()

    DEFAULTS: dict[str, Any] = {
        "info_cache_max_entries": 2048,
        "output_format": "png",
        "last_directory": None,
    }

    def load(self) -> None:
        try:
            if os.path.exists(self.settings_path):
                with open(self.settings_path, encoding="utf-8") as f:
                    data = json.load(f)
                    if isinstance(data, dict):
                        self._settings = data
                        _logger.debug("settings loaded: %s", self.settings_path)
                        return
                    _logger.warning("settings ignored, not a JSON object: %s", self.settings_path)
        except (OSError, ValueError) as e:
            _logger.warning("settings load failed: %s", e)
        self._settings = {}

    def save(self) -> None:
        try:
            parent = os.path.dirname(self.settings_path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(self.settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, ensure_ascii=False, indent=2)
            _logger.debug("settings saved: %s", self.settings_path)
        except OSError as e:
            _logger.error("settings save failed: %s", e)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._settings:
            return self._settings[key]
        if default is not None:
            return default
        return self.DEFAULTS.get(key)

    def has(self, key: str) -> bool:
        return key in self._settings

    def set(self, key: str, value: Any) -> None:
        self._settings[key] = value
        self.save()

    @property
    def data(self) -> dict[str, Any]:
        return self._settings

    @property
    def info_cache_max_entries(self) -> int:
        try:
            value = int(self.get("info_cache_max_entries"))
        except (TypeError, ValueError):
            _logger.warning("invalid info_cache_max_entries; using default")
            return int(self.DEFAULTS["info_cache_max_entries"])
        return value if value > 0 else int(self.DEFAULTS["info_cache_max_entries"])

    @property
    def output_format(self) -> str:
        val = self.get("output_format")
        return val.lower().lstrip(".") if isinstance(val, str) and val.strip() else "png"

    @property
    def last_directory(self) -> str | None:
        val = self.get("last_directory")
        if not isinstance(val, str) or not val:
            return None
        # A file path falls back to its folder
        folder = abs_dir(val)
        return str(folder) if folder.is_dir() else None
