"""
Persistent user settings.

Stored as YAML in the user's config directory. Keys are the camelCase
names the page uses (apiProvider, roamingSpeed, ...), so the JS side can
read and write them through the js_api without translation.
"""

import copy
import logging
import os
import threading
from numbers import Real
from pathlib import Path
from typing import Any, Optional, Union

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {
    "openaiApiKey": "",
    "openrouterApiKey": "",
    "apiProvider": "openai",
    "model": "",
    "windowBounds": {"x": 100, "y": 100, "width": 300, "height": 400},
    "roamingEnabled": False,
    "roamingSpeed": 2,
    "chatPosition": "right",
    "alwaysOnTop": True,
    "transparency": 0.9,
    "character": "buddy",
}


def default_settings_path() -> Path:
    """~/.config/vrm-assistant/settings.yaml, or $VRM_ASSISTANT_HOME/settings.yaml"""
    home = os.environ.get("VRM_ASSISTANT_HOME")
    base = Path(home) if home else Path.home() / ".config" / "vrm-assistant"
    return base / "settings.yaml"


def _validate(key: str, value: Any):
    if key == "roamingSpeed":
        if isinstance(value, bool) or not isinstance(value, Real) or value <= 0:
            raise ValueError(f"roamingSpeed must be a positive number, got {value!r}")
    elif key == "apiProvider":
        if value not in ("openai", "openrouter"):
            raise ValueError(f"apiProvider must be 'openai' or 'openrouter', got {value!r}")
    elif key == "transparency":
        if isinstance(value, bool) or not isinstance(value, Real) or not 0 <= value <= 1:
            raise ValueError(f"transparency must be between 0 and 1, got {value!r}")
    elif key in ("roamingEnabled", "alwaysOnTop"):
        if not isinstance(value, bool):
            raise ValueError(f"{key} must be true or false, got {value!r}")
    elif key == "windowBounds":
        if not isinstance(value, dict) or not {"x", "y", "width", "height"} <= set(value):
            raise ValueError("windowBounds needs x, y, width and height")


class SettingsStore:
    """
    YAML-backed key/value settings with defaults.

    Every set() is written to disk immediately. Safe to call from the
    pywebview, tray and hotkey threads at once.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else default_settings_path()
        self._data = copy.deepcopy(DEFAULT_SETTINGS)
        self._lock = threading.RLock()
        self._load()

    def _load(self):
        if not self.path.exists():
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                stored = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Could not read settings {self.path}: {e} - using defaults")
            return

        if not isinstance(stored, dict):
            logger.warning(f"Ignoring malformed settings file {self.path}")
            return

        for key, value in stored.items():
            try:
                _validate(key, value)
            except ValueError as e:
                logger.warning(f"Ignoring stored setting {key}: {e}")
                continue
            self._data[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return copy.deepcopy(self._data.get(key, default))

    def set(self, key: str, value: Any):
        """
        Update and persist a setting.

        Raises:
            ValueError: If the value is invalid for the key
        """
        self.update({key: value})

    def update(self, values: dict):
        """
        Update several settings and persist them with a single write.

        Nothing is changed unless every value is valid.

        Raises:
            ValueError: If any value is invalid for its key
        """
        for key, value in values.items():
            _validate(key, value)
        with self._lock:
            self._data.update(copy.deepcopy(values))
            self.save()

    def all(self) -> dict:
        with self._lock:
            return copy.deepcopy(self._data)

    def save(self):
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                yaml.safe_dump(self._data, f, sort_keys=True, allow_unicode=True)
