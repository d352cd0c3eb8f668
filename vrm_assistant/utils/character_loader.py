"""
Character preset loader.

Loads character configurations from vrm_assistant/config/characters/*.yaml.
A preset gives the assistant its personality (system prompt, greeting)
and points at the VRM model to display.
"""

import logging
from pathlib import Path
from typing import Optional

import yaml

from vrm_assistant.chat.manager import ChatConfig

logger = logging.getLogger(__name__)

PACKAGE_ROOT = Path(__file__).parent.parent
CHARACTERS_DIR = PACKAGE_ROOT / "config" / "characters"
DEFAULT_CHARACTER = "buddy"


def get_available_characters(characters_dir: Path = CHARACTERS_DIR) -> list[str]:
    """
    List all available character presets.

    Returns:
        List of character preset names (without .yaml extension)
    """
    if not characters_dir.exists():
        return []

    return sorted(f.stem for f in characters_dir.glob("*.yaml"))


def load_character_preset(preset_name: str, characters_dir: Path = CHARACTERS_DIR) -> Optional[dict]:
    """
    Load a character preset from <characters_dir>/<preset_name>.yaml

    Args:
        preset_name: Name of the preset (e.g., "buddy")

    Returns:
        Character configuration dict, or None if not found
    """
    preset_path = characters_dir / f"{preset_name}.yaml"

    if not preset_path.exists():
        logger.warning(f"Character preset not found: {preset_path}")
        return None

    try:
        with open(preset_path, "r", encoding="utf-8") as f:
            preset = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load character preset {preset_name}: {e}")
        return None

    logger.info(f"🎭 Loaded character preset: {preset.get('name', preset_name)}")
    return preset


def resolve_model_path(preset: dict) -> Optional[Path]:
    """Absolute path of the preset's VRM model, relative paths resolve against the package."""
    model_path = preset.get("model_path")
    if not model_path:
        return None
    path = Path(model_path).expanduser()
    if not path.is_absolute():
        path = PACKAGE_ROOT / path
    return path


def build_chat_config(preset: Optional[dict]) -> ChatConfig:
    """Chat configuration for a preset, defaults for anything it leaves out."""
    config = ChatConfig()
    if not preset:
        return config

    if preset.get("system_prompt"):
        config.system_prompt = preset["system_prompt"].strip()
    if preset.get("welcome_message"):
        config.welcome_message = preset["welcome_message"].strip()
    return config
