"""
Utility modules for the desktop assistant.
"""

from .character_loader import (
    DEFAULT_CHARACTER,
    build_chat_config,
    get_available_characters,
    load_character_preset,
    resolve_model_path,
)

__all__ = [
    "DEFAULT_CHARACTER",
    "build_chat_config",
    "get_available_characters",
    "load_character_preset",
    "resolve_model_path",
]
