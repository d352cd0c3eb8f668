"""
Chat module - conversation history and request dispatch.
"""

from .manager import ChatBusyError, ChatConfig, ChatError, ChatManager, MissingAPIKeyError

__all__ = [
    "ChatBusyError",
    "ChatConfig",
    "ChatError",
    "ChatManager",
    "MissingAPIKeyError",
]
