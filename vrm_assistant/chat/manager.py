"""
Chat manager - keeps the conversation and talks to the LLM.

The character only needs to know WHEN a chat starts and when the reply
arrives, never what was said. The manager exposes that through two
callbacks (on_chat_start / on_chat_response) and reports failures through
on_chat_error so the page can show them.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Union

from vrm_assistant.llm.base import BaseLLM, LLMError, Message

logger = logging.getLogger(__name__)


class ChatError(Exception):
    """A chat request could not be completed. The message is user-facing."""


class ChatBusyError(ChatError):
    """A reply is still pending."""


class MissingAPIKeyError(ChatError):
    """No API key is configured for the selected provider."""


@dataclass
class ChatConfig:
    """Configuration for the chat manager."""
    system_prompt: str = "You are a helpful desktop assistant."
    welcome_message: str = "Hello! How can I help you today?"
    max_messages: int = 50  # Retained history
    context_messages: int = 10  # History sent with each request
    max_input_chars: int = 2000


class ChatManager:
    """
    Conversation state and request dispatch.

    Attributes:
        llm: Chat backend, None until an API key is configured
        config: Chat configuration
        history: Retained messages, oldest first
    """

    def __init__(self, llm: Optional[BaseLLM] = None, config: Optional[ChatConfig] = None):
        self.llm = llm
        self.config = config or ChatConfig()
        self.history: list[Message] = []
        self._typing = False

        # Callbacks
        self.on_chat_start: Optional[Callable[[], None]] = None
        self.on_chat_response: Optional[Callable[[], None]] = None
        self.on_chat_error: Optional[Callable[[str], None]] = None

    @property
    def is_typing(self) -> bool:
        """True while waiting for a reply."""
        return self._typing

    def set_llm(self, llm: Optional[BaseLLM]):
        self.llm = llm

    def welcome_message(self) -> Message:
        return Message(role="assistant", content=self.config.welcome_message)

    async def send_message(self, text: str) -> Message:
        """
        Send a user message and wait for the reply.

        Args:
            text: What the user typed

        Returns:
            The assistant's reply

        Raises:
            ChatError: Empty or too long input, or the request failed
            ChatBusyError: A previous reply is still pending
            MissingAPIKeyError: No backend configured
        """
        text = (text or "").strip()
        if not text:
            raise ChatError("Message is empty")
        if len(text) > self.config.max_input_chars:
            raise ChatError(f"Message is too long (max {self.config.max_input_chars} characters)")
        if self._typing:
            raise ChatBusyError("Still waiting for the previous reply")
        if self.llm is None:
            raise MissingAPIKeyError("Please configure your API key in settings first")

        self._append(Message(role="user", content=text))
        self._typing = True
        self._fire(self.on_chat_start)

        try:
            response = await self.llm.chat(self._build_context())
        except LLMError as e:
            logger.error(f"❌ Chat request failed: {e}")
            self._fire(self.on_chat_error, str(e))
            raise ChatError(str(e)) from e
        except Exception as e:
            logger.error(f"❌ Unexpected chat backend error: {e}")
            self._fire(self.on_chat_error, f"Unexpected error: {e}")
            raise ChatError(f"Unexpected error: {e}") from e
        finally:
            self._typing = False

        reply = Message(role="assistant", content=response.content)
        self._append(reply)
        self._fire(self.on_chat_response)
        return reply

    def clear(self):
        """Forget the conversation."""
        self.history.clear()
        logger.info("🗑️ Chat history cleared")

    def export(self, path: Union[str, Path], provider: str = "", model: str = "") -> Path:
        """
        Write the conversation to a JSON file.

        Returns:
            The path written
        """
        path = Path(path)
        data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "messages": [m.to_dict() for m in self.history],
            "provider": provider,
            "model": model,
        }
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info(f"💾 Chat exported to {path}")
        return path

    def _build_context(self) -> list[Message]:
        system = Message(role="system", content=self.config.system_prompt)
        return [system, *self.history[-self.config.context_messages:]]

    def _append(self, message: Message):
        self.history.append(message)
        excess = len(self.history) - self.config.max_messages
        if excess > 0:
            del self.history[:excess]

    @staticmethod
    def _fire(callback: Optional[Callable], *args):
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.warning(f"Chat callback error: {e}")
