"""
Base module for chat-completion clients.

This file defines the INTERFACE every chat backend implements, so the
chat manager can talk to OpenAI, OpenRouter or anything compatible
without knowing which one it is.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

ROLES = ("system", "user", "assistant")


@dataclass
class Message:
    """
    Represents a message in a conversation.

    Attributes:
        role: "user", "assistant", or "system"
        content: The message content
    """
    role: str  # "user", "assistant", "system"
    content: str

    def __post_init__(self):
        if self.role not in ROLES:
            raise ValueError(f"Unknown message role: {self.role}")

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}


@dataclass
class LLMResponse:
    """
    Represents the LLM response.

    Attributes:
        content: The response text
        model: The name of the model used
    """
    content: str
    model: str


class LLMError(Exception):
    """Raised when the chat-completion request fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BaseLLM(ABC):
    """
    Abstract base class for chat-completion backends.

    Methods with @abstractmethod MUST be implemented by child classes.
    """

    model: str = ""

    @abstractmethod
    async def chat(self, messages: list[Message]) -> LLMResponse:
        """
        Send messages to the LLM and get a response.

        Args:
            messages: List of messages (conversation history)

        Returns:
            LLMResponse with the response content

        Raises:
            LLMError: If the request fails or the reply is malformed
        """
        pass

    async def close(self):
        """Release network resources."""
        pass
