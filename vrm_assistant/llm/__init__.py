# LLM Module - chat-completion clients
from .base import BaseLLM, LLMError, LLMResponse, Message
from .openai_provider import DEFAULT_MODELS, PROVIDER_URLS, OpenAIChatProvider, create_llm

__all__ = [
    "BaseLLM",
    "LLMError",
    "LLMResponse",
    "Message",
    "DEFAULT_MODELS",
    "PROVIDER_URLS",
    "OpenAIChatProvider",
    "create_llm",
]
