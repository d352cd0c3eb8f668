"""
Chat-completion provider for OpenAI and OpenRouter.

Both services expose the same /chat/completions API; they only differ in
URL and a couple of headers. We use httpx.AsyncClient so the request
never blocks the event loop that also drives the window.
"""

import logging
from typing import Optional

import httpx

from .base import BaseLLM, LLMError, LLMResponse, Message

logger = logging.getLogger(__name__)

PROVIDER_URLS = {
    "openai": "https://api.openai.com/v1/chat/completions",
    "openrouter": "https://openrouter.ai/api/v1/chat/completions",
}

DEFAULT_MODELS = {
    "openai": "gpt-3.5-turbo",
    "openrouter": "openai/gpt-3.5-turbo",
}

OPENROUTER_REFERER = "https://github.com/open-source/vrm-desktop-assistant"
OPENROUTER_TITLE = "VRM Desktop Assistant"


class OpenAIChatProvider(BaseLLM):
    """
    Client for the OpenAI-compatible chat-completion endpoint.

    Attributes:
        provider: "openai" or "openrouter"
        model: Model name sent with each request
        max_tokens: Maximum tokens to generate
        temperature: Sampling temperature
    """

    def __init__(
        self,
        provider: str = "openai",
        api_key: str = "",
        model: Optional[str] = None,
        max_tokens: int = 500,
        temperature: float = 0.7,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the client.

        Args:
            provider: Which service to call ("openai" or "openrouter")
            api_key: Bearer token for the service
            model: Model name (defaults depend on the provider)
            max_tokens: Maximum tokens in the reply
            temperature: Sampling temperature
            timeout: Request timeout in seconds
            client: Pre-built httpx client (tests inject a mock transport)
        """
        if provider not in PROVIDER_URLS:
            raise ValueError(f"Unknown provider: {provider}")

        self.provider = provider
        self.api_key = api_key
        self.model = model or DEFAULT_MODELS[provider]
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def url(self) -> str:
        return PROVIDER_URLS[self.provider]

    def _headers(self) -> dict:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        if self.provider == "openrouter":
            headers["HTTP-Referer"] = OPENROUTER_REFERER
            headers["X-Title"] = OPENROUTER_TITLE
        return headers

    async def chat(self, messages: list[Message]) -> LLMResponse:
        """
        Send a chat request.

        Args:
            messages: Conversation history, system prompt first

        Returns:
            The complete reply
        """
        logger.info(f"📤 Sending request to {self.provider} ({self.model})...")
        try:
            response = await self._client.post(
                self.url,
                headers=self._headers(),
                json={
                    "model": self.model,
                    "messages": [m.to_dict() for m in messages],
                    "max_tokens": self.max_tokens,
                    "temperature": self.temperature,
                    "stream": False,
                },
            )
        except httpx.HTTPError as e:
            raise LLMError(f"Network error: {e}") from e
        except UnicodeError as e:
            # Header values must be ASCII
            raise LLMError(f"Invalid API key or header value: {e}") from e
        except RuntimeError as e:
            # Client closed by a settings reload while this request was queued
            raise LLMError(f"Client unavailable: {e}") from e

        if response.is_error:
            raise LLMError(self._error_message(response), status_code=response.status_code)

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise LLMError("Invalid response format from API") from e

        if not isinstance(content, str):
            raise LLMError("Invalid response format from API")

        return LLMResponse(
            content=content.strip(),
            model=data.get("model", self.model),
        )

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            message = response.json().get("error", {}).get("message")
        except (ValueError, AttributeError):
            message = None
        return message or f"HTTP {response.status_code}: {response.reason_phrase}"

    async def close(self):
        """Properly close the HTTP connection."""
        await self._client.aclose()


def create_llm(settings: dict, client: Optional[httpx.AsyncClient] = None) -> Optional[OpenAIChatProvider]:
    """
    Build a provider from the user's settings.

    Args:
        settings: Settings dict (apiProvider, openaiApiKey, openrouterApiKey, model)
        client: Optional httpx client to reuse

    Returns:
        Configured provider, or None if no API key is set for the provider
    """
    provider = settings.get("apiProvider") or "openai"
    if provider not in PROVIDER_URLS:
        logger.warning(f"Unknown provider '{provider}', falling back to openai")
        provider = "openai"

    key_name = "openrouterApiKey" if provider == "openrouter" else "openaiApiKey"
    api_key = settings.get(key_name) or ""

    logger.info(f"Chat provider: {provider}, API key: {'SET' if api_key else 'NOT SET'}")
    if not api_key:
        return None

    return OpenAIChatProvider(
        provider=provider,
        api_key=api_key,
        model=settings.get("model") or None,
        client=client,
    )
