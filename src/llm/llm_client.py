import logging
import os
from typing import Optional

from llm.providers.base import LLMProvider

logger = logging.getLogger(__name__)


def _select_provider(name: str) -> LLMProvider:
    name = name.strip().lower()
    if name == "mock":
        from llm.providers.mock_provider import MockProvider

        return MockProvider()
    if name == "openai":
        from llm.providers.openai_provider import OpenAIProvider

        return OpenAIProvider()
    if name == "gemini":
        from llm.providers.gemini_provider import GeminiProvider

        return GeminiProvider()
    raise ValueError(f"Unknown LLM_PROVIDER: {name!r}")


class LLMClient:
    """Thin wrapper around the configured provider.

    Each call carries the caller's own API key; the client never holds one.
    """

    def __init__(self, provider: Optional[LLMProvider] = None):
        self.provider = provider or _select_provider(os.getenv("LLM_PROVIDER", "gemini"))

    async def generate_content(self, prompt: str, *, api_key: str) -> str:
        provider_name = type(self.provider).__name__
        logger.info(f"Sending prompt to {provider_name} ({len(prompt)} chars)")
        text = await self.provider.generate_content(prompt, api_key=api_key)
        logger.debug(f"Raw model reply:\n{text}")
        logger.info(f"Received reply from {provider_name} ({len(text)} chars)")
        return text
