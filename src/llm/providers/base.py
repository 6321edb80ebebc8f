from __future__ import annotations
from abc import ABC, abstractmethod


class ProviderError(RuntimeError):
    """The language model call failed as a whole."""


class InvalidCredentialError(ProviderError):
    """The provider rejected the stored API key."""


class QuotaExceededError(ProviderError):
    """The provider refused the call because of rate limits or quota."""


class ProviderTransportError(ProviderError):
    """Network failure or an unexpected provider response."""


class LLMProvider(ABC):
    @abstractmethod
    async def generate_content(self, prompt: str, *, api_key: str) -> str:
        """
        Must return the model output as TEXT (parsing happens in generation.response_parser).
        """
        raise NotImplementedError


def raise_for_provider_status(status_code: int, body: str) -> None:
    """Map a non-2xx provider response to the matching ProviderError subclass."""
    if status_code < 400:
        return
    lowered = body.lower()
    if status_code in (401, 403) or "api key not valid" in lowered or "invalid api key" in lowered:
        raise InvalidCredentialError(f"Provider rejected the API key (HTTP {status_code})")
    if status_code == 429 or "quota" in lowered:
        raise QuotaExceededError(f"Provider quota exceeded (HTTP {status_code})")
    raise ProviderTransportError(f"Provider returned HTTP {status_code}")
