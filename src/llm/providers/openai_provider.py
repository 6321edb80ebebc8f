from __future__ import annotations
import os
from typing import Optional

import httpx

from .base import LLMProvider, ProviderTransportError, raise_for_provider_status


class OpenAIProvider(LLMProvider):
    SYSTEM_PROMPT = "You are a planning assistant. Follow the requested output format exactly."

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.model = os.getenv("OPENAI_MODEL", "gpt-4o-mini").strip()
        self.base_url = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").strip()
        self.timeout_s = float(os.getenv("LLM_TIMEOUT_S", "30"))
        self._transport = transport

    async def generate_content(self, prompt: str, *, api_key: str) -> str:
        url = f"{self.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.2,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                r = await client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as e:
            raise ProviderTransportError(f"OpenAI request failed: {e}") from e

        raise_for_provider_status(r.status_code, r.text)

        try:
            data = r.json()
            return data["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderTransportError("Unexpected OpenAI response shape") from e
