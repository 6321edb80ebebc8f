from __future__ import annotations
import os
from typing import Optional

import httpx

from .base import LLMProvider, ProviderTransportError, raise_for_provider_status


class GeminiProvider(LLMProvider):
    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.model = os.getenv("GEMINI_MODEL", "gemini-1.5-flash").strip()
        self.base_url = os.getenv(
            "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
        ).strip()
        self.timeout_s = float(os.getenv("LLM_TIMEOUT_S", "30"))
        self._transport = transport

    async def generate_content(self, prompt: str, *, api_key: str) -> str:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        headers = {
            "x-goog-api-key": api_key,
            "Content-Type": "application/json",
        }
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": 0.2},
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                r = await client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as e:
            raise ProviderTransportError(f"Gemini request failed: {e}") from e

        raise_for_provider_status(r.status_code, r.text)

        try:
            data = r.json()
            parts = data["candidates"][0]["content"].get("parts", [])
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderTransportError("Unexpected Gemini response shape") from e

        return "".join(part.get("text", "") for part in parts)
