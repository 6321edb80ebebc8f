import asyncio
import json

import httpx
import pytest

from llm.llm_client import LLMClient, _select_provider
from llm.providers.base import InvalidCredentialError, ProviderTransportError, QuotaExceededError
from llm.providers.gemini_provider import GeminiProvider
from llm.providers.mock_provider import MockProvider
from llm.providers.openai_provider import OpenAIProvider
from generation.response_parser import parse_response


def _gemini(handler):
    return GeminiProvider(transport=httpx.MockTransport(handler))


def test_gemini_success_sends_key_and_prompt():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["key"] = request.headers["x-goog-api-key"]
        seen["body"] = json.loads(request.content)
        seen["path"] = request.url.path
        return httpx.Response(
            200,
            json={"candidates": [{"content": {"parts": [{"text": "Title: A\n"}, {"text": "Color: red"}]}}]},
        )

    text = asyncio.run(_gemini(handler).generate_content("hello", api_key="k-123"))

    assert text == "Title: A\nColor: red"
    assert seen["key"] == "k-123"
    assert seen["body"]["contents"][0]["parts"][0]["text"] == "hello"
    assert seen["path"].endswith(":generateContent")


def test_gemini_invalid_key():
    def handler(request):
        return httpx.Response(400, json={"error": {"message": "API key not valid. Please pass a valid API key."}})

    with pytest.raises(InvalidCredentialError):
        asyncio.run(_gemini(handler).generate_content("hello", api_key="bad"))


def test_gemini_quota():
    def handler(request):
        return httpx.Response(429, json={"error": {"status": "RESOURCE_EXHAUSTED"}})

    with pytest.raises(QuotaExceededError):
        asyncio.run(_gemini(handler).generate_content("hello", api_key="k"))


def test_gemini_server_error_and_transport_failure():
    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ProviderTransportError):
        asyncio.run(_gemini(boom).generate_content("hello", api_key="k"))
    with pytest.raises(ProviderTransportError):
        asyncio.run(_gemini(lambda r: httpx.Response(503)).generate_content("hello", api_key="k"))


def test_gemini_unexpected_shape():
    with pytest.raises(ProviderTransportError):
        asyncio.run(_gemini(lambda r: httpx.Response(200, json={"candidates": []})).generate_content("x", api_key="k"))


def test_openai_success_and_unauthorized():
    def ok(request):
        assert request.headers["Authorization"] == "Bearer sk-test"
        return httpx.Response(200, json={"choices": [{"message": {"content": "Title: B"}}]})

    provider = OpenAIProvider(transport=httpx.MockTransport(ok))
    assert asyncio.run(provider.generate_content("x", api_key="sk-test")) == "Title: B"

    denied = OpenAIProvider(transport=httpx.MockTransport(lambda r: httpx.Response(401)))
    with pytest.raises(InvalidCredentialError):
        asyncio.run(denied.generate_content("x", api_key="sk-test"))


def test_mock_provider_reply_parses():
    text = asyncio.run(MockProvider().generate_content("Here is the user's goal: learn piano\n", api_key="k"))
    tasks = parse_response(text)
    assert len(tasks) == 3
    assert "learn piano" in tasks[0].title


def test_select_provider():
    assert isinstance(_select_provider("mock"), MockProvider)
    assert isinstance(_select_provider("Gemini"), GeminiProvider)
    with pytest.raises(ValueError):
        _select_provider("nope")


def test_llm_client_delegates(fake_provider_factory):
    provider = fake_provider_factory("reply")
    client = LLMClient(provider=provider)
    assert asyncio.run(client.generate_content("p", api_key="k")) == "reply"
    assert provider.api_keys == ["k"]
