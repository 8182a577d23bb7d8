from __future__ import annotations

import asyncio
import json

import httpx
import pytest

import llm.vllm_client as vllm_client
from config.settings import Settings
from llm.vllm_client import VLLMClient


def _run(coro):
    return asyncio.run(coro)


@pytest.fixture()
def vllm_settings(monkeypatch):
    settings = Settings(
        llm_provider="self_hosted_vllm",
        llm_endpoint="http://llm.test/",
        llm_api_key="secret",
        llm_model="small-model",
    )
    monkeypatch.setattr(vllm_client, "get_settings", lambda: settings)
    return settings


def test_vllm_client_posts_chat_completion(vllm_settings):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={"choices": [{"message": {"content": '{"summary": "Hi.", "category": "greeting"}'}}]},
        )

    client = VLLMClient(transport=httpx.MockTransport(handler))
    content = _run(
        client.chat([{"role": "user", "content": "hello"}], temperature=0.0, json_mode=True)
    )

    assert content == '{"summary": "Hi.", "category": "greeting"}'
    request = seen[0]
    assert str(request.url) == "http://llm.test/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer secret"
    body = json.loads(request.content)
    assert body["model"] == "small-model"
    assert body["response_format"] == {"type": "json_object"}


def test_vllm_client_rejects_empty_choices(vllm_settings):
    client = VLLMClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": []})))
    with pytest.raises(RuntimeError, match="no choices"):
        _run(client.chat([{"role": "user", "content": "hello"}]))


def test_vllm_client_requires_endpoint(monkeypatch):
    monkeypatch.setattr(vllm_client, "get_settings", lambda: Settings(llm_endpoint=None))
    with pytest.raises(ValueError):
        VLLMClient()


def test_openai_client_requests_json_object(monkeypatch):
    from openai import AsyncOpenAI

    import llm.openai_client as openai_client

    monkeypatch.setattr(openai_client, "get_settings", lambda: Settings(llm_model="gpt-4o-mini"))
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={
                "id": "chatcmpl-1",
                "object": "chat.completion",
                "created": 0,
                "model": "gpt-4o-mini",
                "choices": [
                    {
                        "index": 0,
                        "finish_reason": "stop",
                        "message": {"role": "assistant", "content": '{"category": "weather"}'},
                    }
                ],
            },
        )

    sdk = AsyncOpenAI(
        api_key="test",
        base_url="http://llm.test/v1",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    client = openai_client.OpenAIClient(client=sdk)
    content = _run(client.chat([{"role": "user", "content": "rain?"}], json_mode=True))

    assert content == '{"category": "weather"}'
    assert seen[0]["response_format"] == {"type": "json_object"}
    assert seen[0]["model"] == "gpt-4o-mini"


def test_openai_client_requires_api_key(monkeypatch):
    import llm.openai_client as openai_client

    monkeypatch.setattr(openai_client, "get_settings", lambda: Settings(llm_api_key=None))
    with pytest.raises(ValueError):
        openai_client.OpenAIClient()
