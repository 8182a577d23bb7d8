"""Client for self-hosted vLLM or TGI servers exposing /v1/chat/completions."""

from __future__ import annotations

import logging
from typing import Iterable

import httpx

from config.settings import get_settings
from llm.base import BaseLLMClient

LOGGER = logging.getLogger(__name__)

CHAT_PATH = "/v1/chat/completions"


class VLLMClient(BaseLLMClient):
    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        settings = get_settings()
        if not settings.llm_endpoint:
            raise ValueError("Self-hosted LLM endpoint must be configured.")

        self._url = settings.llm_endpoint.rstrip("/") + CHAT_PATH
        self._model = settings.llm_model
        self._headers = {"Content-Type": "application/json"}
        if settings.llm_api_key:
            self._headers["Authorization"] = f"Bearer {settings.llm_api_key}"
        self._timeout_s = settings.llm_timeout_s
        self._transport = transport

    async def chat(
        self,
        messages: Iterable[dict[str, str]],
        *,
        temperature: float = 0.0,
        json_mode: bool = False,
        max_tokens: int = 150,
    ) -> str:
        payload: dict = {
            "model": self._model,
            "messages": list(messages),
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            # vLLM honours the OpenAI-style switch for guided JSON decoding.
            payload["response_format"] = {"type": "json_object"}

        async with httpx.AsyncClient(timeout=self._timeout_s, transport=self._transport) as client:
            response = await client.post(self._url, json=payload, headers=self._headers)
        response.raise_for_status()

        choices = response.json().get("choices") or []
        if not choices:
            raise RuntimeError("LLM response contains no choices.")
        LOGGER.debug("vLLM %s answered in %.0f ms", self._model, response.elapsed.total_seconds() * 1000)
        return choices[0]["message"]["content"]
