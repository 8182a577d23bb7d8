"""OpenAI chat completions client used by the speech analyzer."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from openai import AsyncOpenAI

from config.settings import get_settings
from llm.base import BaseLLMClient

LOGGER = logging.getLogger(__name__)


class OpenAIClient(BaseLLMClient):
    """Talks to OpenAI, or any server speaking its API when ``llm_endpoint`` is set."""

    def __init__(self, *, client: AsyncOpenAI | None = None) -> None:
        settings = get_settings()
        if client is None and not settings.llm_api_key:
            raise ValueError("LLM API key must be configured for OpenAI client.")

        self._model = settings.llm_model
        self._client = client or AsyncOpenAI(
            api_key=settings.llm_api_key,
            base_url=settings.llm_endpoint or None,
            timeout=settings.llm_timeout_s,
            max_retries=0,
        )

    async def chat(
        self,
        messages: Iterable[dict[str, str]],
        *,
        temperature: float = 0.0,
        json_mode: bool = False,
        max_tokens: int = 150,
    ) -> str:
        request: dict = {
            "model": self._model,
            "messages": list(messages),
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        response = await self._client.chat.completions.create(**request)
        if not response.choices:
            raise RuntimeError("LLM response contains no choices.")
        LOGGER.debug("OpenAI %s finished with %s", self._model, response.choices[0].finish_reason)
        return response.choices[0].message.content or ""
