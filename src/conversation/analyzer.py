"""LLM-backed speech analysis served by the classification endpoint."""

from __future__ import annotations

import json
import logging

from conversation.errors import RemoteClassificationError
from conversation.keywords import describe_response_clips
from conversation.schemas import MAX_TEXT_LENGTH, ClassificationResponse
from conversation.types import RESPONSE_CLIPS, Clip, is_response_clip
from llm.base import BaseLLMClient
from prompts.loader import render_prompt

LOGGER = logging.getLogger(__name__)

NO_SUMMARY = "No summary"


def build_system_prompt() -> str:
    return render_prompt(
        "classifier_system.txt",
        clip_ids=", ".join(clip.value for clip in RESPONSE_CLIPS),
        clip_list=describe_response_clips(),
    )


class SpeechAnalyzer:
    """Asks the language model for a summary and one response category."""

    def __init__(self, llm_client: BaseLLMClient) -> None:
        self._llm = llm_client
        self._system_prompt = build_system_prompt()

    async def analyze(self, text: str) -> ClassificationResponse:
        messages = [
            {"role": "system", "content": self._system_prompt},
            {"role": "user", "content": f"User said: {text[:MAX_TEXT_LENGTH]}"},
        ]
        try:
            raw_response = await self._llm.chat(messages, temperature=0.0, json_mode=True)
        except Exception as exc:
            LOGGER.exception("LLM speech analysis failed: %s", exc)
            raise RemoteClassificationError() from exc

        if not raw_response:
            raise RemoteClassificationError("Empty response from language model")
        try:
            payload = json.loads(raw_response)
        except json.JSONDecodeError as exc:
            LOGGER.error("Analyzer returned invalid JSON: %s", raw_response)
            raise RemoteClassificationError("Invalid JSON from language model") from exc
        if not isinstance(payload, dict):
            raise RemoteClassificationError("Invalid JSON from language model")

        summary = payload.get("summary")
        summary = summary.strip() if isinstance(summary, str) and summary.strip() else NO_SUMMARY

        category = payload.get("category", payload.get("clip"))
        if not is_response_clip(category):
            LOGGER.info("Model chose unknown category %r, using general", category)
            category = Clip.GENERAL
        return ClassificationResponse(summary=summary, category=Clip(category))
