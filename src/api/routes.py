"""FastAPI routes exposing speech classification."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_analyzer
from api.schemas import AnalyzeSpeechBody, HealthResponse
from config.settings import get_settings
from conversation.analyzer import SpeechAnalyzer
from conversation.errors import ConversationError
from conversation.schemas import ClassificationResponse

LOGGER = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(llm_provider=get_settings().llm_provider)


@router.post("/analyze-speech", response_model=ClassificationResponse)
async def analyze_speech(
    body: AnalyzeSpeechBody,
    analyzer: SpeechAnalyzer = Depends(get_analyzer),
) -> ClassificationResponse:
    text = body.text.strip()
    if not text:
        raise HTTPException(status_code=400, detail="Missing or empty text")

    try:
        return await analyzer.analyze(text)
    except ConversationError as exc:
        LOGGER.warning("Speech analysis failed: %s", exc.detail)
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
