"""Shared FastAPI dependencies.

Separated so route modules and tests can override the analyzer without
constructing an LLM client.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import HTTPException

from conversation.analyzer import SpeechAnalyzer
from conversation.errors import ClassifierUnavailableError
from llm.factory import build_llm_client


@lru_cache(maxsize=1)
def _analyzer_factory() -> SpeechAnalyzer:
    return SpeechAnalyzer(build_llm_client())


def get_analyzer() -> SpeechAnalyzer:
    try:
        return _analyzer_factory()
    except ClassifierUnavailableError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
