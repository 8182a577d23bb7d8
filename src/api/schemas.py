"""API-facing Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class AnalyzeSpeechBody(BaseModel):
    # Emptiness is checked in the route so it can answer 400 rather than 422.
    text: str = Field(default="", max_length=2000)


class HealthResponse(BaseModel):
    status: str = "ok"
    llm_provider: str
