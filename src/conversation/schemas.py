"""Pydantic schemas for the speech classification exchange."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from conversation.types import RESPONSE_CLIPS, Clip

MAX_TEXT_LENGTH = 2000


class ClassificationRequest(BaseModel):
    """Utterance sent for remote classification."""

    text: str = Field(max_length=MAX_TEXT_LENGTH)

    @field_validator("text")
    @classmethod
    def text_not_empty(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("Text may not be empty.")
        return text


class ClassificationResponse(BaseModel):
    """Classifier verdict: one response clip plus a one-sentence summary."""

    summary: str = ""
    category: Clip

    @field_validator("category")
    @classmethod
    def category_is_response_clip(cls, value: Clip) -> Clip:
        if value not in RESPONSE_CLIPS:
            raise ValueError(f"{value.value} is not a response category.")
        return value
