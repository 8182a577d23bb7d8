"""Domain-specific exceptions for conversation operations.

These exceptions are safe to import from API layers without pulling in the
session runtime.
"""

from __future__ import annotations


class ConversationError(Exception):
    status_code: int = 500
    default_detail: str = "Conversation error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail


class InvalidUtteranceError(ConversationError):
    status_code = 422
    default_detail = "Utterance is empty or too long."


class RemoteClassificationError(ConversationError):
    status_code = 502
    default_detail = "Speech analysis failed"


class ClassifierUnavailableError(ConversationError):
    status_code = 503
    default_detail = "Language model is not configured"


class MediaLoadError(ConversationError):
    status_code = 503
    default_detail = "Clip failed to load"


class ClipCatalogError(ConversationError):
    status_code = 500
    default_detail = "Clip catalog is incomplete"
