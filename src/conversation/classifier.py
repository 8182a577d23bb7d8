"""Intent classification: local keyword matcher with optional remote fallback."""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Protocol

from conversation.errors import RemoteClassificationError
from conversation.keywords import KEYWORD_PRIORITY
from conversation.types import ClassificationOutcome, Clip

LOGGER = logging.getLogger(__name__)

_TRAILING_PUNCTUATION = re.compile(r"[.!?,;:]+$")


class RemoteClassifier(Protocol):
    async def classify(self, text: str) -> ClassificationOutcome: ...


def normalize_text(raw_text: str) -> str:
    """Lowercase, trim and strip trailing punctuation."""

    return _TRAILING_PUNCTUATION.sub("", (raw_text or "").lower().strip()).strip()


@lru_cache(maxsize=None)
def _phrase_pattern(phrase: str) -> re.Pattern[str]:
    return re.compile(rf"(?<!\w){re.escape(phrase)}(?!\w)")


def matches_any(normalized: str, phrases: tuple[str, ...]) -> bool:
    return any(_phrase_pattern(phrase).search(normalized) for phrase in phrases)


def classify_locally(raw_text: str) -> Clip:
    """Map free text to a response clip using the fixed keyword priority."""

    normalized = normalize_text(raw_text)
    if not normalized:
        return Clip.FALLBACK
    for clip, phrases in KEYWORD_PRIORITY:
        if matches_any(normalized, phrases):
            return clip
    return Clip.FALLBACK


class IntentClassifier:
    """Resolves utterances to response categories.

    When a remote classifier is configured it is asked first; any failure of
    that call falls back to the keyword matcher so classification always
    produces a category.
    """

    def __init__(
        self,
        remote: RemoteClassifier | None = None,
        *,
        max_chars: int = 2000,
    ) -> None:
        self._remote = remote
        self._max_chars = max_chars

    @property
    def remote_enabled(self) -> bool:
        return self._remote is not None

    async def classify(self, raw_text: str) -> ClassificationOutcome:
        normalized = normalize_text(raw_text)
        local = ClassificationOutcome(category=classify_locally(normalized), source="local")
        if not normalized or self._remote is None:
            return local
        if len(normalized) > self._max_chars:
            LOGGER.info(
                "Utterance of %d chars exceeds %d, classifying locally",
                len(normalized),
                self._max_chars,
            )
            return local

        try:
            outcome = await self._remote.classify(normalized)
        except RemoteClassificationError as exc:
            LOGGER.warning("Remote classification failed, using keywords: %s", exc.detail)
            return local
        except Exception as exc:
            LOGGER.exception("Remote classifier raised unexpectedly: %s", exc)
            return local
        LOGGER.debug("Remote classification %r -> %s", normalized, outcome.category.value)
        return outcome
