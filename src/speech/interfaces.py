"""Speech engine protocol and the events it pushes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol


class RecognitionKind(str, Enum):
    INTERIM = "interim"
    FINAL = "final"
    ERROR = "error"
    END = "end"


@dataclass(frozen=True)
class RecognitionEvent:
    kind: RecognitionKind
    text: str = ""
    code: str = ""


RecognitionCallback = Callable[[RecognitionEvent], None]


class SpeechEngine(Protocol):
    """Push-based speech-to-text engine.

    ``start`` must not be assumed idempotent; callers guard against
    overlapping starts. Every started session ends with an ``END`` event,
    possibly preceded by one ``ERROR``.
    """

    def is_supported(self) -> bool: ...

    def set_language(self, language: str) -> None: ...

    def start(self, on_event: RecognitionCallback) -> None: ...

    def stop(self) -> None: ...

    def abort(self) -> None: ...
