"""Core conversation types: phases, clips, events and transition results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field


class Phase(str, Enum):
    IDLE = "idle"
    GREETING = "greeting"
    LISTENING = "listening"
    RESPONDING = "responding"
    GOODBYE = "goodbye"


class Clip(str, Enum):
    IDLE = "idle"
    GREETING = "greeting"
    LISTENING = "listening"
    PROMPT = "prompt"
    GOODBYE = "goodbye"
    EASTER_EGG = "easter_egg"
    WEATHER = "weather"
    GENERAL = "general"
    FALLBACK = "fallback"


# Only these clips may come out of classification; idle, listening and prompt
# are bound to phases.
RESPONSE_CLIPS: tuple[Clip, ...] = (
    Clip.GOODBYE,
    Clip.EASTER_EGG,
    Clip.WEATHER,
    Clip.GREETING,
    Clip.GENERAL,
    Clip.FALLBACK,
)


def is_response_clip(value: object) -> bool:
    """True when ``value`` names a clip that classification may produce."""

    if isinstance(value, Clip):
        return value in RESPONSE_CLIPS
    if isinstance(value, str):
        return value in {clip.value for clip in RESPONSE_CLIPS}
    return False


@dataclass(frozen=True)
class StartRequested:
    pass


@dataclass(frozen=True)
class ClipPlaybackEnded:
    pass


@dataclass(frozen=True)
class SpeechResolved:
    text: str
    category: Clip | None = None
    summary: str | None = None


@dataclass(frozen=True)
class SpeechResolvedDuringPrompt:
    text: str
    category: Clip | None = None
    summary: str | None = None


@dataclass(frozen=True)
class SpeechFailed:
    pass


@dataclass(frozen=True)
class MicPermissionDenied:
    pass


@dataclass(frozen=True)
class SilenceElapsed:
    pass


@dataclass(frozen=True)
class StopRequested:
    pass


ConversationEvent = Union[
    StartRequested,
    ClipPlaybackEnded,
    SpeechResolved,
    SpeechResolvedDuringPrompt,
    SpeechFailed,
    MicPermissionDenied,
    SilenceElapsed,
    StopRequested,
]


@dataclass(frozen=True)
class TransitionResult:
    """Next phase plus the clip to show.

    ``clip``/``loop`` of ``None`` mean "keep what is showing". ``handled`` is
    False for the echo returned on combinations the table does not define.
    """

    phase: Phase
    clip: Clip | None = None
    loop: bool | None = None
    handled: bool = True


@dataclass(frozen=True)
class ClassificationOutcome:
    category: Clip
    summary: str | None = None
    source: str = "local"


class SessionSnapshot(BaseModel):
    """Read-only view of the session for presentation layers."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    phase: Phase = Phase.IDLE
    transcript: str = ""
    current_clip: Clip = Field(default=Clip.IDLE, alias="currentClipId")
    is_looping: bool = Field(default=True, alias="isLooping")
    last_category: Clip | None = Field(default=None, alias="lastCategory")
    error_message: str | None = Field(default=None, alias="errorMessage")
    permission_denied: bool = Field(default=False, alias="permissionDenied")
    speech_supported: bool = Field(default=True, alias="speechSupported")
    last_summary: str | None = Field(default=None, alias="lastSummary")
