"""Pure conversation transition function.

No timers, engines or networking live here: given the current phase and one
event, return the next phase and the clip to show.
"""

from __future__ import annotations

from conversation.classifier import classify_locally
from conversation.types import (
    Clip,
    ClipPlaybackEnded,
    ConversationEvent,
    MicPermissionDenied,
    Phase,
    SilenceElapsed,
    SpeechFailed,
    SpeechResolved,
    SpeechResolvedDuringPrompt,
    StartRequested,
    StopRequested,
    TransitionResult,
    is_response_clip,
)

DEFAULT_CLIPS: dict[Phase, tuple[Clip, bool]] = {
    Phase.IDLE: (Clip.IDLE, True),
    Phase.GREETING: (Clip.GREETING, False),
    Phase.LISTENING: (Clip.LISTENING, True),
    Phase.RESPONDING: (Clip.GENERAL, False),
    Phase.GOODBYE: (Clip.GOODBYE, False),
}


def default_clip(phase: Phase) -> tuple[Clip, bool]:
    return DEFAULT_CLIPS[phase]


def _echo(phase: Phase) -> TransitionResult:
    clip, loop = DEFAULT_CLIPS[phase]
    return TransitionResult(phase=phase, clip=clip, loop=loop, handled=False)


def _resolve(event: SpeechResolved | SpeechResolvedDuringPrompt) -> TransitionResult:
    category = event.category
    if category is None or not is_response_clip(category):
        category = classify_locally(event.text)
    category = Clip(category)
    if category is Clip.GOODBYE:
        return TransitionResult(phase=Phase.GOODBYE, clip=Clip.GOODBYE, loop=False)
    return TransitionResult(phase=Phase.RESPONDING, clip=category, loop=False)


def transition(phase: Phase, event: ConversationEvent) -> TransitionResult:
    """Return the result of applying ``event`` in ``phase``."""

    if isinstance(event, StopRequested):
        return TransitionResult(phase=Phase.GOODBYE, clip=Clip.GOODBYE, loop=False)

    if isinstance(event, StartRequested):
        if phase is Phase.IDLE:
            return TransitionResult(phase=Phase.GREETING, clip=Clip.GREETING, loop=False)
        return _echo(phase)

    if isinstance(event, ClipPlaybackEnded):
        if phase in (Phase.GREETING, Phase.RESPONDING):
            return TransitionResult(phase=Phase.LISTENING, clip=Clip.LISTENING, loop=True)
        if phase is Phase.GOODBYE:
            return TransitionResult(phase=Phase.IDLE, clip=Clip.IDLE, loop=True)
        return _echo(phase)

    if isinstance(event, SpeechResolved):
        if phase is Phase.LISTENING:
            return _resolve(event)
        return _echo(phase)

    if isinstance(event, SpeechResolvedDuringPrompt):
        # The capture layer tags these only while the prompt clip is showing.
        if phase is Phase.RESPONDING:
            return _resolve(event)
        return _echo(phase)

    if isinstance(event, SpeechFailed):
        if phase is Phase.LISTENING:
            return TransitionResult(phase=Phase.RESPONDING, clip=Clip.FALLBACK, loop=False)
        return _echo(phase)

    if isinstance(event, SilenceElapsed):
        # A silence never ends the session; it degrades to the prompt clip.
        if phase is Phase.LISTENING:
            return TransitionResult(phase=Phase.RESPONDING, clip=Clip.PROMPT, loop=False)
        return _echo(phase)

    if isinstance(event, MicPermissionDenied):
        return _echo(phase)

    raise TypeError(f"Unknown conversation event: {event!r}")
