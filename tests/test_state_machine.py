from __future__ import annotations

import pytest

from conversation.state_machine import default_clip, transition
from conversation.types import (
    Clip,
    ClipPlaybackEnded,
    MicPermissionDenied,
    Phase,
    SilenceElapsed,
    SpeechFailed,
    SpeechResolved,
    SpeechResolvedDuringPrompt,
    StartRequested,
    StopRequested,
)


def test_start_from_idle_plays_greeting_once():
    result = transition(Phase.IDLE, StartRequested())
    assert result.phase is Phase.GREETING
    assert result.clip is Clip.GREETING
    assert result.loop is False
    assert result.handled


@pytest.mark.parametrize("phase", [Phase.GREETING, Phase.LISTENING, Phase.RESPONDING, Phase.GOODBYE])
def test_start_outside_idle_is_an_unhandled_echo(phase):
    result = transition(phase, StartRequested())
    assert result.phase is phase
    assert (result.clip, result.loop) == default_clip(phase)
    assert result.handled is False


@pytest.mark.parametrize("phase", [Phase.GREETING, Phase.RESPONDING])
def test_clip_end_returns_to_listening(phase):
    result = transition(phase, ClipPlaybackEnded())
    assert result.phase is Phase.LISTENING
    assert result.clip is Clip.LISTENING
    assert result.loop is True


def test_goodbye_end_returns_to_idle():
    result = transition(Phase.GOODBYE, ClipPlaybackEnded())
    assert result.phase is Phase.IDLE
    assert result.clip is Clip.IDLE
    assert result.loop is True


@pytest.mark.parametrize("phase", [Phase.IDLE, Phase.LISTENING])
def test_clip_end_of_looping_phase_is_ignored(phase):
    assert transition(phase, ClipPlaybackEnded()).handled is False


@pytest.mark.parametrize(
    "category,expected_clip",
    [
        (Clip.WEATHER, Clip.WEATHER),
        (Clip.EASTER_EGG, Clip.EASTER_EGG),
        (Clip.GREETING, Clip.GREETING),
        (Clip.GENERAL, Clip.GENERAL),
        (Clip.FALLBACK, Clip.FALLBACK),
    ],
)
def test_resolved_speech_picks_response_clip(category, expected_clip):
    result = transition(Phase.LISTENING, SpeechResolved("anything", category))
    assert result.phase is Phase.RESPONDING
    assert result.clip is expected_clip
    assert result.loop is False


def test_resolved_goodbye_enters_goodbye_phase():
    result = transition(Phase.LISTENING, SpeechResolved("see you", Clip.GOODBYE))
    assert result.phase is Phase.GOODBYE
    assert result.clip is Clip.GOODBYE


def test_resolved_without_category_uses_keywords():
    result = transition(Phase.LISTENING, SpeechResolved("Is it going to rain?"))
    assert result.clip is Clip.WEATHER


@pytest.mark.parametrize("category", [Clip.IDLE, Clip.LISTENING, Clip.PROMPT])
def test_phase_bound_clips_are_never_accepted_as_categories(category):
    result = transition(Phase.LISTENING, SpeechResolved("goodbye", category))
    assert result.phase is Phase.GOODBYE
    assert result.clip is Clip.GOODBYE


def test_resolved_speech_outside_listening_is_ignored():
    result = transition(Phase.RESPONDING, SpeechResolved("hello", Clip.GREETING))
    assert result.phase is Phase.RESPONDING
    assert result.handled is False


def test_resolved_during_prompt_switches_response():
    result = transition(Phase.RESPONDING, SpeechResolvedDuringPrompt("bye", Clip.GOODBYE))
    assert result.phase is Phase.GOODBYE

    result = transition(Phase.RESPONDING, SpeechResolvedDuringPrompt("hey", Clip.GREETING))
    assert result.phase is Phase.RESPONDING
    assert result.clip is Clip.GREETING


def test_resolved_during_prompt_in_listening_is_ignored():
    assert transition(Phase.LISTENING, SpeechResolvedDuringPrompt("hi", Clip.GREETING)).handled is False


def test_silence_in_listening_plays_prompt_and_never_ends_session():
    result = transition(Phase.LISTENING, SilenceElapsed())
    assert result.phase is Phase.RESPONDING
    assert result.clip is Clip.PROMPT
    assert result.loop is False


@pytest.mark.parametrize("phase", [Phase.IDLE, Phase.GREETING, Phase.RESPONDING, Phase.GOODBYE])
def test_silence_outside_listening_is_ignored(phase):
    assert transition(phase, SilenceElapsed()).handled is False


def test_speech_failure_plays_fallback():
    result = transition(Phase.LISTENING, SpeechFailed())
    assert result.phase is Phase.RESPONDING
    assert result.clip is Clip.FALLBACK


@pytest.mark.parametrize("phase", list(Phase))
def test_stop_always_says_goodbye(phase):
    result = transition(phase, StopRequested())
    assert result.phase is Phase.GOODBYE
    assert result.clip is Clip.GOODBYE
    assert result.loop is False
    assert result.handled


@pytest.mark.parametrize("phase", list(Phase))
def test_permission_denied_leaves_phase_alone(phase):
    result = transition(phase, MicPermissionDenied())
    assert result.phase is phase
    assert result.handled is False


def test_unknown_event_is_rejected():
    with pytest.raises(TypeError):
        transition(Phase.IDLE, object())
