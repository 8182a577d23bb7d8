"""Speech capture lifecycle around a push-based recognition engine.

Owns the utterance buffer, the finalization debounce, engine error
classification and bounded automatic restarts. Everything runs on the
asyncio loop thread; engine callbacks are expected on that thread too.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Callable, Union

from speech.interfaces import RecognitionEvent, RecognitionKind, SpeechEngine

LOGGER = logging.getLogger(__name__)


class EngineErrorClass(str, Enum):
    PERMISSION = "permission"
    NO_SPEECH = "no_speech"
    NETWORK = "network"
    UNRECOGNIZED = "unrecognized"
    TRANSIENT = "transient"


_ERROR_CODES: dict[str, EngineErrorClass] = {
    "not-allowed": EngineErrorClass.PERMISSION,
    "service-not-allowed": EngineErrorClass.PERMISSION,
    "permission-denied": EngineErrorClass.PERMISSION,
    "no-speech": EngineErrorClass.NO_SPEECH,
    "network": EngineErrorClass.NETWORK,
    "no-match": EngineErrorClass.UNRECOGNIZED,
}


def classify_engine_error(code: str) -> EngineErrorClass:
    """Map an engine error code to its recovery class; unknown codes are transient."""

    return _ERROR_CODES.get((code or "").strip().lower(), EngineErrorClass.TRANSIENT)


class CommitGate(str, Enum):
    ACCEPT = "accept"
    DURING_PROMPT = "during_prompt"
    SUPPRESS = "suppress"


class DegradeReason(str, Enum):
    NO_SPEECH = "no_speech"
    NETWORK = "network"
    RESTART_BUDGET = "restart_budget"


class FailureReason(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    UNSUPPORTED = "unsupported"
    UNRECOGNIZED = "unrecognized"
    START_FAILED = "start_failed"


FAILURE_MESSAGES: dict[FailureReason, str] = {
    FailureReason.PERMISSION_DENIED: "Microphone permission denied",
    FailureReason.UNSUPPORTED: "Speech recognition is not supported",
    FailureReason.UNRECOGNIZED: "Speech not recognized",
    FailureReason.START_FAILED: "Failed to start recognition",
}


@dataclass(frozen=True)
class TranscriptChanged:
    text: str


@dataclass(frozen=True)
class UtteranceCommitted:
    text: str
    during_prompt: bool = False


@dataclass(frozen=True)
class CaptureDegraded:
    reason: DegradeReason


@dataclass(frozen=True)
class CaptureFailed:
    reason: FailureReason
    message: str

    @property
    def permission_denied(self) -> bool:
        return self.reason is FailureReason.PERMISSION_DENIED


CaptureEvent = Union[TranscriptChanged, UtteranceCommitted, CaptureDegraded, CaptureFailed]
CaptureCallback = Callable[[CaptureEvent], None]
CommitGateFn = Callable[[], CommitGate]


class RestartBudget:
    """Counts automatic restarts inside a sliding time window."""

    def __init__(
        self,
        max_restarts: int,
        window_s: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_restarts = max_restarts
        self._window_s = window_s
        self._clock = clock
        self._stamps: deque[float] = deque()

    @property
    def used(self) -> int:
        self._prune()
        return len(self._stamps)

    def try_consume(self) -> bool:
        self._prune()
        if len(self._stamps) >= self._max_restarts:
            return False
        self._stamps.append(self._clock())
        return True

    def reset(self) -> None:
        self._stamps.clear()

    def _prune(self) -> None:
        horizon = self._clock() - self._window_s
        while self._stamps and self._stamps[0] <= horizon:
            self._stamps.popleft()


class SpeechCapture:
    """Start/stop/restart manager that turns engine output into utterances."""

    def __init__(
        self,
        engine: SpeechEngine,
        on_event: CaptureCallback,
        *,
        gate: CommitGateFn | None = None,
        finalize_delay_s: float = 1.5,
        restart_delay_s: float = 0.3,
        max_restarts: int = 3,
        restart_window_s: float = 10.0,
        network_retry_delays_s: tuple[float, ...] = (0.5, 1.0, 2.0),
        language: str = "en-US",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._engine = engine
        self._on_event = on_event
        self._gate = gate or (lambda: CommitGate.ACCEPT)
        self._finalize_delay_s = finalize_delay_s
        self._restart_delay_s = restart_delay_s
        self._network_retry_delays_s = tuple(network_retry_delays_s)
        self._budget = RestartBudget(max_restarts, restart_window_s, clock)

        self._desired = False
        self._started = False
        self._generation = 0
        self._permission_denied = False
        self._network_attempts = 0
        self._segments: list[str] = []
        self._interim = ""
        self._finalize_handle: asyncio.TimerHandle | None = None
        self._restart_handle: asyncio.TimerHandle | None = None

        self._engine.set_language(language)

    @property
    def active(self) -> bool:
        """True while an engine session is running."""
        return self._started

    @property
    def desired(self) -> bool:
        return self._desired

    @property
    def permission_denied(self) -> bool:
        return self._permission_denied

    @property
    def restarts_used(self) -> int:
        return self._budget.used

    @property
    def utterance(self) -> str:
        parts = [*self._segments]
        if self._interim.strip():
            parts.append(self._interim.strip())
        return " ".join(parts).strip()

    def is_supported(self) -> bool:
        return self._engine.is_supported()

    def set_language(self, language: str) -> None:
        self._engine.set_language(language)

    def arm(self) -> None:
        """Deliberately (re)arm capture; resets the restart budget."""

        if self._permission_denied:
            LOGGER.info("Capture not armed: microphone permission was denied")
            return
        if not self._engine.is_supported():
            self._desired = False
            self._emit(
                CaptureFailed(
                    FailureReason.UNSUPPORTED,
                    FAILURE_MESSAGES[FailureReason.UNSUPPORTED],
                )
            )
            return
        self._desired = True
        self._budget.reset()
        self._network_attempts = 0
        self._start_engine()

    def disarm(self) -> None:
        """Abort capture and drop whatever was buffered."""

        self._desired = False
        self._cancel_finalize()
        self._cancel_restart()
        if self._segments or self._interim:
            self._clear_buffer()
        if self._started:
            self._retire_session(abort=True)

    def retry_permission(self) -> None:
        self._permission_denied = False

    def _start_engine(self) -> None:
        if self._started:
            return
        self._cancel_restart()
        self._generation += 1
        callback = partial(self._handle_engine_event, self._generation)
        try:
            self._engine.start(callback)
        except Exception as exc:
            LOGGER.exception("Speech engine failed to start: %s", exc)
            self._started = False
            self._desired = False
            message = str(exc) or FAILURE_MESSAGES[FailureReason.START_FAILED]
            self._emit(CaptureFailed(FailureReason.START_FAILED, message))
            return
        self._started = True
        LOGGER.debug("Speech engine started (generation=%d)", self._generation)

    def _retire_session(self, *, abort: bool) -> None:
        """Stop the running engine session and ignore its late events."""

        self._generation += 1
        self._started = False
        try:
            if abort:
                self._engine.abort()
            else:
                self._engine.stop()
        except Exception as exc:
            LOGGER.warning("Speech engine did not stop cleanly: %s", exc)

    def _schedule_restart(self, delay_s: float) -> None:
        self._cancel_restart()
        loop = asyncio.get_running_loop()
        self._restart_handle = loop.call_later(delay_s, self._restart)

    def _restart(self) -> None:
        self._restart_handle = None
        if not self._desired:
            return
        if self._started:
            self._retire_session(abort=True)
        LOGGER.info("Restarting speech engine")
        self._start_engine()

    def _cancel_restart(self) -> None:
        if self._restart_handle is not None:
            self._restart_handle.cancel()
            self._restart_handle = None

    def _handle_engine_event(self, generation: int, event: RecognitionEvent) -> None:
        if generation != self._generation:
            LOGGER.debug("Ignoring %s from retired engine session", event.kind)
            return
        if event.kind is RecognitionKind.INTERIM:
            self._on_speech(interim=event.text)
        elif event.kind is RecognitionKind.FINAL:
            self._on_speech(final=event.text)
        elif event.kind is RecognitionKind.ERROR:
            self._on_error(event.code)
        elif event.kind is RecognitionKind.END:
            self._on_end()

    def _on_speech(self, *, interim: str | None = None, final: str | None = None) -> None:
        if not self._desired:
            return
        self._network_attempts = 0
        if final is not None:
            if final.strip():
                self._segments.append(final.strip())
            self._interim = ""
        elif interim is not None:
            self._interim = interim
        self._schedule_finalize()
        self._emit(TranscriptChanged(self.utterance))

    def _on_error(self, code: str) -> None:
        if not self._desired:
            LOGGER.debug("Engine error %r while capture is not desired", code)
            return

        error_class = classify_engine_error(code)
        LOGGER.info("Speech engine error %r classified as %s", code, error_class.value)

        if error_class is EngineErrorClass.PERMISSION:
            self._permission_denied = True
            self._desired = False
            self._cancel_finalize()
            self._cancel_restart()
            self._clear_buffer()
            self._retire_session(abort=True)
            self._emit(
                CaptureFailed(
                    FailureReason.PERMISSION_DENIED,
                    FAILURE_MESSAGES[FailureReason.PERMISSION_DENIED],
                )
            )
            return

        if error_class is EngineErrorClass.NO_SPEECH:
            self._retire_session(abort=True)
            self._emit(CaptureDegraded(DegradeReason.NO_SPEECH))
            return

        if error_class is EngineErrorClass.NETWORK:
            self._retire_session(abort=True)
            if self._network_attempts < len(self._network_retry_delays_s):
                delay = self._network_retry_delays_s[self._network_attempts]
                self._network_attempts += 1
                LOGGER.warning(
                    "Network error from speech engine, retry %d/%d in %.1fs",
                    self._network_attempts,
                    len(self._network_retry_delays_s),
                    delay,
                )
                self._schedule_restart(delay)
                return
            self._network_attempts = 0
            LOGGER.warning("Speech engine network retries exhausted")
            self._emit(CaptureDegraded(DegradeReason.NETWORK))
            return

        if error_class is EngineErrorClass.UNRECOGNIZED:
            self._retire_session(abort=True)
            self._cancel_finalize()
            self._clear_buffer()
            self._emit(
                CaptureFailed(
                    FailureReason.UNRECOGNIZED,
                    FAILURE_MESSAGES[FailureReason.UNRECOGNIZED],
                )
            )
            return

        # Transient: the engine's end notification drives the restart.
        LOGGER.warning("Transient speech engine error %r", code)

    def _on_end(self) -> None:
        self._started = False
        if not self._desired or self._permission_denied:
            return
        if self._restart_handle is not None:
            return
        if self._budget.try_consume():
            LOGGER.info(
                "Speech engine ended unexpectedly, restart %d scheduled",
                self._budget.used,
            )
            self._schedule_restart(self._restart_delay_s)
            return
        LOGGER.warning("Speech engine restart budget exhausted")
        self._emit(CaptureDegraded(DegradeReason.RESTART_BUDGET))

    def _schedule_finalize(self) -> None:
        self._cancel_finalize()
        loop = asyncio.get_running_loop()
        self._finalize_handle = loop.call_later(self._finalize_delay_s, self._finalize)

    def _cancel_finalize(self) -> None:
        if self._finalize_handle is not None:
            self._finalize_handle.cancel()
            self._finalize_handle = None

    def _finalize(self) -> None:
        self._finalize_handle = None
        text = self.utterance
        if not text:
            return

        gate = self._gate()
        if gate is CommitGate.SUPPRESS:
            LOGGER.debug("Utterance suppressed by commit gate: %r", text)
            self._clear_buffer()
            return

        self._clear_buffer()
        self._desired = False
        self._cancel_restart()
        if self._started:
            self._retire_session(abort=False)
        LOGGER.info("Utterance committed: %r", text)
        self._emit(UtteranceCommitted(text, during_prompt=gate is CommitGate.DURING_PROMPT))

    def _clear_buffer(self) -> None:
        self._segments.clear()
        self._interim = ""

    def _emit(self, event: CaptureEvent) -> None:
        self._on_event(event)
