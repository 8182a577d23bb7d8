"""Session controller: the stateful glue around the conversation state machine."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Coroutine
from typing import Any, Callable

from config.settings import Settings, get_settings
from conversation.classifier import IntentClassifier
from conversation.errors import InvalidUtteranceError
from conversation.state_machine import transition
from conversation.types import (
    Clip,
    ClipPlaybackEnded,
    ConversationEvent,
    MicPermissionDenied,
    Phase,
    SessionSnapshot,
    SilenceElapsed,
    SpeechFailed,
    SpeechResolved,
    SpeechResolvedDuringPrompt,
    StartRequested,
    StopRequested,
)
from integrations.classifier_client import RemoteClassifierClient
from media.catalog import ClipCatalog
from media.interfaces import PlaybackElement
from media.synchronizer import ClipEnded, ClipLive, ClipLoadFailed, MediaEvent, MediaSynchronizer
from speech.capture import (
    CaptureDegraded,
    CaptureEvent,
    CaptureFailed,
    CommitGate,
    FailureReason,
    SpeechCapture,
    TranscriptChanged,
    UtteranceCommitted,
)
from speech.interfaces import SpeechEngine
from speech.watchdog import SilenceWatchdog

LOGGER = logging.getLogger(__name__)

SnapshotListener = Callable[[SessionSnapshot], None]


class SessionController:
    """Owns the conversation phase and wires every component to it.

    All events are folded through :func:`transition` one at a time; events
    raised while a transition is being applied are queued behind it.
    """

    def __init__(
        self,
        *,
        engine: SpeechEngine,
        active: PlaybackElement,
        standby: PlaybackElement,
        classifier: IntentClassifier | None = None,
        catalog: ClipCatalog | None = None,
        settings: Settings | None = None,
        on_snapshot: SnapshotListener | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._settings = settings
        self._classifier = classifier or IntentClassifier(
            RemoteClassifierClient.from_settings(),
            max_chars=settings.max_utterance_chars,
        )
        self._media = MediaSynchronizer(
            active,
            standby,
            catalog or ClipCatalog(settings.clip_base_url),
            self._handle_media_event,
        )
        self._capture = SpeechCapture(
            engine,
            self._handle_capture_event,
            gate=self._commit_gate,
            finalize_delay_s=settings.finalize_delay_s,
            restart_delay_s=settings.restart_delay_s,
            max_restarts=settings.max_restarts,
            restart_window_s=settings.restart_window_s,
            network_retry_delays_s=settings.network_retry_delays_s,
            language=settings.speech_language,
        )
        self._watchdog = SilenceWatchdog(
            self._handle_silence,
            timeout_s=settings.silence_timeout_s,
        )

        self._listeners: list[SnapshotListener] = []
        if on_snapshot is not None:
            self._listeners.append(on_snapshot)
        self._queue: deque[ConversationEvent] = deque()
        self._dispatching = False
        self._tasks: set[asyncio.Task] = set()
        self._utterance_generation = 0
        self._snapshot = SessionSnapshot(speech_supported=self._capture.is_supported())

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    @property
    def capture(self) -> SpeechCapture:
        return self._capture

    @property
    def watchdog(self) -> SilenceWatchdog:
        return self._watchdog

    @property
    def media(self) -> MediaSynchronizer:
        return self._media

    def add_listener(self, listener: SnapshotListener) -> None:
        self._listeners.append(listener)

    async def open(self) -> None:
        """Put the idle clip on screen."""

        await self._media.show_initial(self._snapshot.current_clip, self._snapshot.is_looping)

    async def close(self) -> None:
        self._watchdog.stop()
        self._capture.disarm()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def start(self) -> None:
        self._update(error_message=None)
        self.dispatch(StartRequested())

    def stop(self) -> None:
        self.dispatch(StopRequested())

    def submit_text(self, text: str) -> bool:
        """Typed stand-in for a spoken utterance; returns False if not accepted now."""

        cleaned = (text or "").strip()
        if not cleaned:
            raise InvalidUtteranceError("Typed text may not be empty.")
        if len(cleaned) > self._settings.max_utterance_chars:
            raise InvalidUtteranceError(
                f"Typed text exceeds {self._settings.max_utterance_chars} characters."
            )
        gate = self._commit_gate()
        if gate is CommitGate.SUPPRESS:
            LOGGER.info("Typed text ignored in phase %s", self._snapshot.phase.value)
            return False
        self._capture.disarm()
        self._commit(cleaned, during_prompt=gate is CommitGate.DURING_PROMPT)
        return True

    def retry_permission(self) -> None:
        self._capture.retry_permission()
        self._update(permission_denied=False, error_message=None)
        if self._wants_capture() and (
            self._snapshot.phase is not Phase.LISTENING
            or self._media.displayed_clip is Clip.LISTENING
        ):
            self._capture.arm()

    def clear_error(self) -> None:
        self._update(error_message=None)

    def simulate_clip_ended(self) -> None:
        self.dispatch(ClipPlaybackEnded())

    def dispatch(self, event: ConversationEvent) -> None:
        self._queue.append(event)
        if self._dispatching:
            return
        self._dispatching = True
        try:
            while self._queue:
                self._apply(self._queue.popleft())
        finally:
            self._dispatching = False

    def _apply(self, event: ConversationEvent) -> None:
        previous = self._snapshot
        result = transition(previous.phase, event)
        if not result.handled:
            LOGGER.debug("%s ignored in phase %s", type(event).__name__, previous.phase.value)
            return

        updates: dict[str, Any] = {"phase": result.phase}
        if result.clip is not None:
            updates["current_clip"] = result.clip
        if result.loop is not None:
            updates["is_looping"] = result.loop
        if isinstance(event, (SpeechResolved, SpeechResolvedDuringPrompt)):
            updates["transcript"] = event.text
            updates["last_category"] = result.clip
            updates["last_summary"] = event.summary
        elif isinstance(event, StartRequested):
            updates.update(transcript="", last_category=None, last_summary=None)
        self._update(**updates)

        current = self._snapshot
        LOGGER.info(
            "%s: %s -> %s (clip=%s)",
            type(event).__name__,
            previous.phase.value,
            current.phase.value,
            current.current_clip.value,
        )
        self._apply_side_effects()
        self._spawn(self._media.display(current.current_clip, current.is_looping))

    def _apply_side_effects(self) -> None:
        phase = self._snapshot.phase
        # Utterances committed before this transition belong to the old phase.
        self._utterance_generation += 1
        # Listening arms capture and the watchdog only once its clip is live.
        self._watchdog.stop()
        if phase is Phase.LISTENING:
            return
        if self._wants_capture():
            self._capture.arm()
            return
        self._capture.disarm()

    def _wants_capture(self) -> bool:
        snapshot = self._snapshot
        if snapshot.phase is Phase.LISTENING:
            return True
        return snapshot.phase is Phase.RESPONDING and snapshot.current_clip is Clip.PROMPT

    def _commit_gate(self) -> CommitGate:
        snapshot = self._snapshot
        if snapshot.phase is Phase.LISTENING:
            return CommitGate.ACCEPT
        if snapshot.phase is Phase.RESPONDING and snapshot.current_clip is Clip.PROMPT:
            return CommitGate.DURING_PROMPT
        return CommitGate.SUPPRESS

    def _handle_media_event(self, event: MediaEvent) -> None:
        if isinstance(event, ClipLive):
            if event.clip is Clip.LISTENING and self._snapshot.phase is Phase.LISTENING:
                self._capture.arm()
                self._watchdog.start()
        elif isinstance(event, ClipEnded):
            if event.clip is self._snapshot.current_clip:
                self.dispatch(ClipPlaybackEnded())
            else:
                LOGGER.debug("Stale end of clip %s ignored", event.clip.value)
        elif isinstance(event, ClipLoadFailed):
            self._update(error_message=f"Missing or failed to load video: {event.url}")

    def _handle_capture_event(self, event: CaptureEvent) -> None:
        if isinstance(event, TranscriptChanged):
            self._update(transcript=event.text)
            self._watchdog.reset()
        elif isinstance(event, UtteranceCommitted):
            self._commit(event.text, during_prompt=event.during_prompt)
        elif isinstance(event, CaptureDegraded):
            if self._snapshot.phase is Phase.LISTENING:
                LOGGER.info("Capture degraded (%s), treating as silence", event.reason.value)
                self.dispatch(SilenceElapsed())
        elif isinstance(event, CaptureFailed):
            self._handle_capture_failure(event)

    def _handle_capture_failure(self, event: CaptureFailed) -> None:
        if event.reason is FailureReason.PERMISSION_DENIED:
            self._update(permission_denied=True, error_message=event.message)
            self.dispatch(MicPermissionDenied())
            return
        if event.reason is FailureReason.UNSUPPORTED:
            self._update(speech_supported=False, error_message=event.message)
            return
        self._update(error_message=event.message)
        if self._snapshot.phase is Phase.LISTENING:
            self.dispatch(SpeechFailed())

    def _handle_silence(self, repeated: bool) -> None:
        # Every elapse is a single silence; ``repeated`` never escalates.
        LOGGER.info("Silence watchdog elapsed (repeated=%s)", repeated)
        self.dispatch(SilenceElapsed())

    def _commit(self, text: str, *, during_prompt: bool) -> None:
        self._watchdog.stop()
        self._update(transcript=text)
        # A newer utterance supersedes any classification still in flight.
        self._utterance_generation += 1
        self._spawn(self._resolve(text, during_prompt, self._utterance_generation))

    async def _resolve(self, text: str, during_prompt: bool, generation: int) -> None:
        outcome = await self._classifier.classify(text)
        snapshot = self._snapshot
        if generation != self._utterance_generation:
            LOGGER.info("Dropping stale classification of %r in phase %s", text, snapshot.phase.value)
            return
        if snapshot.phase is Phase.LISTENING:
            event: ConversationEvent = SpeechResolved(text, outcome.category, outcome.summary)
        elif snapshot.phase is Phase.RESPONDING and snapshot.current_clip is Clip.PROMPT:
            event = SpeechResolvedDuringPrompt(text, outcome.category, outcome.summary)
        else:
            LOGGER.info(
                "Dropping classification of %r (during_prompt=%s) in phase %s",
                text,
                during_prompt,
                snapshot.phase.value,
            )
            return
        LOGGER.info("Utterance %r classified as %s (%s)", text, outcome.category.value, outcome.source)
        self.dispatch(event)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.error("Session task failed: %s", exc, exc_info=exc)

    def _update(self, **changes: Any) -> None:
        updated = self._snapshot.model_copy(update=changes)
        if updated == self._snapshot:
            return
        self._snapshot = updated
        for listener in list(self._listeners):
            listener(updated)
