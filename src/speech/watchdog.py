"""Timer-based silence detection.

No audio analysis happens here: the watchdog fires when nothing reset it for
``timeout_s`` seconds. The callback gets a ``repeated`` flag once the count of
consecutive elapses reaches ``max_silence_count``; the session treats every
elapse the same and never escalates on it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_SILENCE_COUNT = 2

SilenceCallback = Callable[[bool], None]


class SilenceWatchdog:
    def __init__(
        self,
        on_silence: SilenceCallback,
        *,
        timeout_s: float = 9.0,
        max_silence_count: int = DEFAULT_MAX_SILENCE_COUNT,
    ) -> None:
        self._on_silence = on_silence
        self._timeout_s = timeout_s
        self._max_silence_count = max_silence_count
        self._handle: asyncio.TimerHandle | None = None
        self._silence_count = 0
        self._armed = False

    @property
    def armed(self) -> bool:
        return self._armed

    @property
    def silence_count(self) -> int:
        return self._silence_count

    def start(self) -> None:
        self._armed = True
        self._silence_count = 0
        self._schedule()

    def reset(self) -> None:
        """Push the deadline back; ignored while stopped."""

        if not self._armed:
            return
        self._schedule()

    def stop(self) -> None:
        self._armed = False
        self._silence_count = 0
        self._clear()

    def _clear(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule(self) -> None:
        self._clear()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._timeout_s, self._elapse)

    def _elapse(self) -> None:
        self._handle = None
        self._silence_count += 1
        repeated = self._silence_count >= self._max_silence_count
        LOGGER.debug("Silence elapsed (count=%d)", self._silence_count)
        self._on_silence(repeated)
