"""Terminal runner: drives a full session with typed speech and simulated video.

Typed lines are delivered as final speech segments while the microphone is
live and as typed fallback otherwise. Commands: ``/start``, ``/stop``,
``/retry``, ``/ended``, ``/status``, ``/quit``.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

from config.settings import get_settings
from conversation.errors import InvalidUtteranceError, MediaLoadError
from conversation.types import SessionSnapshot
from media.catalog import ClipCatalog
from session.controller import SessionController
from speech.interfaces import RecognitionCallback, RecognitionEvent, RecognitionKind

LOGGER = logging.getLogger(__name__)


class ConsoleSpeechEngine:
    """Speech engine fed from the keyboard."""

    def __init__(self) -> None:
        self._on_event: RecognitionCallback | None = None
        self.language = "en-US"

    @property
    def listening(self) -> bool:
        return self._on_event is not None

    def is_supported(self) -> bool:
        return True

    def set_language(self, language: str) -> None:
        self.language = language

    def start(self, on_event: RecognitionCallback) -> None:
        if self._on_event is not None:
            raise RuntimeError("recognition already started")
        self._on_event = on_event

    def stop(self) -> None:
        self._finish()

    def abort(self) -> None:
        self._finish()

    def feed(self, text: str) -> None:
        if self._on_event is not None:
            self._on_event(RecognitionEvent(RecognitionKind.FINAL, text=text))

    def _finish(self) -> None:
        callback, self._on_event = self._on_event, None
        if callback is not None:
            asyncio.get_running_loop().call_soon(callback, RecognitionEvent(RecognitionKind.END))


class SimulatedPlaybackElement:
    """Stands in for a video element; non-looping clips end after a fixed time."""

    def __init__(
        self,
        name: str,
        *,
        clip_duration_s: float,
        clip_directory: Path | None = None,
        load_delay_s: float = 0.05,
    ) -> None:
        self.name = name
        self.on_ended: Optional[Callable[[], None]] = None
        self._clip_duration_s = clip_duration_s
        self._clip_directory = clip_directory
        self._load_delay_s = load_delay_s
        self._url = ""
        self._loop = False
        self._paused = True
        self._visible = False
        self._ended_handle: asyncio.TimerHandle | None = None

    @property
    def paused(self) -> bool:
        return self._paused

    def load_source(self, url: str, *, loop: bool) -> None:
        self._cancel_ended()
        self._url = url
        self._loop = loop
        self._paused = True

    async def wait_until_ready(self) -> None:
        await asyncio.sleep(self._load_delay_s)
        if self._clip_directory is not None:
            path = self._clip_directory / Path(self._url).name
            if not path.is_file():
                raise MediaLoadError(f"{path} does not exist")

    async def play(self) -> None:
        self._paused = False
        if not self._loop:
            self._cancel_ended()
            loop = asyncio.get_running_loop()
            self._ended_handle = loop.call_later(self._clip_duration_s, self._ended)

    def pause(self) -> None:
        self._cancel_ended()
        self._paused = True

    def rewind(self) -> None:
        self._cancel_ended()

    def set_visible(self, visible: bool) -> None:
        self._visible = visible
        if visible and self._url:
            LOGGER.debug("%s buffer now showing %s", self.name, self._url)

    def _ended(self) -> None:
        self._ended_handle = None
        self._paused = True
        if self.on_ended is not None:
            self.on_ended()

    def _cancel_ended(self) -> None:
        if self._ended_handle is not None:
            self._ended_handle.cancel()
            self._ended_handle = None


def _print_snapshot(snapshot: SessionSnapshot) -> None:
    line = f"[{snapshot.phase.value}] clip={snapshot.current_clip.value}"
    if snapshot.last_category is not None:
        line += f" last={snapshot.last_category.value}"
    if snapshot.last_summary:
        line += f" summary={snapshot.last_summary!r}"
    if snapshot.error_message:
        line += f" error={snapshot.error_message!r}"
    print(line, flush=True)


async def run_console(clip_duration_s: float, clip_directory: Path | None) -> None:
    settings = get_settings()
    catalog = ClipCatalog(settings.clip_base_url)
    if clip_directory is not None:
        catalog.verify(clip_directory)

    engine = ConsoleSpeechEngine()
    controller = SessionController(
        engine=engine,
        active=SimulatedPlaybackElement(
            "active", clip_duration_s=clip_duration_s, clip_directory=clip_directory
        ),
        standby=SimulatedPlaybackElement(
            "standby", clip_duration_s=clip_duration_s, clip_directory=clip_directory
        ),
        catalog=catalog,
        settings=settings,
        on_snapshot=_print_snapshot,
    )
    await controller.open()
    print("Type /start to begin, /quit to exit.", flush=True)

    try:
        while True:
            line = await asyncio.to_thread(sys.stdin.readline)
            if not line:
                break
            text = line.strip()
            if not text:
                continue
            if text == "/quit":
                break
            if text == "/start":
                controller.start()
            elif text == "/stop":
                controller.stop()
            elif text == "/retry":
                controller.retry_permission()
            elif text == "/ended":
                controller.simulate_clip_ended()
            elif text == "/status":
                _print_snapshot(controller.snapshot)
            elif engine.listening:
                engine.feed(text)
            else:
                try:
                    if not controller.submit_text(text):
                        print("(not listening right now)", flush=True)
                except InvalidUtteranceError as exc:
                    print(f"({exc.detail})", flush=True)
    finally:
        await controller.close()


def _parse_args() -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Drive a talking avatar session from the terminal")
    parser.add_argument(
        "--clip-duration",
        type=float,
        default=settings.console_clip_duration_s,
        help="Seconds each non-looping clip plays.",
    )
    parser.add_argument(
        "--clip-dir",
        type=Path,
        default=settings.clip_directory,
        help="Directory with <clip>.mp4 files; missing files surface as load errors.",
    )
    return parser.parse_args()


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    args = _parse_args()
    asyncio.run(run_console(args.clip_duration, args.clip_dir))


if __name__ == "__main__":
    main()
