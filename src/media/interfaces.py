"""Playback element protocol consumed by the media synchronizer."""

from __future__ import annotations

from typing import Callable, Optional, Protocol


class PlaybackElement(Protocol):
    """One video surface.

    ``wait_until_ready`` resolves once enough data is buffered to play
    through and raises ``MediaLoadError`` when loading fails. ``on_ended`` is
    invoked when a non-looping source finishes.
    """

    on_ended: Optional[Callable[[], None]]

    @property
    def paused(self) -> bool: ...

    def load_source(self, url: str, *, loop: bool) -> None: ...

    async def wait_until_ready(self) -> None: ...

    async def play(self) -> None: ...

    def pause(self) -> None: ...

    def rewind(self) -> None: ...

    def set_visible(self, visible: bool) -> None: ...
