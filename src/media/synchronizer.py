"""Dual-buffer clip switching.

A clip is loaded into the hidden buffer and only revealed after that buffer
reports it can play through, so the visible clip is never displaced by one
that is still loading.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Callable, Union

from conversation.types import Clip
from media.catalog import ClipCatalog
from media.interfaces import PlaybackElement

LOGGER = logging.getLogger(__name__)


class Buffer(str, Enum):
    ACTIVE = "active"
    STANDBY = "standby"


@dataclass(frozen=True)
class ClipLive:
    clip: Clip


@dataclass(frozen=True)
class ClipEnded:
    clip: Clip


@dataclass(frozen=True)
class ClipLoadFailed:
    clip: Clip
    url: str
    error: str


MediaEvent = Union[ClipLive, ClipEnded, ClipLoadFailed]
MediaCallback = Callable[[MediaEvent], None]


class MediaSynchronizer:
    def __init__(
        self,
        active: PlaybackElement,
        standby: PlaybackElement,
        catalog: ClipCatalog,
        on_event: MediaCallback,
    ) -> None:
        self._elements: dict[Buffer, PlaybackElement] = {
            Buffer.ACTIVE: active,
            Buffer.STANDBY: standby,
        }
        self._catalog = catalog
        self._on_event = on_event
        self._visible = Buffer.ACTIVE
        self._displayed: Clip | None = None
        self._displayed_loop = True
        self._switching = False
        self._queued: tuple[Clip, bool] | None = None

        for buffer, element in self._elements.items():
            element.on_ended = partial(self._handle_ended, buffer)
        active.set_visible(True)
        standby.set_visible(False)

    @property
    def visible_buffer(self) -> Buffer:
        return self._visible

    @property
    def displayed_clip(self) -> Clip | None:
        return self._displayed

    @property
    def switching(self) -> bool:
        return self._switching

    def element(self, buffer: Buffer) -> PlaybackElement:
        return self._elements[buffer]

    async def show_initial(self, clip: Clip, loop: bool = True) -> bool:
        """Load the first clip directly into the visible buffer."""

        element = self._elements[self._visible]
        url = self._catalog.url_for(clip)
        try:
            element.load_source(url, loop=loop)
            await element.wait_until_ready()
            await element.play()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            LOGGER.error("Initial clip %s failed to load from %s: %s", clip.value, url, exc)
            self._on_event(ClipLoadFailed(clip, url, str(exc)))
            return False
        self._displayed = clip
        self._displayed_loop = loop
        self._on_event(ClipLive(clip))
        return True

    async def display(self, clip: Clip, loop: bool) -> bool:
        """Show ``clip``; returns True once it is live."""

        if self._displayed is clip and not self._switching:
            element = self._elements[self._visible]
            if element.paused:
                try:
                    await element.play()
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    LOGGER.warning("Resuming %s failed: %s", clip.value, exc)
            self._on_event(ClipLive(clip))
            return True

        if self._switching:
            LOGGER.debug("Switch in flight, deferring %s", clip.value)
            self._queued = (clip, loop)
            return False

        self._switching = True
        try:
            live = await self._switch(clip, loop)
        finally:
            self._switching = False

        queued, self._queued = self._queued, None
        if queued is not None and queued[0] is not self._displayed:
            return await self.display(*queued)
        return live

    async def _switch(self, clip: Clip, loop: bool) -> bool:
        target_buffer = Buffer.STANDBY if self._visible is Buffer.ACTIVE else Buffer.ACTIVE
        target = self._elements[target_buffer]
        url = self._catalog.url_for(clip)

        try:
            target.load_source(url, loop=loop)
            await target.wait_until_ready()
            await target.play()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            LOGGER.error("Clip %s failed to load from %s: %s", clip.value, url, exc)
            target.pause()
            target.rewind()
            self._on_event(ClipLoadFailed(clip, url, str(exc)))
            return False

        previous = self._elements[self._visible]
        target.set_visible(True)
        previous.set_visible(False)
        previous.pause()
        previous.rewind()

        self._visible = target_buffer
        self._displayed = clip
        self._displayed_loop = loop
        LOGGER.debug("Clip %s live in %s buffer", clip.value, target_buffer.value)
        self._on_event(ClipLive(clip))
        return True

    def _handle_ended(self, buffer: Buffer) -> None:
        if buffer is not self._visible or self._displayed is None or self._displayed_loop:
            return
        self._on_event(ClipEnded(self._displayed))
