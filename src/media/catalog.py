"""Stable mapping from clip identifiers to media locations."""

from __future__ import annotations

import logging
from pathlib import Path

from config.settings import get_settings
from conversation.errors import ClipCatalogError
from conversation.types import Clip

LOGGER = logging.getLogger(__name__)

CLIP_EXTENSION = ".mp4"


class ClipCatalog:
    def __init__(self, base_url: str = "/video_files") -> None:
        self._base_url = base_url.rstrip("/")

    @classmethod
    def from_settings(cls) -> ClipCatalog:
        return cls(get_settings().clip_base_url)

    @staticmethod
    def filename_for(clip: Clip) -> str:
        return f"{Clip(clip).value}{CLIP_EXTENSION}"

    def url_for(self, clip: Clip) -> str:
        return f"{self._base_url}/{self.filename_for(clip)}"

    def verify(self, directory: Path) -> None:
        """Raise ``ClipCatalogError`` unless every clip has a file in ``directory``."""

        missing = [
            self.filename_for(clip) for clip in Clip if not (directory / self.filename_for(clip)).is_file()
        ]
        if missing:
            raise ClipCatalogError(f"Missing clip files in {directory}: {', '.join(missing)}")
        LOGGER.info("All %d clips present in %s", len(Clip), directory)
