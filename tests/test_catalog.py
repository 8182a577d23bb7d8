from __future__ import annotations

import pytest

from conversation.errors import ClipCatalogError
from conversation.types import Clip
from media.catalog import ClipCatalog


def test_every_clip_has_a_stable_url():
    catalog = ClipCatalog("/video_files/")
    assert catalog.url_for(Clip.EASTER_EGG) == "/video_files/easter_egg.mp4"
    assert len({catalog.url_for(clip) for clip in Clip}) == len(Clip)


def test_verify_lists_missing_files(tmp_path):
    for clip in (Clip.IDLE, Clip.GREETING):
        (tmp_path / ClipCatalog.filename_for(clip)).write_bytes(b"")

    with pytest.raises(ClipCatalogError) as exc_info:
        ClipCatalog().verify(tmp_path)

    detail = exc_info.value.detail
    assert "weather.mp4" in detail
    assert "idle.mp4" not in detail


def test_verify_accepts_complete_directory(tmp_path):
    for clip in Clip:
        (tmp_path / ClipCatalog.filename_for(clip)).write_bytes(b"")
    ClipCatalog().verify(tmp_path)
