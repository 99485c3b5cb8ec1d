"""Audio metadata helpers using permissive libraries."""

from __future__ import annotations

from dataclasses import dataclass
from importlib import import_module
from pathlib import Path

UNKNOWN = "???"


@dataclass(frozen=True)
class AudioTags:
    """Normalized metadata payload returned by tag-reading helpers."""

    title: str | None = None
    artist: str | None = None
    album: str | None = None
    error: str | None = None


def read_audio_tags(path: Path) -> AudioTags:
    """Read metadata for a track path using TinyTag; never raises."""
    try:
        tinytag_module = import_module("tinytag")
        TinyTag = tinytag_module.TinyTag
    except Exception as exc:
        return AudioTags(error=f"tinytag unavailable ({exc.__class__.__name__})")
    try:
        tag = TinyTag.get(str(path))
    except Exception as exc:
        return AudioTags(error=str(exc) or exc.__class__.__name__)
    return AudioTags(
        title=_clean_text(tag.title),
        artist=_clean_text(tag.artist),
        album=_clean_text(tag.album),
    )


def format_track_label(tags: AudioTags) -> str:
    """Render `title (artist/album)` with placeholders for anything missing."""
    if tags.error is not None:
        return UNKNOWN
    title = tags.title or UNKNOWN
    artist = tags.artist or UNKNOWN
    album = tags.album or UNKNOWN
    return f"{title} ({artist}/{album})"


def _clean_text(value: object) -> str | None:
    """Normalize textual metadata fields into trimmed optional strings."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None
