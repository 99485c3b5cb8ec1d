"""Now-playing line written to stdout whenever a song starts."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TextIO

from clue_play.services.audio_tags import format_track_label, read_audio_tags
from clue_play.utils.async_utils import run_blocking


def render_now_playing(label: str, song: Path) -> str:
    return f"• {label}\n  {song}"


async def announce_song(song: Path, stream: TextIO | None = None) -> None:
    """Read tags off the event loop and print the now-playing line."""
    tags = await run_blocking(read_audio_tags, song)
    print(
        render_now_playing(format_track_label(tags), song),
        file=stream or sys.stdout,
        flush=True,
    )
