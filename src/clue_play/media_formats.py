"""Admission rules for paths submitted through `load`."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)

FORBIDDEN_EXTENSIONS = frozenset(
    {
        ".htm",
        ".html",
        ".jpg",
        ".jpeg",
        ".ini",
        ".bmp",
        ".db",
        ".doc",
        ".dtt",
        ".gif",
        ".listing",
        ".m3u",
        ".nfo",
        ".out",
        ".pls",
        ".txt",
        ".toc",
        ".zip",
    }
)
"""Suffixes commonly found next to music files that the player must never get."""


def is_forbidden_file(path: Path) -> bool:
    """Return whether path suffix is on the non-audio denylist."""
    return path.suffix.lower() in FORBIDDEN_EXTENSIONS


def is_admissible_song(path: Path) -> bool:
    """Return whether path is an existing regular file with an allowed suffix."""
    if not path.is_file():
        logger.warning("Non-file %s in list of songs", path)
        return False
    if is_forbidden_file(path):
        logger.debug("Skipping forbidden file %s", path)
        return False
    return True


def filter_songs(paths: Iterable[Path]) -> list[Path]:
    """Keep admissible paths, preserving submission order."""
    return [path for path in paths if is_admissible_song(path)]
