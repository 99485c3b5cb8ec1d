"""Mutable playback state owned exclusively by the player actor."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from .commands import Mode

if TYPE_CHECKING:
    from .playback_backend import PlayerProcess

HISTORY_LIMIT = 100


def _new_history() -> deque[Path]:
    return deque(maxlen=HISTORY_LIMIT)


@dataclass
class PlayerState:
    """Everything the engine knows about what is, was, and will be playing.

    `playlist` is a LIFO override stack consumed ahead of `songs`; `history` is
    age-ordered with the most recent entry on the right, and the deque bound
    evicts from the left.
    """

    mode: Mode = "random"
    songs: list[Path] = field(default_factory=list)
    position: int = 0
    playlist: list[Path] = field(default_factory=list)
    history: deque[Path] = field(default_factory=_new_history)
    current: Path | None = None
    should_play: bool = False
    last_start: float | None = None
    process: PlayerProcess | None = None

    @property
    def is_playing(self) -> bool:
        """True while a player subprocess is live (paused counts as live)."""
        return self.process is not None

    def remember(self, song: Path) -> None:
        self.history.append(song)
