"""Next-song selection policy over the playlist stack and the base list."""

from __future__ import annotations

import random
from pathlib import Path

from .player_state import PlayerState


def choose_song(state: PlayerState, rng: random.Random | None = None) -> Path | None:
    """Pick the next song and advance the traversal cursor.

    Playlist entries always win, most recently pushed first. Otherwise the base
    list is walked according to `state.mode`. Sequence resets the cursor only
    once it has moved past the end, so the slot at `len(songs)` selects nothing
    and ends the pass; Circular wraps straight back to the start.

    The cursor is incremented after every base-list pick, including random
    ones, so a later switch to sequence/circular continues from wherever the
    last random pick landed.
    """
    if state.playlist:
        return state.playlist.pop()

    count = len(state.songs)
    if count == 0:
        return None

    if state.mode == "random":
        state.position = (rng or random).randrange(count)
    elif state.mode == "sequence" and state.position > count:
        state.position = 0
    elif state.mode == "circular" and state.position >= count:
        state.position = 0

    song = state.songs[state.position] if state.position < count else None
    state.position += 1
    return song
