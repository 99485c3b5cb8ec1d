"""Lifecycle management for the single player subprocess.

The supervisor never changes state on its own schedule: the exit watcher it
spawns only enqueues `Done`, and the player actor calls back into `done()`
when it dequeues that command.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Awaitable
from contextlib import suppress
from pathlib import Path
from typing import Callable

from clue_play.services.commands import CommandQueue, Done
from clue_play.services.now_playing import announce_song
from clue_play.services.playback_backend import PlayerLauncher, PlayerProcess
from clue_play.services.player_state import PlayerState
from clue_play.services.song_selector import choose_song

logger = logging.getLogger(__name__)


class PlaybackSupervisor:
    """Starts the player for the next song and reports its exit."""

    def __init__(
        self,
        *,
        launcher: PlayerLauncher,
        queue: CommandQueue,
        announce: Callable[[Path], Awaitable[None]] = announce_song,
        clock: Callable[[], float] = time.monotonic,
        rng: random.Random | None = None,
    ) -> None:
        self._launcher = launcher
        self._queue = queue
        self._announce = announce
        self._clock = clock
        self._rng = rng or random.Random()
        self._tasks: set[asyncio.Task[None]] = set()

    async def start(self, state: PlayerState) -> bool:
        """Launch the player for the next song; return whether one is running."""
        assert state.process is None, "player already running"
        assert state.current is None, "current song still assigned"

        song = choose_song(state, self._rng)
        if song is None:
            logger.info("Nothing to play")
            state.should_play = False
            return False

        logger.debug("Starting player with %s", song)
        try:
            process = await self._launcher.spawn(song)
        except OSError as exc:
            logger.error("Failed to start player for %s: %s", song, exc)
            state.should_play = False
            return False

        state.process = process
        state.current = song
        state.last_start = self._clock()
        self._spawn_task(self._announce_safely(song))
        self._spawn_task(self._watch(process, song))
        return True

    async def done(self, state: PlayerState) -> None:
        """Retire the exited player and auto-advance when playback should go on."""
        if state.current is not None:
            state.remember(state.current)
            state.current = None
        if state.process is not None:
            state.process.close()
            state.process = None
        state.last_start = None

        if state.should_play:
            await self.start(state)

    async def shutdown(self) -> None:
        """Cancel outstanding background tasks without touching the player."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task

    def _spawn_task(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _watch(self, process: PlayerProcess, song: Path) -> None:
        try:
            status = await process.wait()
        except OSError as exc:
            logger.error("Error waiting for player of %s: %s", song, exc)
        else:
            if status == 0:
                logger.debug("Player for %s terminated successfully", song)
            else:
                logger.error("Player for %s exited with status %s", song, status)
        self._queue.send(Done())

    async def _announce_safely(self, song: Path) -> None:
        try:
            await self._announce(song)
        except Exception:
            logger.debug("Now-playing announcement failed for %s", song, exc_info=True)
