"""Playback actor: the single owner of `PlayerState`.

`PlayerService.run` drains the command queue one command at a time, applying
each to completion before looking at the next. No other task holds the state,
so ordering in the queue is the only synchronization the engine needs.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

from clue_play.services.commands import (
    CommandQueue,
    Command,
    Confirm,
    Done,
    Load,
    Mode,
    Next,
    Play,
    Prev,
    SetMode,
    Stop,
)
from clue_play.services.playback_backend import PAUSE_TOKEN, QUIT_TOKEN
from clue_play.services.player_state import PlayerState
from clue_play.services.supervisor import PlaybackSupervisor

logger = logging.getLogger(__name__)

RESTART_THRESHOLD_S = 2.0


class PlayerService:
    """Applies queued commands to the player state and the supervisor."""

    def __init__(
        self,
        *,
        queue: CommandQueue,
        supervisor: PlaybackSupervisor,
        clock: Callable[[], float] = time.monotonic,
        initial_state: PlayerState | None = None,
    ) -> None:
        self._queue = queue
        self._supervisor = supervisor
        self._clock = clock
        self._state = initial_state or PlayerState()

    @property
    def state(self) -> PlayerState:
        return self._state

    async def run(self) -> None:
        """Consume commands forever; cancel the task to stop."""
        while True:
            command = await self._queue.receive()
            await self.dispatch(command)

    async def dispatch(self, command: Command) -> None:
        logger.debug("Executing command %r", command)
        if isinstance(command, Play):
            await self.play_pause()
        elif isinstance(command, Stop):
            await self.stop()
        elif isinstance(command, Next):
            await self.next()
        elif isinstance(command, Prev):
            await self.prev()
        elif isinstance(command, Load):
            self.load(list(command.songs), append=command.append)
        elif isinstance(command, SetMode):
            self.set_mode(command.mode)
        elif isinstance(command, Confirm):
            if not command.reply.done():
                command.reply.set_result(None)
        elif isinstance(command, Done):
            await self._supervisor.done(self._state)

    async def send_control(self, data: bytes) -> None:
        process = self._state.process
        if process is None:
            logger.debug("Nowhere to send command %r", data)
            return
        logger.debug("Sending command %r", data)
        try:
            await process.send(data)
        except OSError as exc:
            # The player may already be gone with its Done still queued.
            logger.debug("Control write failed: %s", exc)

    async def play_pause(self) -> None:
        self._state.should_play = True
        if self._state.process is not None:
            await self.send_control(PAUSE_TOKEN)
        else:
            await self._supervisor.start(self._state)

    async def next(self) -> None:
        self._state.should_play = True
        if self._state.process is not None:
            await self.send_control(QUIT_TOKEN)
        else:
            await self._supervisor.start(self._state)

    async def prev(self) -> None:
        """Replay the current song, or go one back if it only just started.

        The current song is re-queued on the playlist. If it played for no more
        than two seconds the last history entry is queued on top of it, so the
        older song plays first and the current one follows.
        """
        state = self._state
        if state.current is not None:
            state.playlist.append(state.current)
            state.current = None

        last_start, state.last_start = state.last_start, None
        restart = (
            last_start is not None
            and self._clock() - last_start > RESTART_THRESHOLD_S
        )
        if not restart and state.history:
            state.playlist.append(state.history.pop())

        if state.playlist:
            await self.next()

    async def stop(self) -> None:
        self._state.should_play = False
        await self.send_control(QUIT_TOKEN)

    def load(self, songs: list[Path], *, append: bool) -> None:
        if append:
            self._state.songs.extend(songs)
        else:
            self._state.songs = songs
            self._state.position = 0
        logger.info(
            "Loaded %d songs (append=%s); %d known",
            len(songs),
            append,
            len(self._state.songs),
        )

    def set_mode(self, mode: Mode) -> None:
        logger.info("Mode %s -> %s", self._state.mode, mode)
        self._state.mode = mode
