"""Command values and the queue that carries them into the player actor.

Connections and the playback supervisor only ever talk to the player through
`CommandQueue`. The queue is created once at startup and handed explicitly to
each producer; it totally orders every state mutation.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Union

Mode = Literal["random", "sequence", "circular"]
MODES: tuple[Mode, ...] = ("random", "sequence", "circular")


def parse_mode(value: str) -> Mode | None:
    """Return the mode named by `value`, or None when it is not a known mode."""
    for mode in MODES:
        if value == mode:
            return mode
    return None


@dataclass(frozen=True)
class Play:
    """Start playback, or toggle pause on the running player."""


@dataclass(frozen=True)
class Stop:
    """Stop playback and disable auto-advance."""


@dataclass(frozen=True)
class Next:
    """Skip to the next song."""


@dataclass(frozen=True)
class Prev:
    """Go back to the previous song or restart the current one."""


@dataclass(frozen=True)
class Load:
    """Replace or extend the base song list."""

    songs: tuple[Path, ...]
    append: bool = False


@dataclass(frozen=True)
class SetMode:
    """Switch the base-list traversal policy."""

    mode: Mode


@dataclass(frozen=True)
class Confirm:
    """Acknowledge once every previously queued command has been applied."""

    reply: asyncio.Future[None] = field(compare=False)


@dataclass(frozen=True)
class Done:
    """Internal: the player subprocess exited."""


Command = Union[Play, Stop, Next, Prev, Load, SetMode, Confirm, Done]


class CommandQueue:
    """Unbounded multi-producer, single-consumer command channel."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Command] = asyncio.Queue()

    def send(self, command: Command) -> None:
        self._queue.put_nowait(command)

    async def receive(self) -> Command:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()

    async def confirm(self) -> None:
        """Wait until the consumer has applied everything queued before this call."""
        reply: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self.send(Confirm(reply))
        await reply
