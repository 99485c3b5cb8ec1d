"""Fake player backend for deterministic testing."""

from __future__ import annotations

import asyncio
from pathlib import Path

from .playback_backend import PAUSE_TOKEN, QUIT_TOKEN


class FakePlayerProcess:
    """In-memory stand-in for one player subprocess.

    Records every control token it receives. `quit` ends the process with exit
    status 0; `finish()` ends it with any status, as if the song ran out or the
    player crashed.
    """

    def __init__(self, song: Path, *, duration_s: float | None = None) -> None:
        self.song = song
        self.received: list[bytes] = []
        self.paused = False
        self.closed = False
        self._exit_code: int | None = None
        self._exited = asyncio.Event()
        self._timer: asyncio.TimerHandle | None = None
        if duration_s is not None:
            self._timer = asyncio.get_running_loop().call_later(
                duration_s, self.finish
            )

    @property
    def running(self) -> bool:
        return self._exit_code is None

    async def send(self, data: bytes) -> None:
        if self.closed or not self.running:
            raise BrokenPipeError("fake player is gone")
        self.received.append(data)
        if data == PAUSE_TOKEN:
            self.paused = not self.paused
        elif data == QUIT_TOKEN:
            self.finish(0)

    async def wait(self) -> int:
        await self._exited.wait()
        assert self._exit_code is not None
        return self._exit_code

    def close(self) -> None:
        self.closed = True

    def finish(self, exit_code: int = 0) -> None:
        if not self.running:
            return
        if self._timer is not None:
            self._timer.cancel()
        self._exit_code = exit_code
        self._exited.set()


class FakePlayerLauncher:
    """Launcher that hands out `FakePlayerProcess` objects.

    With `record` set every process is kept in `spawned`; otherwise only the
    latest one is held, for long-running use.
    """

    def __init__(
        self,
        *,
        duration_s: float | None = None,
        fail_with: OSError | None = None,
        record: bool = True,
    ) -> None:
        self._duration_s = duration_s
        self._record = record
        self.fail_with = fail_with
        self.spawned: list[FakePlayerProcess] = []
        self._last: FakePlayerProcess | None = None

    @property
    def last(self) -> FakePlayerProcess | None:
        return self._last

    async def spawn(self, song: Path) -> FakePlayerProcess:
        if self.fail_with is not None:
            raise self.fail_with
        process = FakePlayerProcess(song, duration_s=self._duration_s)
        self._last = process
        if self._record:
            self.spawned.append(process)
        return process
