"""mpv playback backend driven over a private control socket.

Each song gets its own mpv process. The process inherits one end of a
`socketpair` and reads input commands from it (`--input-ipc-client`); the
daemon keeps the other end as an asyncio stream.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from contextlib import suppress
from pathlib import Path

logger = logging.getLogger(__name__)

MPV_BASE_ARGS = ("--really-quiet", "--no-video")


def build_mpv_args(binary: str, song: Path, control_fd: int) -> list[str]:
    """Return the full mpv command line for one song."""
    return [
        binary,
        *MPV_BASE_ARGS,
        f"--input-ipc-client=fd://{control_fd}",
        "--",
        str(song),
    ]


class MpvProcess:
    """Live mpv subprocess plus both sides of its control socket."""

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        self._process = process
        self._writer = writer
        # mpv pushes JSON events back over the same socket; keep it drained.
        self._drain_task = asyncio.create_task(self._drain_events(reader))

    async def send(self, data: bytes) -> None:
        if self._writer.is_closing():
            raise ConnectionResetError("mpv control channel is closed")
        self._writer.write(data)
        await self._writer.drain()

    async def wait(self) -> int:
        return await self._process.wait()

    def close(self) -> None:
        self._drain_task.cancel()
        self._writer.close()

    async def _drain_events(self, reader: asyncio.StreamReader) -> None:
        try:
            while True:
                line = await reader.readline()
                if not line:
                    return
                logger.debug("mpv[%s]: %s", self._process.pid, line.rstrip())
        except (OSError, ValueError):
            return


class MpvLauncher:
    """Spawns one mpv process per song with stdio silenced."""

    def __init__(self, *, binary: str = "mpv") -> None:
        self._binary = binary

    async def spawn(self, song: Path) -> MpvProcess:
        local, remote = socket.socketpair()
        try:
            reader, writer = await asyncio.open_unix_connection(sock=local)
        except BaseException:
            local.close()
            remote.close()
            raise
        try:
            process = await asyncio.create_subprocess_exec(
                *build_mpv_args(self._binary, song, remote.fileno()),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
                pass_fds=(remote.fileno(),),
            )
        except BaseException:
            writer.close()
            raise
        finally:
            # The child holds its own copy of the remote end.
            with suppress(OSError):
                remote.close()
        logger.debug("Spawned %s (pid=%s) for %s", self._binary, process.pid, song)
        return MpvProcess(process, reader, writer)
