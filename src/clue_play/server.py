"""Unix-socket control server speaking the line protocol.

Each connection runs as its own task and only ever produces commands into the
shared `CommandQueue`; nothing here touches player state directly.

Protocol, one command per line::

    mode random|sequence|circular
    load [append]      followed by one path per line, ended by an empty line
    play | next | prev | stop
    quit               close this connection
    terminate          stop playback, wait for it to apply, shut the daemon down
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import os
from contextlib import suppress
from pathlib import Path
from typing import Callable

from clue_play.media_formats import filter_songs
from clue_play.services.commands import (
    Command,
    CommandQueue,
    Load,
    Next,
    Play,
    Prev,
    SetMode,
    Stop,
    parse_mode,
)
from clue_play.utils.async_utils import run_blocking

logger = logging.getLogger(__name__)

SIMPLE_COMMANDS: dict[bytes, Callable[[], Command]] = {
    b"play": Play,
    b"next": Next,
    b"prev": Prev,
    b"stop": Stop,
}


class ControlServer:
    """Accepts control connections and translates their lines into commands."""

    def __init__(self, *, socket_path: Path, queue: CommandQueue) -> None:
        self._socket_path = socket_path
        self._queue = queue
        self._server: asyncio.AbstractServer | None = None
        self._conn_numbers = itertools.count()
        self._writers: set[asyncio.StreamWriter] = set()
        self._terminated = asyncio.Event()

    @property
    def socket_path(self) -> Path:
        return self._socket_path

    @property
    def terminated(self) -> asyncio.Event:
        """Set once a client has issued `terminate` and it has taken effect."""
        return self._terminated

    async def start(self) -> None:
        """Bind the listening socket; raises OSError when the path is unusable."""
        self._server = await asyncio.start_unix_server(
            self._handle_connection, path=os.fspath(self._socket_path)
        )
        logger.debug("Created listening socket at %s", self._socket_path)

    async def close(self) -> None:
        if self._server is None:
            return
        self._server.close()
        # Idle clients would otherwise keep wait_closed() pending forever.
        for writer in list(self._writers):
            writer.close()
        await self._server.wait_closed()
        self._server = None
        with suppress(FileNotFoundError):
            self._socket_path.unlink()

    async def serve_until_terminated(self) -> None:
        await self._terminated.wait()

    async def _handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        num = next(self._conn_numbers)
        logger.info("Accepted a control connection #%d", num)
        self._writers.add(writer)
        try:
            await self.handle_lines(reader, num)
        except (OSError, ValueError) as exc:
            logger.error("Error on connection #%d: %s", num, exc)
        finally:
            self._writers.discard(writer)
            writer.close()
            with suppress(OSError):
                await writer.wait_closed()

    async def handle_lines(self, reader: asyncio.StreamReader, num: int = 0) -> None:
        """Process command lines until EOF, `quit` or `terminate`."""
        while True:
            line = await reader.readline()
            if not line:
                logger.info("Connection closed #%d", num)
                return
            if not await self.handle_command(_strip_eol(line), reader):
                logger.info("Closing connection #%d", num)
                return

    async def handle_command(self, line: bytes, reader: asyncio.StreamReader) -> bool:
        """Apply one command line; return False when the connection should end."""
        words = line.split()
        if not words:
            return True
        name, args = words[0], words[1:]

        if name in SIMPLE_COMMANDS:
            self._queue.send(SIMPLE_COMMANDS[name]())
        elif name == b"mode":
            self._set_mode(args)
        elif name == b"load":
            append = b"append" in args
            songs = await _read_song_block(reader)
            self._queue.send(Load(tuple(songs), append=append))
        elif name == b"quit":
            return False
        elif name == b"terminate":
            await self.terminate()
            return False
        else:
            logger.error("Unknown command %s", _lossy(name))
        return True

    async def terminate(self) -> None:
        """Stop playback, wait until the actor applied it, then signal shutdown."""
        self._queue.send(Stop())
        await self._queue.confirm()
        logger.info("Termination confirmed")
        self._terminated.set()

    def _set_mode(self, args: list[bytes]) -> None:
        if not args:
            logger.error("Missing mode")
            return
        mode = parse_mode(_lossy(args[0]))
        if mode is None:
            logger.error("Unknown mode %s", _lossy(args[0]))
            return
        self._queue.send(SetMode(mode))


async def _read_song_block(reader: asyncio.StreamReader) -> list[Path]:
    """Read path lines up to the first empty line (or EOF) and admit them."""
    paths: list[Path] = []
    while True:
        raw = await reader.readline()
        if not raw:
            break
        line = _strip_eol(raw)
        if not line:
            break
        paths.append(Path(os.fsdecode(line)))
    return await run_blocking(filter_songs, paths)


def _strip_eol(line: bytes) -> bytes:
    return line[:-1] if line.endswith(b"\n") else line


def _lossy(value: bytes) -> str:
    return value.decode("utf-8", errors="replace")
