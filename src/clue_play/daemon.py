"""Daemon assembly: wires queue, actor, supervisor and control server."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path

from clue_play.server import ControlServer
from clue_play.services.commands import CommandQueue, Mode
from clue_play.services.fake_backend import FakePlayerLauncher
from clue_play.services.mpv_backend import MpvLauncher
from clue_play.services.playback_backend import PlayerLauncher
from clue_play.services.player_service import PlayerService
from clue_play.services.player_state import PlayerState
from clue_play.services.supervisor import PlaybackSupervisor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DaemonConfig:
    """Resolved runtime settings for one daemon process."""

    socket_path: Path
    backend: str = "mpv"
    player_binary: str = "mpv"
    initial_mode: Mode = "random"


def build_launcher(config: DaemonConfig) -> PlayerLauncher:
    if config.backend == "fake":
        return FakePlayerLauncher(duration_s=180.0, record=False)
    return MpvLauncher(binary=config.player_binary)


async def run_daemon(
    config: DaemonConfig, *, launcher: PlayerLauncher | None = None
) -> None:
    """Serve until a client terminates the daemon.

    Raises OSError when the control socket cannot be bound.
    """
    queue = CommandQueue()
    supervisor = PlaybackSupervisor(
        launcher=launcher or build_launcher(config), queue=queue
    )
    service = PlayerService(
        queue=queue,
        supervisor=supervisor,
        initial_state=PlayerState(mode=config.initial_mode),
    )
    server = ControlServer(socket_path=config.socket_path, queue=queue)
    await server.start()
    logger.info(
        "Listening on %s (backend=%s, mode=%s)",
        config.socket_path,
        config.backend,
        config.initial_mode,
    )
    actor = asyncio.create_task(service.run(), name="clue-play-player")
    try:
        await server.serve_until_terminated()
    finally:
        await server.close()
        actor.cancel()
        with suppress(asyncio.CancelledError):
            await actor
        await supervisor.shutdown()
    logger.info("Daemon terminated")
