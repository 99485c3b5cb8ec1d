"""Player subprocess contracts.

`PlaybackSupervisor` depends on these protocols to stay backend-agnostic.
Concrete implementations (mpv/fake) translate engine-specific process handling
into a handle that can be sent control tokens and awaited for exit.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

PAUSE_TOKEN = b"cycle pause\n"
QUIT_TOKEN = b"quit\n"


class PlayerProcess(Protocol):
    """Handle to one live player subprocess and its control channel."""

    async def send(self, data: bytes) -> None:
        """Write control bytes; raises OSError when the channel is gone."""
        ...

    async def wait(self) -> int:
        """Wait for process exit and return its exit status."""
        ...

    def close(self) -> None:
        """Release the control channel."""
        ...


class PlayerLauncher(Protocol):
    """Factory for player subprocesses, one per song."""

    async def spawn(self, song: Path) -> PlayerProcess:
        """Start playing `song`; raises OSError when the player cannot start."""
        ...
