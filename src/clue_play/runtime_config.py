"""Runtime configuration normalization helpers.

These helpers keep CLI flag interpretation deterministic across entrypoints.
"""

from __future__ import annotations

from pathlib import Path

from .paths import default_socket_path

BACKENDS = ("mpv", "fake")
DEFAULT_PLAYER_BINARY = "mpv"


def resolve_log_level(*, verbose: bool, quiet: bool) -> str:
    """Resolve effective log level from CLI flags.

    Precedence is deterministic: --quiet overrides --verbose.
    """
    if quiet:
        return "WARNING"
    if verbose:
        return "DEBUG"
    return "INFO"


def resolve_socket_path(value: str | None) -> Path:
    """Return the control socket path, expanding `~` in user-supplied values."""
    if value is None or not value.strip():
        return default_socket_path()
    return Path(value.strip()).expanduser()


def normalize_backend(value: str | None) -> str:
    """Normalize CLI backend name to a supported backend."""
    if value is None:
        return "mpv"
    normalized = value.strip().lower()
    if normalized in BACKENDS:
        return normalized
    return "mpv"
