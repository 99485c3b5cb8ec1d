"""Command-line entrypoint for the clue-play daemon."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from . import __version__
from .daemon import DaemonConfig, run_daemon
from .doctor import render_report, run_doctor
from .logging_utils import setup_logging
from .paths import log_dir
from .runtime_config import (
    BACKENDS,
    DEFAULT_PLAYER_BINARY,
    normalize_backend,
    resolve_log_level,
    resolve_socket_path,
)
from .services.commands import MODES
from .version import build_help_epilog


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clue-play",
        description="Playback daemon controlled over a local Unix socket.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=build_help_epilog(),
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--quiet", action="store_true", help="Only show warnings and errors"
    )
    parser.add_argument("--log-file", help="Write logs to a file path")
    parser.add_argument(
        "--socket", help="Control socket path (default: ~/.clue_play_socket)."
    )
    parser.add_argument(
        "--backend",
        choices=BACKENDS,
        default="mpv",
        help="Player backend to use (mpv or fake).",
    )
    parser.add_argument(
        "--player",
        default=DEFAULT_PLAYER_BINARY,
        help="mpv executable to launch for each song.",
    )
    parser.add_argument(
        "--mode",
        choices=MODES,
        default="random",
        help="Initial traversal mode.",
    )
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("doctor", help="Check player and tag-reader readiness.")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = logging.getLogger(__name__)
    backend = normalize_backend(args.backend)
    if getattr(args, "command", None) == "doctor":
        report = run_doctor(backend, args.player)
        print(render_report(report))
        return report.exit_code
    try:
        level = resolve_log_level(verbose=args.verbose, quiet=args.quiet)
        setup_logging(
            log_dir=log_dir(),
            level=level,
            log_file=Path(args.log_file) if args.log_file else None,
        )
        config = DaemonConfig(
            socket_path=resolve_socket_path(args.socket),
            backend=backend,
            player_binary=args.player,
            initial_mode=args.mode,
        )
        logger.info("Starting clue-play daemon")
        asyncio.run(run_daemon(config))
        return 0
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130
    except OSError as exc:
        logger.error("Top level error: %s", exc)
        print(f"clue-play: {exc}", file=sys.stderr)
        return 1
    except Exception as exc:  # pragma: no cover - top-level safety net
        logger.exception("Unhandled error: %s", exc)
        print("Unexpected error. Re-run with --verbose for details.", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
