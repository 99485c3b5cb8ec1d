"""Runtime diagnostics for the external player and tag reader."""

from __future__ import annotations

import importlib
import shutil
import subprocess
from dataclasses import dataclass
from typing import Literal

DoctorStatus = Literal["ok", "missing", "error"]


@dataclass(frozen=True)
class DoctorCheck:
    """One environment/tooling readiness check result."""

    name: str
    status: DoctorStatus
    required: bool
    detail: str
    hint: str | None = None


@dataclass(frozen=True)
class DoctorReport:
    """Collection of doctor checks and derived process exit contract."""

    backend: str
    checks: list[DoctorCheck]

    @property
    def exit_code(self) -> int:
        """Return non-zero when any required check failed or is missing."""
        for check in self.checks:
            if check.required and check.status != "ok":
                return 2
        return 0


def run_doctor(backend: str, player_binary: str = "mpv") -> DoctorReport:
    """Run diagnostics for the selected backend."""
    checks = [
        probe_tinytag(),
        probe_player(player_binary, required=backend == "mpv"),
    ]
    return DoctorReport(backend=backend, checks=checks)


def render_report(report: DoctorReport) -> str:
    """Render terminal-friendly diagnostics report text."""
    lines = [f"clue-play doctor (backend={report.backend})", ""]
    for check in report.checks:
        state = _status_token(check.status)
        req = "required" if check.required else "optional"
        lines.append(f"{state} {check.name:<8} [{req}] {check.detail}")
        if check.hint:
            lines.append(f"      hint: {check.hint}")
    lines.append("")
    lines.append("Result: OK" if report.exit_code == 0 else "Result: FAIL")
    return "\n".join(lines)


def probe_tinytag() -> DoctorCheck:
    """Verify TinyTag dependency importability.

    Tags only feed the now-playing line, so a missing reader degrades the
    display to placeholders rather than blocking playback.
    """
    try:
        module = importlib.import_module("tinytag")
    except Exception as exc:
        return DoctorCheck(
            name="tinytag",
            status="missing",
            required=False,
            detail=f"not importable ({exc.__class__.__name__})",
            hint="Install Python dependencies (pip install clue-play).",
        )
    version = getattr(module, "__version__", None)
    detail = f"importable ({version})" if version else "importable"
    return DoctorCheck(name="tinytag", status="ok", required=False, detail=detail)


def probe_player(binary: str, *, required: bool) -> DoctorCheck:
    """Verify the player binary is present and answers `--version`."""
    path = shutil.which(binary)
    if path is None:
        return DoctorCheck(
            name="mpv",
            status="missing",
            required=required,
            detail=f"{binary} not found on PATH",
            hint="Install mpv or pass --player with its location.",
        )
    try:
        proc = subprocess.run(
            [path, "--version"],
            capture_output=True,
            text=True,
            timeout=2,
            check=False,
        )
    except Exception as exc:
        return DoctorCheck(
            name="mpv",
            status="error",
            required=required,
            detail=f"launch failed ({exc.__class__.__name__})",
            hint="Reinstall mpv and verify PATH.",
        )
    if proc.returncode != 0:
        return DoctorCheck(
            name="mpv",
            status="error",
            required=required,
            detail=f"{binary} --version failed (exit={proc.returncode})",
            hint="Reinstall mpv and verify PATH.",
        )
    first_line = proc.stdout.strip().splitlines()[0] if proc.stdout.strip() else ""
    detail = first_line or f"binary found at {path}"
    return DoctorCheck(name="mpv", status="ok", required=required, detail=detail)


def _status_token(status: DoctorStatus) -> str:
    """Map doctor status to compact display token."""
    if status == "ok":
        return "[OK]"
    if status == "missing":
        return "[MISS]"
    return "[ERR]"
