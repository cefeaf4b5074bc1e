"""Subprocess execution with Result-based error handling.

All external collaborators of the release pipeline (git, the build tool, the
publish tool) are child processes started through `run`. Every call can carry
a timeout and a cancellation event; both terminate the child and surface as a
ProcessError instead of hanging the pipeline.

Usage:
    cancel = threading.Event()
    result = run(["cargo", "build"], cwd=Path("."), timeout=600, cancel=cancel)
    match result:
        case Ok(stdout):
            print(stdout)
        case Err(error):
            print(f"Failed: {error}")
"""

from __future__ import annotations

import os
import signal
import subprocess
import threading
import time
from dataclasses import dataclass
from pathlib import Path

from relgate.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run"]

# How often a running child is checked for cancellation.
_POLL_SECONDS = 0.2

_POSIX = os.name == "posix"


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: The exit code of the process (-1 if it never exited on its own).
        stdout: Standard output (may be empty).
        stderr: Standard error (contains error details).
        timed_out: The process was killed after exceeding its timeout.
        cancelled: The process was killed because the caller cancelled it.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False
    cancelled: bool = False

    def __str__(self) -> str:
        """Format error for display."""
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        if self.timed_out:
            return f"{cmd_str} timed out"
        if self.cancelled:
            return f"{cmd_str} cancelled"
        return f"{cmd_str} failed (exit {self.returncode})"


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
    cancel: threading.Event | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return stdout or error.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Environment variables (uses current env if None).
        timeout: Maximum seconds to wait (None for no limit).
        cancel: When set, the running process is killed and the call fails.

    Returns:
        Ok(stdout) on success, Err(ProcessError) on failure.
    """
    if cancel is not None and cancel.is_set():
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout="",
                stderr="Command cancelled before start",
                cancelled=True,
            )
        )

    try:
        proc = subprocess.Popen(
            cmd,
            cwd=str(cwd),
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            start_new_session=_POSIX,
        )
    except OSError as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout="",
                stderr=str(e),
            )
        )

    deadline = None if timeout is None else time.monotonic() + timeout
    while True:
        wait: float | None = None
        if cancel is not None:
            wait = _POLL_SECONDS
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return _kill(proc, cmd, reason=f"Command timed out after {timeout}s", timed_out=True)
            wait = remaining if wait is None else min(wait, remaining)

        try:
            stdout, stderr = proc.communicate(timeout=wait)
            break
        except subprocess.TimeoutExpired:
            if cancel is not None and cancel.is_set():
                return _kill(proc, cmd, reason="Command cancelled", cancelled=True)

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=stdout,
                stderr=stderr,
            )
        )

    return Ok(stdout)


def _kill(
    proc: subprocess.Popen[str],
    cmd: list[str],
    *,
    reason: str,
    timed_out: bool = False,
    cancelled: bool = False,
) -> Err[ProcessError]:
    _kill_tree(proc)
    stdout, _ = proc.communicate()
    return Err(
        ProcessError(
            command=tuple(cmd),
            returncode=-1,
            stdout=stdout or "",
            stderr=reason,
            timed_out=timed_out,
            cancelled=cancelled,
        )
    )


def _kill_tree(proc: subprocess.Popen[str]) -> None:
    """Kill the child and everything it started.

    Build tools leave grandchildren (compilers, linkers) holding the output
    pipes; killing only the direct child would leave `communicate` waiting
    on them.
    """
    if _POSIX:
        # The child leads its own session, so its pid is the group id.
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            proc.kill()
        return
    subprocess.run(
        ["taskkill", "/T", "/F", "/PID", str(proc.pid)],
        capture_output=True,
        check=False,
    )
    proc.kill()
