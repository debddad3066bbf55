"""
Process helpers for pasteVector.

Every clipboard tool (wl-paste, xclip, emf2svg-conv, powershell.exe) is run
through this module so that all of them share the same contract:

- stdin is closed, stdout and stderr are captured independently
- a wall-clock timeout kills the process; whatever was captured before the
  kill is still returned
- spawn failures (binary missing, permission denied) never raise; they come
  back as a synthetic exit code with the error text in stderr

Callers decide what a non-zero exit code means for them.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass

__all__ = [
    "FAILED",
    "DRAIN_TIMEOUT",
    "ProcessResult",
    "BinaryResult",
    "run_text",
    "run_bytes",
]

# Synthetic exit code for timeouts and spawn errors.
FAILED = -1

# Grace period for collecting output once a timed-out process group is killed.
DRAIN_TIMEOUT = 0.5


@dataclass(slots=True)
class ProcessResult:
    code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.code == 0

    def details(self) -> str:
        """stderr and stdout joined, empty parts dropped."""
        return "\n".join(p for p in (self.stderr.strip(), self.stdout.strip()) if p)


@dataclass(slots=True)
class BinaryResult:
    code: int
    data: bytes
    stderr: str

    @property
    def ok(self) -> bool:
        return self.code == 0


def _format_seconds(timeout: float) -> str:
    return f"{timeout:g}s"


def _kill_group(proc: subprocess.Popen) -> None:
    # Children of the command inherit its pipes, so the whole session goes.
    if os.name == "posix":
        try:
            os.killpg(proc.pid, signal.SIGKILL)
            return
        except ProcessLookupError:
            pass
    proc.kill()


def _drain(proc: subprocess.Popen) -> tuple[bytes, bytes]:
    """Collect what was written before the kill, giving up after DRAIN_TIMEOUT."""
    try:
        return proc.communicate(timeout=DRAIN_TIMEOUT)
    except subprocess.TimeoutExpired as e:
        # A process outside the group still holds the pipes.
        out, err = e.output or b"", e.stderr or b""
        for pipe in (proc.stdout, proc.stderr):
            if pipe is not None:
                pipe.close()
        proc.wait()
        return out, err


def _run(command: str, args: Sequence[str], timeout: float) -> tuple[int, bytes, bytes]:
    cmd = [command, *args]
    logging.debug("Running: %s (timeout %s)", " ".join(cmd), _format_seconds(timeout))
    try:
        proc = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            start_new_session=(os.name == "posix"),
        )
    except OSError as e:
        logging.debug("Spawn of %s failed: %s", command, e)
        return FAILED, b"", f"\n[SPAWN ERROR] {e}".encode()

    try:
        out, err = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        _kill_group(proc)
        out, err = _drain(proc)
        logging.debug("%s timed out after %s", command, _format_seconds(timeout))
        return FAILED, out or b"", (err or b"") + f"\n[TIMEOUT {_format_seconds(timeout)}]".encode()

    return proc.returncode, out or b"", err or b""


def run_text(command: str, args: Sequence[str], timeout: float) -> ProcessResult:
    """
    Run `command` with `args` and return its decoded output.

    Args:
        command: Executable name or path.
        args: Arguments passed verbatim (no shell).
        timeout: Wall-clock limit in seconds.

    Returns:
        ProcessResult; `code` is FAILED on timeout or spawn error.
    """
    code, out, err = _run(command, args, timeout)
    return ProcessResult(
        code=code,
        stdout=out.decode("utf-8", errors="replace"),
        stderr=err.decode("utf-8", errors="replace"),
    )


def run_bytes(command: str, args: Sequence[str], timeout: float) -> BinaryResult:
    """
    Same as run_text but stdout is returned as raw bytes.
    """
    code, out, err = _run(command, args, timeout)
    return BinaryResult(code=code, data=out, stderr=err.decode("utf-8", errors="replace"))
