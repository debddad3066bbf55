"""
Storage utilities for pasteVector.

This module centralizes file persistence for pasted artifacts:
- Expand the destination template into an output path
- Write bytes atomically and verify that a non-empty file landed on disk
- Provide scratch paths for intermediate files (e.g. EMF before conversion)

Design goals:
- Safe path handling and directory creation
- Never report success for a missing or zero-byte file
"""

from __future__ import annotations

import os
import random
import re
import tempfile
import time
from pathlib import Path

__all__ = [
    "WriteError",
    "file_size",
    "is_nonempty_file",
    "write_bytes",
    "expand_template",
    "unix_time",
    "nonce",
    "scratch_path",
]

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")


class WriteError(RuntimeError):
    """Raised when an output file is missing or empty after writing."""


def _ensure_parent_dir(path: Path) -> None:
    """
    Ensure the parent directory of `path` exists.
    """
    path.parent.mkdir(parents=True, exist_ok=True)


def file_size(path: Path) -> int | None:
    """Size of `path` in bytes, or None if it does not exist."""
    try:
        return path.stat().st_size
    except OSError:
        return None


def is_nonempty_file(path: Path) -> bool:
    return bool(file_size(path))


def write_bytes(path: Path, data: bytes) -> Path:
    """
    Write `data` to `path` through a temporary sibling and rename it in place.

    Returns:
        The same `path` for convenience.

    Raises:
        WriteError: if the file is absent or empty afterwards.
    """
    _ensure_parent_dir(path)
    partial = path.with_name(f".{path.name}.{nonce()}.part")
    try:
        partial.write_bytes(data)
        os.replace(partial, path)
    finally:
        partial.unlink(missing_ok=True)
    if not is_nonempty_file(path):
        raise WriteError(f"Output file missing/empty after write: {path}")
    return path


def expand_template(template: str, variables: dict[str, str]) -> str:
    """
    Replace ${name} placeholders; unknown names expand to an empty string.
    """
    return _PLACEHOLDER.sub(lambda m: variables.get(m.group(1), ""), template)


def unix_time() -> str:
    return str(int(time.time()))


def nonce() -> str:
    return f"{int(time.time() * 1000)}_{random.randrange(10**9)}"


def scratch_path(suffix: str, directory: Path | None = None) -> Path:
    """
    Return a fresh (not yet created) path for an intermediate file.
    """
    base = directory or Path(tempfile.gettempdir())
    return base / f"pastevector_{nonce()}{suffix}"
