"""
Clipboard text helper for pasteVector.

Provides the two plain-text operations the terminal host needs: read the
clipboard text and write the generated markdown snippet back.

Strategy:
- Primary: use `pyperclip` (cross-platform).
- Fallback: call the session's clipboard CLI directly (wl-clipboard on
  Wayland, xclip on X11).
- If neither works the functions raise ClipboardError.

Image formats are not handled here; see `pastevector.backends`.
"""

from __future__ import annotations

import logging
import os
import subprocess
from typing import Final

import pyperclip

from pastevector.core import T_READ, process

__all__ = ["copy_to_clipboard", "read_clipboard_text", "ClipboardError"]


class ClipboardError(RuntimeError):
    """Raised when reading or writing the clipboard fails in an expected way."""


_WAYLAND_COPY: Final[list[str]] = ["wl-copy"]
_WAYLAND_PASTE: Final[list[str]] = ["wl-paste", "-n", "-t", "text"]
_X11_COPY: Final[list[str]] = ["xclip", "-selection", "clipboard", "-i"]
_X11_PASTE: Final[list[str]] = ["xclip", "-selection", "clipboard", "-o"]


def _fallback_commands(wayland: list[str], x11: list[str]) -> list[list[str]]:
    if os.environ.get("WAYLAND_DISPLAY"):
        return [wayland, x11]
    return [x11]


def _try_cli_copy(text: str) -> None:
    """
    Attempt to copy `text` with wl-copy or xclip.

    Raises:
        ClipboardError: if no command is available or all of them fail.
    """
    for cmd in _fallback_commands(_WAYLAND_COPY, _X11_COPY):
        try:
            subprocess.run(cmd, input=text, text=True, capture_output=True, check=True, timeout=T_READ)
            logging.debug("Copied text to clipboard via %s", cmd[0])
            return
        except FileNotFoundError:
            logging.debug("%s not found on PATH", cmd[0])
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired) as e:
            logging.debug("%s failed: %s", cmd[0], e)
    raise ClipboardError("No clipboard command succeeded (wl-copy / xclip).")


def _try_cli_paste() -> str:
    for cmd in _fallback_commands(_WAYLAND_PASTE, _X11_PASTE):
        r = process.run_text(cmd[0], cmd[1:], T_READ)
        if r.ok:
            return r.stdout
        logging.debug("%s failed: %s", cmd[0], r.stderr.strip())
    raise ClipboardError("No clipboard command succeeded (wl-paste / xclip).")


def copy_to_clipboard(text: str) -> None:
    """
    Copy the given text to the system clipboard.

    Attempts pyperclip first. If it cannot find a copy mechanism, falls back
    to wl-copy / xclip. If all methods fail, raises ClipboardError.

    Raises:
        ClipboardError: if copying fails or no supported method is available.
    """
    try:
        pyperclip.copy(text)
        logging.debug("Copied text to clipboard via pyperclip")
        return
    except pyperclip.PyperclipException as e:
        logging.warning("pyperclip.copy failed: %s. Trying fallback.", e)

    _try_cli_copy(text)


def read_clipboard_text() -> str:
    """
    Return the clipboard text ("" when the clipboard holds no text).

    Raises:
        ClipboardError: if no supported method could read the clipboard.
    """
    try:
        return pyperclip.paste() or ""
    except pyperclip.PyperclipException as e:
        logging.debug("pyperclip.paste failed: %s. Trying fallback.", e)

    return _try_cli_paste()
