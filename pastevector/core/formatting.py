"""
Markdown formatting utilities for pasteVector.

Formats the image reference inserted into the document.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

__all__ = [
    "escape_alt_text",
    "relative_posix",
    "markdown_image",
]

_ALT_WHITESPACE = re.compile(r"[\r\n\t]+")


def escape_alt_text(text: str) -> str:
    """Collapse line breaks/tabs to spaces and escape closing brackets."""
    return _ALT_WHITESPACE.sub(" ", text).replace("]", "\\]")


def relative_posix(from_dir: Path, to_file: Path) -> str:
    """
    Path of `to_file` relative to `from_dir`, always with forward slashes.
    """
    rel = os.path.relpath(to_file, from_dir)
    return rel.replace("\\", "/")


def markdown_image(rel_path: str, alt_text: str | None = None) -> str:
    """
    Build `![alt](rel_path)`; alt is empty unless given.

    Examples:
        >>> markdown_image("img/a.svg")
        '![](img/a.svg)'
        >>> markdown_image("a.png", "Fig. [1]")
        '![Fig. [1\\\\]](a.png)'
    """
    alt = (alt_text or "").strip()
    if not alt:
        return f"![]({rel_path})"
    return f"![{escape_alt_text(alt)}]({rel_path})"
