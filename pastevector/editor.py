"""
Editor integration for pasteVector.

The paste pipeline only needs a handful of things from its host editor; they
are described by the `Editor` protocol. `MarkdownFileEditor` implements it for
the command line: the active document is a markdown file, the cursor is an
optional line/column, and "insert" splices text into the file (or prints it).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from rich.console import Console
from rich.markup import escape

from pastevector.core.clipboard import copy_to_clipboard, read_clipboard_text

__all__ = ["Editor", "MarkdownFileEditor", "splice"]


@runtime_checkable
class Editor(Protocol):
    """
    Host editor operations used by the paste pipeline.

    Required attributes:
        document_path: Absolute path of the active document.

    Required methods:
        insert_text: Insert text at the cursor.
        read_clipboard_text / write_clipboard_text: System clipboard text.
        default_paste: The host's regular paste action.
        show_error: Surface a message to the user.
    """

    document_path: Path

    def insert_text(self, text: str) -> None: ...

    def read_clipboard_text(self) -> str: ...

    def write_clipboard_text(self, text: str) -> None: ...

    def default_paste(self) -> None: ...

    def show_error(self, message: str) -> None: ...


def splice(content: str, text: str, line: int | None = None, column: int | None = None) -> str:
    """
    Insert `text` into `content` at a 1-based line/column.

    No line means end of content; positions past the end are clamped.
    """
    if line is None:
        return content + text
    lines = content.splitlines(keepends=True)
    line = max(1, min(line, len(lines) + 1))
    offset = sum(len(s) for s in lines[: line - 1])
    if line <= len(lines):
        current = lines[line - 1].rstrip("\r\n")
        offset += max(0, min((column or 1) - 1, len(current)))
    return content[:offset] + text + content[offset:]


class MarkdownFileEditor:
    """
    Terminal host for a markdown file.

    Args:
        document: The markdown document the image belongs to.
        line: 1-based cursor line (None appends at the end).
        column: 1-based cursor column on `line`.
        to_stdout: Print inserted text instead of editing the document.
        console: Rich console for user-facing messages (stderr by default).
    """

    def __init__(
        self,
        document: Path,
        line: int | None = None,
        column: int | None = None,
        to_stdout: bool = False,
        console: Console | None = None,
    ) -> None:
        self.document_path = document.expanduser().resolve()
        self.line = line
        self.column = column
        self.to_stdout = to_stdout
        self.console = console or Console(stderr=True)
        self._stdout = Console()

    def insert_text(self, text: str) -> None:
        if self.to_stdout:
            self._stdout.print(text, markup=False, highlight=False, soft_wrap=True)
            return
        try:
            content = self.document_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            content = ""
        self.document_path.write_text(
            splice(content, text, self.line, self.column), encoding="utf-8"
        )
        logging.debug("Inserted %d chars into %s", len(text), self.document_path)

    def read_clipboard_text(self) -> str:
        return read_clipboard_text()

    def write_clipboard_text(self, text: str) -> None:
        copy_to_clipboard(text)

    def default_paste(self) -> None:
        text = self.read_clipboard_text()
        if text:
            self.insert_text(text)

    def show_error(self, message: str) -> None:
        self.console.print(f"[red]{escape(message)}[/red]", highlight=False)
