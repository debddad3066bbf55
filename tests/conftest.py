"""Shared pytest fixtures for pasteVector tests."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from pathlib import Path

import pytest

from pastevector.core import process
from pastevector.core.config import Config, DefaultsConfig
from pastevector.core.probe import CapabilityProbe
from pastevector.core.process import BinaryResult, ProcessResult


class StaticProbe(CapabilityProbe):
    """Probe with a fixed set of installed commands."""

    def __init__(self, commands: Iterable[str] = (), environ: Mapping[str, str] | None = None):
        super().__init__(environ={} if environ is None else environ)
        self.commands = set(commands)
        self.lookups: list[str] = []

    def command_exists(self, name: str) -> bool:
        self.lookups.append(name)
        return name in self.commands


class FakeEditor:
    """In-memory Editor implementation."""

    def __init__(self, document_path: Path, clipboard_text: str = "") -> None:
        self.document_path = document_path
        self.clipboard_text = clipboard_text
        self.inserted: list[str] = []
        self.clipboard_writes: list[str] = []
        self.errors: list[str] = []
        self.default_pastes = 0

    def insert_text(self, text: str) -> None:
        self.inserted.append(text)

    def read_clipboard_text(self) -> str:
        return self.clipboard_text

    def write_clipboard_text(self, text: str) -> None:
        self.clipboard_writes.append(text)

    def default_paste(self) -> None:
        self.default_pastes += 1

    def show_error(self, message: str) -> None:
        self.errors.append(message)


class FakeRunner:
    """
    Stand-in for process.run_text / process.run_bytes.

    Handlers are registered per command name and receive the argument list.
    Every call is recorded as (command, args).
    """

    def __init__(self) -> None:
        self.text_handlers: dict[str, Callable[[list[str]], ProcessResult]] = {}
        self.bytes_handlers: dict[str, Callable[[list[str]], BinaryResult]] = {}
        self.calls: list[tuple[str, list[str]]] = []

    def on_text(self, command: str, handler: Callable[[list[str]], ProcessResult]) -> None:
        self.text_handlers[command] = handler

    def on_bytes(self, command: str, handler: Callable[[list[str]], BinaryResult]) -> None:
        self.bytes_handlers[command] = handler

    def run_text(self, command: str, args, timeout: float) -> ProcessResult:
        self.calls.append((command, list(args)))
        handler = self.text_handlers.get(command)
        if handler is None:
            return ProcessResult(process.FAILED, "", f"\n[SPAWN ERROR] {command} not faked")
        return handler(list(args))

    def run_bytes(self, command: str, args, timeout: float) -> BinaryResult:
        self.calls.append((command, list(args)))
        handler = self.bytes_handlers.get(command)
        if handler is None:
            return BinaryResult(process.FAILED, b"", f"\n[SPAWN ERROR] {command} not faked")
        return handler(list(args))


@pytest.fixture
def runner(monkeypatch: pytest.MonkeyPatch) -> FakeRunner:
    fake = FakeRunner()
    monkeypatch.setattr(process, "run_text", fake.run_text)
    monkeypatch.setattr(process, "run_bytes", fake.run_bytes)
    return fake


@pytest.fixture
def document(tmp_path: Path) -> Path:
    doc = tmp_path / "docs" / "notes.md"
    doc.parent.mkdir(parents=True)
    doc.write_text("# Notes\n", encoding="utf-8")
    return doc


@pytest.fixture
def cfg() -> Config:
    return Config(defaults=DefaultsConfig(destination_template="img/${documentBaseName}-${unixTime}.${fileExtName}"))
