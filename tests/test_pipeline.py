"""Tests for the paste orchestrator."""

from __future__ import annotations

import base64
import logging
from pathlib import Path

import pytest

from conftest import FakeEditor, StaticProbe
from pastevector.backends.windows import POWERSHELL_CMD, WSLPATH_CMD
from pastevector.core.config import Config, DefaultsConfig
from pastevector.core.convert import EMF2SVG_CMD
from pastevector.core.pipeline import PastePipeline
from pastevector.core.process import BinaryResult, ProcessResult

SVG = b'<svg xmlns="http://www.w3.org/2000/svg"><circle r="1"/></svg>'
PNG = b"\x89PNG\r\n\x1a\nfake"
TS = "1700000000"
WAYLAND_ENV = {"WAYLAND_DISPLAY": "wayland-0"}


def wayland_clipboard(runner, types: dict[str, bytes]) -> None:
    listing = "\n".join(types) + "\n"
    runner.on_text("wl-paste", lambda args: ProcessResult(0, listing, ""))
    runner.on_bytes(
        "wl-paste",
        lambda args: BinaryResult(0, types[args[1]], "") if args[1] in types else BinaryResult(1, b"", "no"),
    )


def make_pipeline(editor: FakeEditor, cfg: Config, probe: StaticProbe, tmp_path: Path) -> PastePipeline:
    return PastePipeline(editor, cfg, probe, scratch_dir=tmp_path / "scratch", timestamp=TS)


def native_calls(runner) -> list[str]:
    return [c[0] for c in runner.calls if c[0] in ("wl-paste", "xclip")]


def test_prose_goes_to_default_paste_without_negotiation(runner, document, cfg, tmp_path) -> None:
    editor = FakeEditor(document, "hello world")
    probe = StaticProbe(["wl-paste", "xclip"], WAYLAND_ENV)

    assert make_pipeline(editor, cfg, probe, tmp_path).run() is None
    assert editor.default_pastes == 1
    assert editor.inserted == []
    assert runner.calls == []


def test_single_token_text_falls_through_to_media(runner, document, cfg, tmp_path) -> None:
    wayland_clipboard(runner, {"text/plain;charset=utf-8": b"x", "image/png": PNG})
    editor = FakeEditor(document, "CC(=O)Oc1ccccc1C(=O)O")
    probe = StaticProbe(["wl-paste"], WAYLAND_ENV)

    outcome = make_pipeline(editor, cfg, probe, tmp_path).run()

    assert outcome is not None
    assert outcome.handler == "linux-png"
    assert outcome.used_type == "wayland/image/png"
    assert editor.default_pastes == 0
    assert editor.inserted == [f"![](img/notes-{TS}.png)"]
    assert outcome.path == document.parent / "img" / f"notes-{TS}.png"
    assert outcome.path.read_bytes() == PNG


def test_svg_preferred_over_png(runner, document, cfg, tmp_path) -> None:
    wayland_clipboard(runner, {"image/png": PNG, "image/svg+xml": SVG})
    editor = FakeEditor(document, "")

    outcome = make_pipeline(editor, cfg, StaticProbe(["wl-paste"], WAYLAND_ENV), tmp_path).run()

    assert outcome.handler == "linux-svg"
    assert outcome.path.read_bytes() == SVG
    reads = [c[1] for c in runner.calls if c[1][:1] == ["-t"]]
    assert reads == [["-t", "image/svg+xml"]]


def test_svg_text_is_written_directly(runner, document, cfg, tmp_path) -> None:
    uri = "data:image/svg+xml;base64," + base64.b64encode(SVG).decode()
    editor = FakeEditor(document, uri)

    outcome = make_pipeline(editor, cfg, StaticProbe(["wl-paste"], WAYLAND_ENV), tmp_path).run()

    assert outcome.handler == "text-svg"
    assert outcome.path.read_bytes() == SVG
    assert editor.inserted == [f"![](img/notes-{TS}.svg)"]
    assert runner.calls == []


def test_emf_without_converter_moves_to_next_candidate(runner, document, cfg, tmp_path, caplog) -> None:
    wayland_clipboard(runner, {"image/x-emf": b"EMF", "image/png": PNG})
    editor = FakeEditor(document, "")

    with caplog.at_level(logging.WARNING):
        outcome = make_pipeline(editor, cfg, StaticProbe(["wl-paste"], WAYLAND_ENV), tmp_path).run()

    assert outcome.handler == "linux-png"
    assert EMF2SVG_CMD in caplog.text
    assert editor.errors == []
    assert not (tmp_path / "scratch").exists() or not any((tmp_path / "scratch").iterdir())


def test_emf_converted_when_tool_present(runner, document, cfg, tmp_path) -> None:
    wayland_clipboard(runner, {"image/x-emf": b"EMF", "image/png": PNG})

    def fake_conv(args: list[str]) -> ProcessResult:
        Path(args[args.index("-o") + 1]).write_bytes(SVG)
        return ProcessResult(0, "", "")

    runner.on_text(EMF2SVG_CMD, fake_conv)
    editor = FakeEditor(document, "")
    probe = StaticProbe(["wl-paste", EMF2SVG_CMD], WAYLAND_ENV)

    outcome = make_pipeline(editor, cfg, probe, tmp_path).run()

    assert outcome.handler == "linux-emf"
    assert outcome.path.suffix == ".svg"
    assert outcome.path.read_bytes() == SVG


def test_falls_back_to_second_backend(runner, document, cfg, tmp_path) -> None:
    runner.on_text("wl-paste", lambda args: ProcessResult(0, "text/plain\n", ""))
    runner.on_text("xclip", lambda args: ProcessResult(0, "TARGETS\nimage/jpeg\n", ""))
    runner.on_bytes("xclip", lambda args: BinaryResult(0, b"\xff\xd8jpeg", ""))
    editor = FakeEditor(document, "")
    probe = StaticProbe(["wl-paste", "xclip"], WAYLAND_ENV)

    outcome = make_pipeline(editor, cfg, probe, tmp_path).run()

    assert outcome.handler == "linux-jpg"
    assert outcome.used_type == "x11/image/jpeg"


def test_backend_preference_order(runner, document, tmp_path) -> None:
    wayland_clipboard(runner, {"image/png": PNG})
    runner.on_text("xclip", lambda args: ProcessResult(0, "image/png\n", ""))
    runner.on_bytes("xclip", lambda args: BinaryResult(0, PNG, ""))
    cfg = Config(defaults=DefaultsConfig(prefer_backend="x11"))
    editor = FakeEditor(document, "")

    outcome = make_pipeline(editor, cfg, StaticProbe(["wl-paste", "xclip"], WAYLAND_ENV), tmp_path).run()

    assert outcome.used_type == "x11/image/png"
    assert outcome.path == document.parent / "image.png"


def test_nothing_usable_defaults_to_paste_quietly(runner, document, cfg, tmp_path) -> None:
    runner.on_text("wl-paste", lambda args: ProcessResult(1, "", "Nothing is copied"))
    editor = FakeEditor(document, "")

    assert make_pipeline(editor, cfg, StaticProbe(["wl-paste"], WAYLAND_ENV), tmp_path).run() is None
    assert editor.default_pastes == 1
    assert editor.errors == []
    assert editor.inserted == []


def test_total_failure_reports_last_error_then_default_paste(runner, document, cfg, tmp_path) -> None:
    runner.on_text("wl-paste", lambda args: ProcessResult(0, "image/png\n", ""))
    runner.on_bytes("wl-paste", lambda args: BinaryResult(-1, b"", "\n[TIMEOUT 6s]"))
    editor = FakeEditor(document, "")

    assert make_pipeline(editor, cfg, StaticProbe(["wl-paste"], WAYLAND_ENV), tmp_path).run() is None
    assert editor.default_pastes == 1
    assert len(editor.errors) == 1
    assert "TIMEOUT 6s" in editor.errors[0]
    assert editor.inserted == []
    assert not (document.parent / "img").exists()


def test_non_markdown_document_uses_default_paste(runner, tmp_path, cfg) -> None:
    editor = FakeEditor(tmp_path / "script.py", "")
    assert make_pipeline(editor, cfg, StaticProbe(), tmp_path).run() is None
    assert editor.default_pastes == 1
    assert runner.calls == []


def test_markdown_mirrored_to_clipboard(runner, document, tmp_path) -> None:
    wayland_clipboard(runner, {"image/png": PNG})
    cfg = Config(defaults=DefaultsConfig(alt_text="plot", copy_markdown_to_clipboard=True))
    editor = FakeEditor(document, "")

    make_pipeline(editor, cfg, StaticProbe(["wl-paste"], WAYLAND_ENV), tmp_path).run()

    assert editor.inserted == ["![plot](image.png)"]
    assert editor.clipboard_writes == ["![plot](image.png)"]


class TestWindowsBridge:
    @pytest.fixture
    def probe(self) -> StaticProbe:
        return StaticProbe(
            [POWERSHELL_CMD, WSLPATH_CMD, "xclip"], {"WSL_DISTRO_NAME": "Ubuntu"}
        )

    @staticmethod
    def powershell_writes(runner, code: int, suffix: str, payload: bytes) -> None:
        def handler(args: list[str]) -> ProcessResult:
            # Recover the Linux path from the fake wslpath translation.
            for token in args[-1].split("'"):
                if token.startswith("WIN:") and token.endswith(suffix):
                    Path(token.removeprefix("WIN:")).write_bytes(payload)
                    break
            return ProcessResult(code, "", "")

        runner.on_text(WSLPATH_CMD, lambda args: ProcessResult(0, "WIN:" + args[-1] + "\n", ""))
        runner.on_text(POWERSHELL_CMD, handler)

    def test_bridge_svg_wins_before_native(self, runner, document, cfg, tmp_path, probe) -> None:
        self.powershell_writes(runner, 12, ".svg", SVG)
        editor = FakeEditor(document, "")

        outcome = make_pipeline(editor, cfg, probe, tmp_path).run()

        assert outcome.handler == "wsl-svg"
        assert outcome.used_type == "windows/svg"
        assert outcome.path.read_bytes() == SVG
        assert "xclip" not in [c[0] for c in runner.calls]
        # No clipboard mirror under WSL.
        assert editor.clipboard_writes == []

    def test_bridge_emf_is_converted(self, runner, document, cfg, tmp_path, probe) -> None:
        self.powershell_writes(runner, 10, ".emf", b"EMF")

        def fake_conv(args: list[str]) -> ProcessResult:
            Path(args[args.index("-o") + 1]).write_bytes(SVG)
            return ProcessResult(0, "", "")

        runner.on_text(EMF2SVG_CMD, fake_conv)
        probe.commands.add(EMF2SVG_CMD)
        editor = FakeEditor(document, "")

        outcome = make_pipeline(editor, cfg, probe, tmp_path).run()

        assert outcome.handler == "wsl-emf"
        assert outcome.path == document.parent / "img" / f"notes-{TS}.svg"
        assert not any((tmp_path / "scratch").iterdir())

    def test_bridge_failure_falls_through_to_native(self, runner, document, cfg, tmp_path, probe) -> None:
        runner.on_text(WSLPATH_CMD, lambda args: ProcessResult(0, "WIN:" + args[-1] + "\n", ""))
        runner.on_text(POWERSHELL_CMD, lambda args: ProcessResult(1, "", "boom"))
        runner.on_text("xclip", lambda args: ProcessResult(0, "image/png\n", ""))
        runner.on_bytes("xclip", lambda args: BinaryResult(0, PNG, ""))
        editor = FakeEditor(document, "")

        outcome = make_pipeline(editor, cfg, probe, tmp_path).run()

        assert outcome.handler == "linux-png"
        assert editor.errors == []

    def test_unusable_bridge_is_probed_once(self, runner, document, cfg, tmp_path) -> None:
        probe = StaticProbe([WSLPATH_CMD, "xclip"], {"WSL_DISTRO_NAME": "Ubuntu"})
        runner.on_text("xclip", lambda args: ProcessResult(0, "image/png\n", ""))
        runner.on_bytes("xclip", lambda args: BinaryResult(0, PNG, ""))
        editor = FakeEditor(document, "")

        outcome = make_pipeline(editor, cfg, probe, tmp_path).run()

        assert outcome.handler == "linux-png"
        assert probe.lookups.count(POWERSHELL_CMD) == 1
        assert {WSLPATH_CMD, POWERSHELL_CMD}.isdisjoint(c[0] for c in runner.calls)
