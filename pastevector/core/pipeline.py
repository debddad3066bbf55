from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from pastevector.backends import ClipboardBackend, select_backends
from pastevector.backends.windows import BridgeResult, WindowsBridge
from pastevector.core import ConversionOutcome
from pastevector.core.config import Config
from pastevector.core.convert import (
    ConversionContext,
    emf_to_svg,
    looks_like_svg_text,
    write_svg_text,
)
from pastevector.core.formats import HANDLERS, Handler, matching_handlers
from pastevector.core.formatting import markdown_image, relative_posix
from pastevector.core.probe import CapabilityProbe
from pastevector.core.storage import expand_template, is_nonempty_file, scratch_path, unix_time
from pastevector.editor import Editor

__all__ = ["MARKDOWN_SUFFIXES", "AttemptResult", "PastePipeline"]

MARKDOWN_SUFFIXES = frozenset({".md", ".markdown", ".mdown", ".mkd"})

_WHITESPACE = re.compile(r"\s")


@dataclass(slots=True)
class AttemptResult:
    """
    Outcome of one attempt: a produced artifact, an error, or neither
    (nothing applicable, e.g. an empty clipboard).
    """

    outcome: ConversionOutcome | None = None
    error: str | None = None

    @classmethod
    def ok(cls, outcome: ConversionOutcome) -> AttemptResult:
        return cls(outcome=outcome)

    @classmethod
    def skipped(cls) -> AttemptResult:
        return cls()

    @classmethod
    def failed(cls, error: str) -> AttemptResult:
        return cls(error=error)


Attempt = tuple[str, Callable[[], AttemptResult]]


class PastePipeline:
    """
    Turn whatever is on the clipboard into an image file next to the document
    and insert a markdown reference to it.

    Order of attempts:
    - SVG markup pasted as text (or an SVG data URI)
    - plain prose (text containing whitespace) goes to the editor's own paste
    - the Windows clipboard through the WSL bridge
    - native backends (wl-paste / xclip) in preference order
    - nothing usable: the editor's own paste

    A failing attempt is logged and the next one is tried. The markdown is only
    inserted once a non-empty file exists.
    """

    def __init__(
        self,
        editor: Editor,
        cfg: Config,
        probe: CapabilityProbe | None = None,
        handlers: Sequence[Handler] = HANDLERS,
        scratch_dir: Path | None = None,
        timestamp: str | None = None,
    ) -> None:
        self.editor = editor
        self.cfg = cfg
        self.probe = probe or CapabilityProbe()
        self.handlers = handlers
        self.scratch_dir = scratch_dir
        self.timestamp = timestamp or unix_time()
        self._scratch: list[Path] = []

    @property
    def doc_dir(self) -> Path:
        return self.editor.document_path.parent

    def output_path(self, extension: str) -> Path:
        """
        Expand the destination template for `extension`, relative to the document.
        """
        doc = self.editor.document_path
        rel = expand_template(
            self.cfg.defaults.destination_template,
            {
                "documentBaseName": doc.stem,
                "unixTime": self.timestamp,
                "fileExtName": extension,
            },
        )
        return self.doc_dir / rel

    def _scratch_path(self, suffix: str) -> Path:
        path = scratch_path(suffix, self.scratch_dir)
        self._scratch.append(path)
        return path

    # Attempts

    def try_svg_text(self, text: str) -> AttemptResult:
        if not looks_like_svg_text(text):
            return AttemptResult.skipped()
        out = write_svg_text(self.output_path("svg"), text)
        return AttemptResult.ok(ConversionOutcome(out, "text-svg", "text/svg"))

    def try_windows_bridge(self) -> AttemptResult:
        svg_path = self.output_path("svg")
        bridge = WindowsBridge(self.probe)
        export = bridge.export(svg_path, self.output_path("png"), self._scratch_path(".emf"))
        if export is None:
            return AttemptResult.skipped()

        if export.result is BridgeResult.METAFILE_WRITTEN:
            emf_to_svg(export.path, svg_path, self.probe)
            return AttemptResult.ok(ConversionOutcome(svg_path, "wsl-emf", "windows/emf"))
        return AttemptResult.ok(
            ConversionOutcome(export.path, f"wsl-{export.kind}", f"windows/{export.kind}")
        )

    def try_backend(self, backend: ClipboardBackend) -> AttemptResult:
        """
        List offered types, then walk matching handlers by priority until one
        produces a file.
        """
        offered = backend.list_offered_types()
        logging.debug("backend=%s offered=%s", backend.name, [t.base for t in offered])

        ctx = ConversionContext(probe=self.probe, scratch_dir=self.scratch_dir)
        error: str | None = None
        for handler, offered_type in matching_handlers(offered, self.handlers):
            try:
                data = backend.read_type(offered_type.raw)
                out = handler.convert(data, self.output_path(handler.extension), ctx)
                if not is_nonempty_file(out):
                    raise RuntimeError(f"Linux handler {handler.name} produced empty output.")
            except Exception as e:
                error = f"{handler.name} ({offered_type.base}): {e}"
                logging.warning("warn %s/%s failed: %s", backend.name, handler.name, e)
                continue
            return AttemptResult.ok(
                ConversionOutcome(out, f"linux-{handler.name}", f"{backend.name}/{offered_type.base}")
            )

        if error:
            return AttemptResult.failed(error)
        return AttemptResult.skipped()

    def media_attempts(self) -> list[Attempt]:
        attempts: list[Attempt] = [("wsl export", self.try_windows_bridge)]
        for backend in select_backends(self.cfg.defaults.prefer_backend, self.probe):
            attempts.append((f"{backend.name} clipboard", lambda b=backend: self.try_backend(b)))
        return attempts

    def _fold(self, attempts: list[Attempt], failures: list[str]) -> ConversionOutcome | None:
        for name, attempt in attempts:
            try:
                result = attempt()
            except Exception as e:
                result = AttemptResult.failed(str(e))
            if result.outcome is not None:
                return result.outcome
            if result.error:
                logging.warning("warn %s failed: %s", name, result.error)
                failures.append(f"{name}: {result.error}")
            else:
                logging.debug("%s: nothing usable", name)
        return None

    # Result handling

    def insert_markdown(self, outcome: ConversionOutcome) -> str:
        """
        Insert the image reference and optionally mirror it to the clipboard.

        Returns:
            The document-relative path used in the snippet.
        """
        rel = relative_posix(self.doc_dir, outcome.path)
        md = markdown_image(rel, self.cfg.defaults.alt_text)
        self.editor.insert_text(md)
        # Clipboard writes through WSL are slow; skip them there.
        if self.cfg.defaults.copy_markdown_to_clipboard and not self.probe.is_wsl():
            try:
                self.editor.write_clipboard_text(md)
            except Exception as e:
                logging.warning("Failed to copy markdown to clipboard: %s", e)
        return rel

    def clean(self) -> None:
        """Remove scratch files left by this run."""
        for path in self._scratch:
            if path.exists():
                path.unlink()
                logging.debug("Deleted scratch file: %s", path)
        self._scratch.clear()

    def _read_text(self) -> str:
        try:
            return self.editor.read_clipboard_text() or ""
        except Exception as e:
            logging.warning("Failed to read clipboard text: %s", e)
            return ""

    def run(self) -> ConversionOutcome | None:
        """
        Execute one paste.

        Returns:
            The produced artifact, or None when the editor's default paste was
            used instead.
        """
        if self.editor.document_path.suffix.lower() not in MARKDOWN_SUFFIXES:
            logging.debug("Not a markdown document; using default paste")
            self.editor.default_paste()
            return None

        text = self._read_text().strip()
        failures: list[str] = []
        try:
            outcome = self._fold([("svg-text", lambda: self.try_svg_text(text))], failures)

            # Prose goes to the regular paste. A single token (e.g. a SMILES
            # string next to a ChemDraw picture) does not.
            if outcome is None and text and _WHITESPACE.search(text):
                self.editor.default_paste()
                return None

            if outcome is None:
                outcome = self._fold(self.media_attempts(), failures)
        finally:
            self.clean()

        if outcome is None:
            if failures:
                self.editor.show_error(f"pasteVector: no clipboard image pasted ({failures[-1]})")
            self.editor.default_paste()
            return None

        rel = self.insert_markdown(outcome)
        logging.info("ok handler=%s type=%s -> %s", outcome.handler, outcome.used_type, rel)
        return outcome
