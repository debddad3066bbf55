"""
X11 clipboard backend (`xclip`).
"""

from __future__ import annotations

import logging

from pastevector.core import T_LIST, T_READ, OfferedType, process
from pastevector.core.probe import CapabilityProbe

from .base import ReadError
from .wayland import parse_type_list

XCLIP_CMD = "xclip"
_SELECTION = ["-selection", "clipboard", "-o", "-t"]


class X11Backend:
    name = "x11"

    def __init__(self, probe: CapabilityProbe) -> None:
        self.probe = probe

    @classmethod
    def is_available(cls, probe: CapabilityProbe) -> bool:
        return probe.command_exists(XCLIP_CMD)

    def list_offered_types(self) -> list[OfferedType]:
        r = process.run_text(XCLIP_CMD, [*_SELECTION, "TARGETS"], T_LIST)
        if not r.ok and not r.stdout.strip():
            logging.debug("xclip TARGETS returned %s: %s", r.code, r.stderr.strip())
        # X11 targets are atoms; no parameters to strip.
        return parse_type_list(r.stdout, split_params=False)

    def read_type(self, raw: str) -> bytes:
        r = process.run_bytes(XCLIP_CMD, [*_SELECTION, raw], T_READ)
        if not r.ok or not r.data:
            raise ReadError(f"Clipboard read failed ({raw}). {r.stderr.strip()}".strip())
        return r.data
