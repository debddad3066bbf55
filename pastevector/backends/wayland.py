"""
Wayland clipboard backend (wl-clipboard's `wl-paste`).
"""

from __future__ import annotations

import logging

from pastevector.core import T_LIST, T_READ, OfferedType, process
from pastevector.core.probe import CapabilityProbe

from .base import ReadError

WL_PASTE_CMD = "wl-paste"


def parse_type_list(output: str, split_params: bool) -> list[OfferedType]:
    """
    Parse one-type-per-line tool output.

    Args:
        output: Raw stdout of the listing command.
        split_params: Strip MIME parameters (`;charset=...`) from the base.
    """
    offered: list[OfferedType] = []
    for line in output.splitlines():
        raw = line.strip()
        if not raw:
            continue
        base = raw.split(";", 1)[0].strip() if split_params else raw
        offered.append(OfferedType(raw=raw, base=base))
    return offered


class WaylandBackend:
    name = "wayland"

    def __init__(self, probe: CapabilityProbe) -> None:
        self.probe = probe

    @classmethod
    def is_available(cls, probe: CapabilityProbe) -> bool:
        return probe.has_env("WAYLAND_DISPLAY") and probe.command_exists(WL_PASTE_CMD)

    def list_offered_types(self) -> list[OfferedType]:
        r = process.run_text(WL_PASTE_CMD, ["--list-types"], T_LIST)
        if not r.ok and not r.stdout.strip():
            logging.debug("wl-paste --list-types returned %s: %s", r.code, r.stderr.strip())
        return parse_type_list(r.stdout, split_params=True)

    def read_type(self, raw: str) -> bytes:
        r = process.run_bytes(WL_PASTE_CMD, ["-t", raw], T_READ)
        if not r.ok or not r.data:
            raise ReadError(f"Clipboard read failed ({raw}). {r.stderr.strip()}".strip())
        return r.data
