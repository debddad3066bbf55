"""
Core package for clipboard negotiation, conversion, configuration, and storage.

This module provides the shared types and constants that the other modules
(process, probe, formats, convert, pipeline) and the backends import.

Submodules:
- process.py: subprocess execution with wall-clock timeouts
- probe.py: command/environment capability checks (cached)
- formats.py: ordered handler registry (vector before raster)
- convert.py: passthrough, gunzip, EMF -> SVG, inline SVG text decoding
- storage.py: verified writes and destination template expansion
- pipeline.py: the paste orchestrator
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final

# Subprocess timeouts (seconds), per operation class.
T_LIST: Final[float] = 1.2
T_READ: Final[float] = 6.0
T_CONVERT: Final[float] = 45.0
T_WINCLIP: Final[float] = 12.0

BACKEND_PREFERENCES: tuple[str, ...] = ("auto", "wayland", "x11")


@dataclass(frozen=True, slots=True)
class OfferedType:
    """A clipboard format as advertised by a backend."""

    raw: str
    # Canonical identifier used for matching (parameters stripped).
    base: str


@dataclass(frozen=True, slots=True)
class ConversionOutcome:
    """Result of a successful paste: where the artifact lives and how it was made."""

    path: Path
    handler: str
    used_type: str


__all__ = [
    "T_LIST",
    "T_READ",
    "T_CONVERT",
    "T_WINCLIP",
    "BACKEND_PREFERENCES",
    "OfferedType",
    "ConversionOutcome",
]
