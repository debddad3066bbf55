"""
Conversion routines for pasteVector.

This module provides:
- Passthrough writes (SVG, PNG, JPEG bytes as delivered by the clipboard).
- Gzip decompression for compressed SVG, tolerant of mislabelled input.
- EMF to SVG conversion using the external `emf2svg-conv` tool.
- Detection and decoding of SVG markup pasted as plain text or data URI.

Every routine either leaves a non-empty file at the destination or raises.
"""

from __future__ import annotations

import base64
import binascii
import gzip
import logging
import re
import zlib
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote

from pastevector.core import T_CONVERT, process
from pastevector.core.probe import CapabilityProbe
from pastevector.core.storage import is_nonempty_file, scratch_path, write_bytes

__all__ = [
    "EMF2SVG_CMD",
    "ConversionError",
    "ConversionContext",
    "passthrough",
    "maybe_gunzip",
    "decompress_svg",
    "emf_to_svg",
    "convert_emf",
    "looks_like_svg_text",
    "decode_svg_text",
    "write_svg_text",
]

EMF2SVG_CMD = "emf2svg-conv"
SVG_DATA_URI_PREFIX = "data:image/svg+xml"

_SVG_OPEN = re.compile(r"<svg[\s>]", re.IGNORECASE)
_SVG_CLOSE = re.compile(r"</svg>", re.IGNORECASE)
_BASE64_META = re.compile(r";base64", re.IGNORECASE)


class ConversionError(RuntimeError):
    """Raised when a format cannot be turned into a usable output file."""


@dataclass(slots=True)
class ConversionContext:
    """Collaborators a conversion routine may need."""

    probe: CapabilityProbe
    # Where intermediate files go; None means the system temp directory.
    scratch_dir: Path | None = None


def passthrough(data: bytes, out_path: Path, ctx: ConversionContext | None = None) -> Path:
    return write_bytes(out_path, data)


def maybe_gunzip(data: bytes) -> bytes:
    """
    Decompress a gzip stream, or return `data` unchanged if it is not one.
    """
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        logging.debug("Not a gzip stream (%s); using bytes as-is", e)
        return data


def decompress_svg(data: bytes, out_path: Path, ctx: ConversionContext | None = None) -> Path:
    return write_bytes(out_path, maybe_gunzip(data))


def emf_to_svg(emf_path: Path, svg_path: Path, probe: CapabilityProbe) -> Path:
    """
    Convert an EMF file to SVG with emf2svg-conv.

    Args:
        emf_path: Existing EMF input file.
        svg_path: Destination SVG path (parent directories are created).
        probe: Used to check that emf2svg-conv is on PATH.

    Returns:
        `svg_path`.

    Raises:
        ConversionError: If the tool is missing or produced no output.
    """
    if not probe.command_exists(EMF2SVG_CMD):
        raise ConversionError(f"{EMF2SVG_CMD} not found in PATH.")
    svg_path.parent.mkdir(parents=True, exist_ok=True)

    result = process.run_text(
        EMF2SVG_CMD, ["-i", str(emf_path), "-o", str(svg_path), "-p"], T_CONVERT
    )
    if not is_nonempty_file(svg_path):
        raise ConversionError(f"{EMF2SVG_CMD} produced no output.\n{result.details()}".strip())
    logging.info("Converted %s -> %s", emf_path, svg_path)
    return svg_path


def convert_emf(data: bytes, out_path: Path, ctx: ConversionContext) -> Path:
    """Write EMF bytes to a scratch file, then convert it into `out_path`."""
    tmp_emf = scratch_path(".emf", ctx.scratch_dir)
    tmp_emf.parent.mkdir(parents=True, exist_ok=True)
    tmp_emf.write_bytes(data)
    try:
        return emf_to_svg(tmp_emf, out_path, ctx.probe)
    finally:
        tmp_emf.unlink(missing_ok=True)


def looks_like_svg_text(text: str) -> bool:
    """
    True for SVG markup (opening and closing tag) or an SVG data URI.
    """
    t = text.strip()
    if not t:
        return False
    if t.startswith(SVG_DATA_URI_PREFIX):
        return True
    return bool(_SVG_OPEN.search(t)) and bool(_SVG_CLOSE.search(t))


def decode_svg_text(text: str) -> str:
    """
    Return SVG markup from plain markup or a `data:image/svg+xml` URI.

    Base64 payloads are decoded as UTF-8; anything else is percent-decoded.
    A payload that fails to decode is returned as-is.
    """
    t = text.strip()
    if not t.startswith(SVG_DATA_URI_PREFIX):
        return t

    meta, sep, data = t.partition(",")
    if not sep:
        return t

    if _BASE64_META.search(meta):
        try:
            payload = "".join(data.split())
            # Padding is optional in data URIs.
            payload += "=" * (-len(payload) % 4)
            return base64.b64decode(payload).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            logging.debug("Invalid base64 SVG data URI: %s", e)
            return data
    try:
        return unquote(data, errors="strict")
    except UnicodeDecodeError:
        return data


def write_svg_text(out_path: Path, text: str) -> Path:
    return write_bytes(out_path, decode_svg_text(text).encode("utf-8"))
