"""
Format catalog for pasteVector.

Maps clipboard MIME/format identifiers to a conversion routine and an output
extension. The table order *is* the priority order: vector formats (SVG,
compressed SVG, EMF) come before raster formats (PNG, JPEG), and the first
handler with any offered match wins even if a later one matches "better".

Each handler lists the naming variants that different desktop environments and
applications use for the same logical format.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path

from pastevector.core import OfferedType
from pastevector.core.convert import (
    ConversionContext,
    convert_emf,
    decompress_svg,
    passthrough,
)

__all__ = [
    "Converter",
    "Handler",
    "HANDLERS",
    "pick_first",
    "resolve_handler",
    "matching_handlers",
]

# Converter(data, out_path, ctx) -> out_path
Converter = Callable[[bytes, Path, ConversionContext], Path]


@dataclass(frozen=True, slots=True)
class Handler:
    name: str
    extension: str
    bases: tuple[str, ...]
    convert: Converter


HANDLERS: tuple[Handler, ...] = (
    Handler("svg", "svg", ("image/svg+xml", "image/x-inkscape-svg"), passthrough),
    Handler(
        "svgz",
        "svg",
        ("image/svg+xml-compressed", "image/x-inkscape-svg-compressed"),
        decompress_svg,
    ),
    Handler("emf", "svg", ("WCF_ENHMETAFILE", "image/x-emf", "image/emf"), convert_emf),
    Handler("png", "png", ("image/png", "image/x-png"), passthrough),
    Handler("jpg", "jpg", ("image/jpeg",), passthrough),
)


def pick_first(offered: Sequence[OfferedType], bases: Iterable[str]) -> OfferedType | None:
    """
    First offered type whose base equals one of `bases`, trying `bases` in order.
    """
    for base in bases:
        for t in offered:
            if t.base == base:
                return t
    return None


def matching_handlers(
    offered: Sequence[OfferedType], handlers: Sequence[Handler] = HANDLERS
) -> Iterator[tuple[Handler, OfferedType]]:
    """
    Yield every handler that matches an offered type, in priority order.
    """
    for handler in handlers:
        hit = pick_first(offered, handler.bases)
        if hit is not None:
            yield handler, hit


def resolve_handler(
    offered: Sequence[OfferedType], handlers: Sequence[Handler] = HANDLERS
) -> tuple[Handler, OfferedType] | None:
    """
    Highest-priority handler that can consume one of the offered types.
    """
    return next(matching_handlers(offered, handlers), None)
