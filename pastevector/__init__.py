"""
pasteVector package.

CLI tool to paste clipboard vector/raster content into markdown documents
(SVG first, EMF converted to SVG, PNG/JPEG as a fallback).

Expose package version via __version__.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pastevector")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = ["__version__"]
