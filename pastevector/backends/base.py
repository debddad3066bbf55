"""
Base backend interface for pasteVector.

This module defines:
- ClipboardBackend: a Protocol for the native list-then-read clipboard tools
- BackendError: a generic exception for backend failures
- ReadError / BridgeError: the specific failures the orchestrator reports

Native backends (wl-paste, xclip) implement `ClipboardBackend`. The Windows
bridge does not: it exports in a single call (see `windows.py`).
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pastevector.core import OfferedType
from pastevector.core.probe import CapabilityProbe


class BackendError(RuntimeError):
    """
    Generic backend exception to represent handled clipboard access failures.
    """


class ReadError(BackendError):
    """A format that was advertised could not be read (non-zero exit or no bytes)."""


class BridgeError(BackendError):
    """The Windows clipboard script failed in an unexpected way."""


@runtime_checkable
class ClipboardBackend(Protocol):
    """
    Clipboard access mechanism with a two-phase list/read protocol.

    Required attributes:
        name: A short, lowercase identifier (e.g. "wayland").

    Required methods:
        is_available: Whether the mechanism can be used on this host.
        list_offered_types: Formats currently advertised. An empty clipboard
            or a failing listing yields an empty list, not an error.
        read_type: Bytes for one advertised format.
    """

    name: str

    @classmethod
    def is_available(cls, probe: CapabilityProbe) -> bool: ...

    def list_offered_types(self) -> list[OfferedType]: ...

    def read_type(self, raw: str) -> bytes:
        """
        Raises:
            ReadError: If the tool exits non-zero or returns zero bytes.
        """
        ...
