"""
Backend registry for pasteVector.

This module centralizes clipboard backend discovery so the pipeline (and the
`types` command) can ask for "the usable backends, in preference order"
without knowing about the concrete modules.

Design goals:
- Simple API: register_backend(name, factory) and select_backends(preference, probe)
- Lazy imports: built-in backends are registered with factories that import on demand
- Unusable backends are never returned, so they are never attempted
"""

from __future__ import annotations

from collections.abc import Callable

from pastevector.core import BACKEND_PREFERENCES
from pastevector.core.probe import CapabilityProbe

from .base import BackendError, BridgeError, ClipboardBackend, ReadError

__all__ = [
    "ClipboardBackend",
    "BackendError",
    "ReadError",
    "BridgeError",
    "DEFAULT_ORDER",
    "register_backend",
    "select_backends",
    "register_default_backends",
]

# Factory callable returning a backend instance, or None when unusable on this host.
BackendFactory = Callable[[CapabilityProbe], ClipboardBackend | None]

# Internal registry mapping backend name -> factory
_registry: dict[str, BackendFactory] = {}

# Order used by preference "auto".
DEFAULT_ORDER: tuple[str, ...] = ("wayland", "x11")


def register_backend(name: str, factory: BackendFactory) -> None:
    """
    Register a backend factory by a short, lowercase name.
    If the name already exists, it will be overwritten.
    """
    key = name.strip().lower()
    if not key:
        raise ValueError("Backend name cannot be empty.")
    _registry[key] = factory


def select_backends(preference: str, probe: CapabilityProbe) -> list[ClipboardBackend]:
    """
    Usable backends, the preferred one first.

    Args:
        preference: "auto" (default order) or a backend name to try first.
        probe: Capability probe shared by the whole process.

    Raises:
        ValueError: if `preference` is not a known choice.
    """
    register_default_backends()
    key = preference.strip().lower()
    if key not in BACKEND_PREFERENCES:
        raise ValueError(
            f"Unknown backend preference '{preference}'. "
            f"Choices: {', '.join(BACKEND_PREFERENCES)}"
        )

    order = list(DEFAULT_ORDER)
    if key != "auto":
        order.remove(key)
        order.insert(0, key)

    selected: list[ClipboardBackend] = []
    for name in order:
        backend = _registry[name](probe)
        if backend is not None:
            selected.append(backend)
    return selected


def register_default_backends() -> None:
    """
    Register built-in backends with lazy imports.
    Safe to call multiple times (idempotent).
    """
    if "wayland" not in _registry:

        def _wayland_factory(probe: CapabilityProbe) -> ClipboardBackend | None:
            from .wayland import WaylandBackend

            return WaylandBackend(probe) if WaylandBackend.is_available(probe) else None

        register_backend("wayland", _wayland_factory)

    if "x11" not in _registry:

        def _x11_factory(probe: CapabilityProbe) -> ClipboardBackend | None:
            from .x11 import X11Backend

            return X11Backend(probe) if X11Backend.is_available(probe) else None

        register_backend("x11", _x11_factory)
