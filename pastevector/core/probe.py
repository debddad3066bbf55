"""
Capability probe: which clipboard tools can actually be used on this host.

One probe is created per process and handed to everything that needs to know
whether a command exists. Lookups are cached for the life of the probe; tool
availability is not expected to change during a session.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Mapping

__all__ = ["CapabilityProbe"]


class CapabilityProbe:
    """
    Cached command lookups plus environment marker checks.

    Args:
        environ: Environment mapping to inspect (defaults to os.environ).
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self.environ: Mapping[str, str] = os.environ if environ is None else environ
        self._commands: dict[str, bool] = {}

    def command_exists(self, name: str) -> bool:
        cached = self._commands.get(name)
        if cached is not None:
            return cached
        found = shutil.which(name) is not None
        self._commands[name] = found
        logging.debug("Command %s %s", name, "found" if found else "not found")
        return found

    def has_env(self, name: str) -> bool:
        return bool(self.environ.get(name))

    def is_wsl(self) -> bool:
        """True when running inside the Windows Subsystem for Linux."""
        return self.has_env("WSL_DISTRO_NAME") or self.has_env("WSL_INTEROP")
