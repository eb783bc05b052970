"""Error taxonomy shared by startup, configuration and diagnostics."""
from __future__ import annotations

from pathlib import Path
from typing import Optional


class KratosError(Exception):
    """Base for errors that abort or degrade the service."""


class ConfigCorrupt(KratosError):
    """An existing configuration artifact could not be read or validated."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class IoFailure(KratosError):
    """A configuration or failure-report file could not be created or written."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class ConnectFailure(KratosError):
    """The transport could not log in or its connection ended unexpectedly."""


class DeferredHookFailure(KratosError):
    """The post-ready initialization hook failed."""


__all__ = ["KratosError", "ConfigCorrupt", "IoFailure", "ConnectFailure", "DeferredHookFailure"]
