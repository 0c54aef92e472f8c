"""Exceptions raised at the I/O boundaries of missionflow.

Tree and graph edits never raise for an impossible edit; they return
False and leave the mission untouched.
"""

from __future__ import annotations

from pathlib import Path


class MissionflowError(Exception):
    """Base exception for missionflow errors."""

    pass


class PersistenceError(MissionflowError):
    """Raised when missions cannot be loaded, created, or saved."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        super().__init__(f"{message}: {path}" if path else message)


class ConfigError(MissionflowError):
    """Raised when a configuration file cannot be parsed."""

    pass


__all__ = ["ConfigError", "MissionflowError", "PersistenceError"]
