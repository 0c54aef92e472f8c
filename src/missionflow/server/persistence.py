"""Persistence layer - store missions as JSON files on disk.

Each project is a directory under the store root; each mission is one
JSON file in the persisted mission shape.

Public API
----------
- ``MissionStore`` - the interface the editor saves through
- ``FileMissionStore`` - file-backed implementation
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Protocol

from missionflow.errors import PersistenceError
from missionflow.mission.models import Mission
from missionflow.mission.serialize import deserialize_mission, serialize_mission

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class MissionStore(Protocol):
    """Where missions are loaded from and saved to."""

    def save(self, project_id: str, mission: Mission) -> None: ...

    def load_all_missions(self, project_id: str) -> list[Mission]: ...

    def create_mission(self, project_id: str, name: str) -> Mission: ...


def _atomic_write_json(path: Path, data: Any) -> None:
    """Write JSON through a temp file in the same directory, then replace."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(suffix=".tmp", prefix=path.name + ".", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.write("\n")
        os.replace(tmp_path, path)
    except OSError:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def mission_filename(name: str) -> str:
    """File name for a mission (unsafe characters replaced by ``_``)."""
    slug = _UNSAFE_CHARS.sub("_", name.strip()).strip("._") or "mission"
    return f"{slug}.json"


class FileMissionStore:
    """One JSON file per mission under ``<root>/<project_id>/``.

    Args:
        root: Directory holding one sub-directory per project.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def project_dir(self, project_id: str) -> Path:
        if not project_id or _UNSAFE_CHARS.search(project_id) or project_id in (".", ".."):
            raise PersistenceError(f"Invalid project id {project_id!r}")
        return self.root / project_id

    def mission_path(self, project_id: str, name: str) -> Path:
        return self.project_dir(project_id) / mission_filename(name)

    def _read(self, path: Path) -> Mission:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return deserialize_mission(data)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Cannot read mission ({e})", path) from e

    def load_all_missions(self, project_id: str) -> list[Mission]:
        """Load every mission of a project, sorted by order.

        Raises:
            PersistenceError: If a mission file cannot be parsed.
        """
        directory = self.project_dir(project_id)
        if not directory.is_dir():
            return []
        missions = [self._read(p) for p in sorted(directory.glob("*.json"))]
        missions.sort(key=lambda m: m.order)
        return missions

    def load_mission(self, project_id: str, name: str) -> Mission | None:
        path = self.mission_path(project_id, name)
        if not path.is_file():
            return None
        return self._read(path)

    def save(self, project_id: str, mission: Mission) -> None:
        """Write a mission to its file.

        Raises:
            PersistenceError: If the mission has no name or the write fails.
        """
        if not mission.name.strip():
            raise PersistenceError("Mission name cannot be empty")
        path = self.mission_path(project_id, mission.name)
        if path.is_file():
            existing = self._read(path)
            if existing.name != mission.name:
                raise PersistenceError(
                    f"Mission {mission.name!r} collides with {existing.name!r}", path
                )
        try:
            _atomic_write_json(path, serialize_mission(mission))
        except OSError as e:
            raise PersistenceError(f"Cannot write mission ({e})", path) from e
        logger.debug("Saved mission %r to %s", mission.name, path)

    def create_mission(self, project_id: str, name: str) -> Mission:
        """Create an empty mission at the end of the project's order.

        Raises:
            PersistenceError: If the name is empty or already taken.
        """
        name = name.strip()
        if not name:
            raise PersistenceError("Mission name cannot be empty")
        missions = self.load_all_missions(project_id)
        if any(m.name == name for m in missions):
            raise PersistenceError(f"Mission {name!r} already exists")
        mission = Mission(name=name, order=max((m.order for m in missions), default=0) + 1)
        self.save(project_id, mission)
        return mission

    def reorder_missions(self, project_id: str, names: list[str]) -> list[Mission]:
        """Renumber missions from 1 in the given order.

        Missions not named keep their relative order after the named ones.

        Returns:
            The missions in their new order.
        """
        missions = self.load_all_missions(project_id)
        by_name = {m.name: m for m in missions}
        ordered = [by_name[n] for n in names if n in by_name]
        ordered.extend(m for m in missions if m.name not in names)
        for idx, mission in enumerate(ordered, start=1):
            mission.order = idx
            self.save(project_id, mission)
        return ordered


__all__ = ["FileMissionStore", "MissionStore", "mission_filename"]
