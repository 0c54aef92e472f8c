"""
missionflow.commands.mission_file - Read and write standalone mission files.
"""

from __future__ import annotations

import json
from pathlib import Path

from missionflow.errors import PersistenceError
from missionflow.graph.catalog import StepCatalog
from missionflow.mission.models import Mission
from missionflow.mission.serialize import deserialize_mission, serialize_mission
from missionflow.server.persistence import _atomic_write_json


def read_mission(path: Path) -> Mission:
    """Load a mission JSON file.

    Raises:
        PersistenceError: If the file is missing or not a mission.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return deserialize_mission(data)
    except (OSError, ValueError) as e:
        raise PersistenceError(f"Cannot read mission ({e})", Path(path)) from e


def write_mission(path: Path, mission: Mission) -> None:
    try:
        _atomic_write_json(Path(path), serialize_mission(mission))
    except OSError as e:
        raise PersistenceError(f"Cannot write mission ({e})", Path(path)) from e


def read_catalog(path: Path | None) -> StepCatalog:
    """Load a step catalog from a JSON list of step definitions.

    None gives an empty catalog.
    """
    if path is None:
        return StepCatalog()
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise PersistenceError(f"Cannot read step catalog ({e})", Path(path)) from e
    if isinstance(data, dict):
        data = data.get("steps", [])
    if not isinstance(data, list):
        raise PersistenceError("Step catalog must be a list of steps", Path(path))
    return StepCatalog.from_list(data)
