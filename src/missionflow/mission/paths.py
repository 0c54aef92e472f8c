"""Path Indexer - dotted addresses of action steps.

A path is a list of 1-based integers, one per level of action nesting.
Structural containers are transparent: their children keep numbering at
the enclosing level, so a Sequence or Parallel never adds a path segment
and never restarts the count. Children of an action start a new level.

    [A, seq{B, parallel{C, D}}, E{F}]
      A -> 1   B -> 2   C -> 3   D -> 4   E -> 5   F -> 5.1

Paths are recomputed from scratch on every rebuild and are not stable
across structural edits.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from missionflow.mission.models import Mission, Step


def path_key(path: list[int] | tuple[int, ...]) -> str:
    """Serialize a path as dot-joined digits (e.g. ``"2.1"``)."""
    return ".".join(str(p) for p in path)


def parse_path(raw: Any) -> list[int] | None:
    """Normalize an external path value.

    Accepts a list of positive integers (or integer-valued strings/floats)
    or a dotted string. Anything else, including an empty path, yields None.
    """
    if isinstance(raw, str):
        parts: list[Any] = raw.split(".") if raw else []
    elif isinstance(raw, (list, tuple)):
        parts = list(raw)
    else:
        return None

    result: list[int] = []
    for part in parts:
        if isinstance(part, bool):
            return None
        try:
            number = float(part)
        except (TypeError, ValueError):
            return None
        if not number.is_integer() or number <= 0:
            return None
        result.append(int(number))
    return result or None


@dataclass
class PathIndex:
    """Action step addresses for one tree shape.

    Attributes:
        by_uid: Step uid -> path.
        by_key: Path key -> step.
    """

    by_uid: dict[str, list[int]] = field(default_factory=dict)
    by_key: dict[str, Step] = field(default_factory=dict)

    def path_of(self, step: Step) -> list[int] | None:
        """Return the path of an action step, or None."""
        path = self.by_uid.get(step.uid)
        return list(path) if path is not None else None

    def key_of(self, step: Step) -> str | None:
        """Return the dotted path key of an action step, or None."""
        path = self.by_uid.get(step.uid)
        return path_key(path) if path is not None else None

    def step_at(self, key: str) -> Step | None:
        """Return the action step addressed by a path key."""
        return self.by_key.get(key)

    def __len__(self) -> int:
        return len(self.by_uid)


def compute_step_paths(mission: Mission | None) -> PathIndex:
    """Compute the path of every action step in the mission.

    Args:
        mission: The mission to index (None yields an empty index).

    Returns:
        PathIndex with forward and reverse lookups.
    """
    index = PathIndex()
    if mission is None:
        return index

    def visit(steps: list[Step], prefix: list[int], counter: list[int]) -> None:
        for step in steps:
            if step.is_action:
                counter[0] += 1
                path = [*prefix, counter[0]]
                index.by_uid[step.uid] = path
                index.by_key[path_key(path)] = step
                visit(step.children, path, [0])
            else:
                visit(step.children, prefix, counter)

    visit(mission.steps, [], [0])
    return index


def first_action(step: Step) -> Step | None:
    """Return the first action in a subtree in document order."""
    for candidate in step.walk():
        if candidate.is_action:
            return candidate
    return None


__all__ = [
    "PathIndex",
    "compute_step_paths",
    "first_action",
    "parse_path",
    "path_key",
]
