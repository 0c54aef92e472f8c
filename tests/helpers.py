"""Test helpers for building missions and reading back their shape.

Trees are compared through ``shape()``, a compact nested rendering that
ignores uids and arguments:

    action without children   -> "A"
    action with children      -> ("A", [...])
    sequence / parallel / bp  -> ("seq", [...]) / ("par", [...]) / ("bp", [...])
"""

from __future__ import annotations

from typing import Any

from missionflow.graph.catalog import ArgumentDefinition, StepCatalog, StepDefinition
from missionflow.graph.FlowNode import START_NODE_ID
from missionflow.mission.models import (
    Mission,
    Position,
    Step,
    StepArgument,
    StepKind,
    action,
)
from missionflow.mission.tree import degenerate_containers, duplicate_members

_LABELS = {
    StepKind.SEQUENCE: "seq",
    StepKind.PARALLEL: "par",
    StepKind.BREAKPOINT: "bp",
}


# === Factories ===


def act(name: str, *children: Step, y: float | None = None, **args: Any) -> Step:
    """Action step with string-stored arguments (type str unless a float/bool)."""
    arguments = []
    for arg_name, value in args.items():
        if isinstance(value, bool):
            arguments.append(StepArgument(arg_name, "true" if value else "false", "bool"))
        elif isinstance(value, (int, float)):
            arguments.append(StepArgument(arg_name, str(value), "float"))
        else:
            arguments.append(StepArgument(arg_name, str(value), "str"))
    position = Position(0, y) if y is not None else None
    return action(name, arguments=arguments, children=list(children), position=position)


def mission_of(*steps: Step, name: str = "Test") -> Mission:
    return Mission(name=name, steps=list(steps))


def make_catalog() -> StepCatalog:
    """Catalog with a few typed step definitions."""
    return StepCatalog(
        [
            StepDefinition(
                name="move_to",
                import_path="robot.motion.move_to",
                arguments=[
                    ArgumentDefinition("x", "float", 0),
                    ArgumentDefinition("y", "float", 0),
                ],
            ),
            StepDefinition(
                name="wait",
                import_path="robot.timing.wait",
                arguments=[ArgumentDefinition("seconds", "float", 1)],
            ),
            StepDefinition(
                name="grip",
                import_path="robot.gripper.grip",
                arguments=[
                    ArgumentDefinition("force", "int", 10),
                    ArgumentDefinition("open", "bool", False, optional=True),
                ],
            ),
        ]
    )


# === Shape readers ===


def shape(value: Step | Mission | list[Step]) -> Any:
    """Render a step, step list, or mission as nested labels."""
    if isinstance(value, Mission):
        return [shape(s) for s in value.steps]
    if isinstance(value, list):
        return [shape(s) for s in value]
    if value.is_action:
        if not value.children:
            return value.function_name
        return (value.function_name, [shape(c) for c in value.children])
    return (_LABELS[value.kind], [shape(c) for c in value.children])


def edge_names(nodes, connections) -> set[tuple[str, str]]:
    """Connections as (source text, target text); the start node is "start"."""
    names = {n.id: n.text for n in nodes}
    names[START_NODE_ID] = "start"
    return {(names[c.source_node_id], names[c.target_node_id]) for c in connections}


def assert_tree_invariants(mission: Mission) -> None:
    """No step in two places and no degenerate containers."""
    assert duplicate_members(mission) == []
    assert degenerate_containers(mission) == []


# === Editor helpers ===


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingStore:
    """In-memory MissionStore that records every save."""

    def __init__(self, fail_with: Exception | None = None) -> None:
        self.saved: list[dict[str, Any]] = []
        self.fail_with = fail_with

    def save(self, project_id: str, mission: Mission) -> None:
        from missionflow.mission.serialize import serialize_mission

        if self.fail_with is not None:
            raise self.fail_with
        self.saved.append({"project": project_id, "mission": serialize_mission(mission)})

    def load_all_missions(self, project_id: str) -> list[Mission]:
        return []

    def create_mission(self, project_id: str, name: str) -> Mission:
        return Mission(name=name)


def node_id(session, text: str) -> str:
    """Id of the single canvas node labelled text."""
    matches = [n.id for n in session.nodes if n.text == text]
    assert len(matches) == 1, f"expected one node {text!r}, found {len(matches)}"
    return matches[0]


def connection_id(session, source: str, target: str) -> str:
    """Id of the tree connection between two labelled nodes ("start" allowed)."""
    names = {n.id: n.text for n in session.nodes}
    names[START_NODE_ID] = "start"
    for conn in session.connections:
        if names.get(conn.source_node_id) == source and names.get(conn.target_node_id) == target:
            return conn.id
    raise AssertionError(f"no connection {source} -> {target}")


def history_kinds(session) -> list[str]:
    return [entry.kind for entry in session.history.entries()]
