"""Mission Serialization - Convert missions to and from the persisted shape.

Persisted mission:
    {name, is_setup, is_shutdown, order, steps: Step[], comments: Comment[]}

Persisted step:
    {step_type, function_name, arguments: [{name, value, type}],
     position?, children: Step[]}

Structural steps use the reserved marker ("seq", "parallel", "breakpoint")
in both ``step_type`` and ``function_name``.
"""

from __future__ import annotations

import logging
from typing import Any

from missionflow.mission.models import (
    Mission,
    MissionComment,
    Position,
    Step,
    StepArgument,
    StepKind,
    sequence,
)

logger = logging.getLogger(__name__)

UID_KEY = "_uid"


def _position_to_dict(position: Position) -> dict[str, float]:
    return {"x": position.x, "y": position.y}


def _position_from_dict(data: Any) -> Position | None:
    if not isinstance(data, dict):
        return None
    return Position(x=data.get("x", 0) or 0, y=data.get("y", 0) or 0)


def serialize_step(step: Step, include_uid: bool = False) -> dict[str, Any]:
    """Serialize a Step subtree to a JSON-compatible dict.

    Args:
        step: The step to serialize.
        include_uid: Also emit the in-memory identity (used for
            lossless cloning, never for persisted files).

    Returns:
        Dict in the persisted step shape.
    """
    if step.is_structural:
        step_type = step.kind.value
        function_name = step.kind.value
    else:
        step_type = step.step_type
        function_name = step.function_name

    result: dict[str, Any] = {
        "step_type": step_type,
        "function_name": function_name,
        "arguments": [
            {"name": arg.name, "value": arg.value, "type": arg.type} for arg in step.arguments
        ],
        "children": [serialize_step(ch, include_uid) for ch in step.children],
    }
    if step.position is not None:
        result["position"] = _position_to_dict(step.position)
    if include_uid:
        result[UID_KEY] = step.uid
    return result


def deserialize_step(data: dict[str, Any]) -> Step | None:
    """Build a Step subtree from its persisted dict.

    A breakpoint without children is dropped (returns None); one with
    several children keeps them wrapped in a sequence so that it still
    has exactly one child.
    """
    kind = StepKind.detect(data.get("step_type"), data.get("function_name"))
    children = deserialize_steps(data.get("children") or [])

    if kind is StepKind.BREAKPOINT:
        if not children:
            logger.debug("Dropping breakpoint without children")
            return None
        if len(children) > 1:
            children = [sequence(children)]

    arguments = [
        StepArgument(
            name=str(arg.get("name") or ""),
            value=arg.get("value", ""),
            type=str(arg.get("type") or "str"),
        )
        for arg in (data.get("arguments") or [])
        if isinstance(arg, dict)
    ]

    step = Step(
        kind=kind,
        function_name=kind.value if kind.is_structural else str(data.get("function_name") or ""),
        arguments=arguments if kind is StepKind.ACTION else [],
        position=_position_from_dict(data.get("position")),
        children=children,
        step_type=kind.value if kind.is_structural else str(data.get("step_type") or ""),
    )
    uid = data.get(UID_KEY)
    if uid:
        step.uid = str(uid)
    return step


def deserialize_steps(items: list[Any]) -> list[Step]:
    """Deserialize a list of persisted steps, skipping invalid entries."""
    steps: list[Step] = []
    for item in items:
        if not isinstance(item, dict):
            logger.debug("Skipping malformed step entry %r", item)
            continue
        step = deserialize_step(item)
        if step is not None:
            steps.append(step)
    return steps


def serialize_comment(comment: MissionComment) -> dict[str, Any]:
    """Serialize a comment to its persisted dict."""
    return {
        "id": comment.id,
        "text": comment.text,
        "position": _position_to_dict(comment.position),
        "before_path": comment.before_path,
        "after_path": comment.after_path,
    }


def deserialize_comment(data: dict[str, Any]) -> MissionComment:
    """Build a comment from its persisted dict."""
    return MissionComment(
        id=str(data.get("id") or ""),
        text=str(data.get("text") or ""),
        position=_position_from_dict(data.get("position")) or Position(),
        before_path=data.get("before_path"),
        after_path=data.get("after_path"),
    )


def serialize_mission(mission: Mission, include_uids: bool = False) -> dict[str, Any]:
    """Serialize a Mission to the persisted dict shape.

    Args:
        mission: The mission to serialize.
        include_uids: Emit step identities for lossless cloning.

    Returns:
        Dict suitable for JSON serialization.
    """
    result: dict[str, Any] = {
        "name": mission.name,
        "is_setup": mission.is_setup,
        "is_shutdown": mission.is_shutdown,
        "order": mission.order,
        "steps": [serialize_step(s, include_uids) for s in mission.steps],
        "comments": [serialize_comment(c) for c in mission.comments],
    }
    if mission.uuid:
        result["uuid"] = mission.uuid
    return result


def deserialize_mission(data: dict[str, Any]) -> Mission:
    """Build a Mission from its persisted dict.

    Raises:
        ValueError: If the payload is not a mission object.
    """
    if not isinstance(data, dict):
        raise ValueError("Mission payload must be an object")
    return Mission(
        name=str(data.get("name") or ""),
        is_setup=bool(data.get("is_setup", False)),
        is_shutdown=bool(data.get("is_shutdown", False)),
        order=int(data.get("order") or 0),
        steps=deserialize_steps(data.get("steps") or []),
        comments=[
            deserialize_comment(c) for c in (data.get("comments") or []) if isinstance(c, dict)
        ],
        uuid=data.get("uuid"),
    )


def to_outline(mission: Mission) -> str:
    """Render the step tree as an indented outline.

    Containers are shown as ``[seq]``/``[parallel]``/``[breakpoint]``.
    """
    lines = [f"# {mission.name}"]

    def visit(steps: list[Step], depth: int) -> None:
        for step in steps:
            label = f"[{step.kind.value}]" if step.is_structural else step.function_name
            lines.append(f"{'  ' * depth}- {label}")
            visit(step.children, depth + 1)

    visit(mission.steps, 0)
    return "\n".join(lines)


__all__ = [
    "deserialize_comment",
    "deserialize_mission",
    "deserialize_step",
    "deserialize_steps",
    "serialize_comment",
    "serialize_mission",
    "serialize_step",
    "to_outline",
]
