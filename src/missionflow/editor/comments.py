"""Comment anchoring between action steps."""

from __future__ import annotations

from typing import Iterable

from missionflow.graph.FlowNode import FlowNode
from missionflow.mission.models import Position
from missionflow.mission.paths import path_key

ORIENTATIONS = ("vertical", "horizontal")


def _axis(position: Position, orientation: str) -> float:
    return position.x if orientation == "horizontal" else position.y


def _key(node: FlowNode) -> str | None:
    return path_key(node.path) if node.path else None


def compute_comment_anchors(
    position: Position, nodes: Iterable[FlowNode], orientation: str = "vertical"
) -> tuple[str | None, str | None]:
    """Find the steps a comment sits between.

    Nodes are sorted along the flow axis (y when vertical, x when
    horizontal). The comment comes after the last node strictly before it
    and before the first node strictly after it.

    Returns:
        (before_path, after_path) path keys; None where there is no
        neighbor or the neighbor has no path.
    """
    if orientation not in ORIENTATIONS:
        raise ValueError(f"Unknown orientation: {orientation}")
    ordered = sorted(nodes, key=lambda n: _axis(n.position, orientation))
    at = _axis(position, orientation)

    before: FlowNode | None = None
    after: FlowNode | None = None
    for node in ordered:
        value = _axis(node.position, orientation)
        if value < at:
            before = node
        elif value > at:
            after = node
            break
    return (
        _key(before) if before is not None else None,
        _key(after) if after is not None else None,
    )


__all__ = ["ORIENTATIONS", "compute_comment_anchors"]
