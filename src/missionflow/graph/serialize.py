"""Graph Serialization - Export projected nodes and connections.

This module provides functions to serialize the canvas graph to
JSON-compatible dicts for the REST surface and the CLI.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from missionflow.graph.FlowNode import START_NODE_ID, START_OUTPUT_ID
from missionflow.mission.paths import path_key

if TYPE_CHECKING:
    from missionflow.graph.FlowNode import Connection, FlowNode
    from missionflow.graph.pool import MergedView


def serialize_node(node: FlowNode) -> dict[str, Any]:
    """Serialize a FlowNode to a JSON-compatible dict.

    Args:
        node: The node to serialize.

    Returns:
        Dict suitable for JSON serialization.
    """
    result: dict[str, Any] = {
        "id": node.id,
        "kind": node.kind.value,
        "text": node.text,
        "position": {"x": node.position.x, "y": node.position.y},
        "args": dict(node.args),
    }
    if node.definition is not None:
        result["step"] = node.definition.to_dict()
    if node.path is not None:
        result["path"] = list(node.path)
        result["path_key"] = path_key(node.path)
    return result


def serialize_connection(conn: Connection) -> dict[str, Any]:
    """Serialize a Connection to a JSON-compatible dict."""
    result: dict[str, Any] = {
        "id": conn.id,
        "output_id": conn.output_id,
        "input_id": conn.input_id,
        "source_node_id": conn.source_node_id,
        "target_node_id": conn.target_node_id,
    }
    if conn.target_path_key is not None:
        result["target_path_key"] = conn.target_path_key
    if conn.has_breakpoint:
        result["has_breakpoint"] = True
        result["breakpoint_path_key"] = conn.breakpoint_path_key
    return result


def serialize_view(view: MergedView) -> dict[str, Any]:
    """Serialize the merged canvas graph.

    Returns:
        Dict with the start node ids, nodes, and connections.
    """
    return {
        "start": {"id": START_NODE_ID, "output_id": START_OUTPUT_ID},
        "nodes": [serialize_node(n) for n in view.nodes],
        "connections": [serialize_connection(c) for c in view.connections],
    }


__all__ = ["serialize_connection", "serialize_node", "serialize_view"]
