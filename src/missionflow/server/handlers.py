"""missionflow.server.handlers - Pure request handlers over an EditorSession.

Each handler validates its parameters, delegates to the session, and
returns a JSON-compatible envelope: ``{"success": True, ...}`` on success
or ``{"success": False, "error": ...}`` when nothing was changed. The
Flask routes only translate envelopes into responses.
"""

from __future__ import annotations

from typing import Any

from missionflow.editor.history import HistoryEntry
from missionflow.editor.session import EditorSession
from missionflow.graph.serialize import serialize_node, serialize_view
from missionflow.mission.models import Position
from missionflow.mission.paths import compute_step_paths
from missionflow.mission.serialize import serialize_mission


def _position(data: Any) -> Position | None:
    if not isinstance(data, dict):
        return None
    try:
        return Position(float(data.get("x", 0)), float(data.get("y", 0)))
    except (TypeError, ValueError):
        return None


def _state(session: EditorSession) -> dict[str, Any]:
    return {
        "can_undo": session.can_undo(),
        "can_redo": session.can_redo(),
        "notifications": list(session.notifications),
    }


def _result(session: EditorSession, ok: bool, error: str) -> dict[str, Any]:
    if not ok:
        return {"success": False, "error": error}
    return {"success": True, **_state(session), "graph": serialize_view(session.merged)}


def _serialize_history_entry(entry: HistoryEntry, current: bool) -> dict[str, Any]:
    return {
        "id": entry.id,
        "kind": entry.kind,
        "timestamp": entry.timestamp.isoformat(),
        "current": current,
    }


def get_mission(session: EditorSession) -> dict[str, Any]:
    """Current mission in its persisted shape, with action paths."""
    if session.mission is None:
        return {"success": False, "error": "No mission is open"}
    paths = compute_step_paths(session.mission)
    return {
        "success": True,
        "mission": serialize_mission(session.mission),
        "paths": {
            paths.key_of(step): step.function_name
            for step in session.mission.iter_actions()
            if paths.key_of(step) is not None
        },
    }


def get_graph(session: EditorSession) -> dict[str, Any]:
    """The merged canvas graph (tree projection plus unattached work)."""
    return {"success": True, **_state(session), "graph": serialize_view(session.merged)}


def get_history(session: EditorSession) -> dict[str, Any]:
    """Recorded history entries, oldest first."""
    cursor = session.history.stack.cursor
    return {
        "success": True,
        "entries": [
            _serialize_history_entry(entry, idx == cursor)
            for idx, entry in enumerate(session.history.entries())
        ],
        **_state(session),
    }


def create_node(
    session: EditorSession, step_name: str | None, position: Any = None
) -> dict[str, Any]:
    """Place a new unattached node for a catalog step."""
    definition = None
    if step_name:
        definition = session.catalog.lookup(step_name)
        if definition is None:
            return {"success": False, "error": f"Unknown step: {step_name}"}
    node = session.create_node(definition, _position(position))
    result = _result(session, True, "")
    result["node"] = serialize_node(node)
    return result


def add_connection(session: EditorSession, output_id: str, input_id: str) -> dict[str, Any]:
    """Connect an output port to an input port."""
    if not output_id or not input_id:
        return {"success": False, "error": "output_id and input_id required"}
    ok = session.add_connection(output_id, input_id)
    return _result(session, ok, f"Cannot connect {output_id} to {input_id}")


def split_connection(session: EditorSession, node_id: str, connection_id: str) -> dict[str, Any]:
    """Drop a node onto a connection."""
    if not node_id or not connection_id:
        return {"success": False, "error": "node_id and connection_id required"}
    ok = session.split_connection(node_id, connection_id)
    return _result(session, ok, f"Cannot insert {node_id} into connection {connection_id}")


def delete_node(session: EditorSession, node_id: str) -> dict[str, Any]:
    ok = session.delete_node(node_id)
    return _result(session, ok, f"Node not found: {node_id}")


def move_node(session: EditorSession, node_id: str, position: Any) -> dict[str, Any]:
    pos = _position(position)
    if pos is None:
        return {"success": False, "error": "position with x and y required"}
    ok = session.move_node(node_id, pos)
    return _result(session, ok, f"Node not found: {node_id}")


def change_argument(
    session: EditorSession, node_id: str, name: str, index: Any, value: Any
) -> dict[str, Any]:
    """Edit one argument value of a node."""
    try:
        idx = int(index) if index is not None else -1
    except (TypeError, ValueError):
        return {"success": False, "error": "index must be an integer"}
    if session.find_node(node_id) is None:
        return {"success": False, "error": f"Node not found: {node_id}"}
    changed = session.change_argument(node_id, name or "", idx, value)
    result = _result(session, True, "")
    result["changed"] = changed
    return result


def add_breakpoint(session: EditorSession, connection_id: str) -> dict[str, Any]:
    ok = session.add_breakpoint(connection_id)
    return _result(session, ok, f"Cannot add a breakpoint on {connection_id}")


def remove_breakpoint(session: EditorSession, connection_id: str) -> dict[str, Any]:
    ok = session.remove_breakpoint(connection_id)
    return _result(session, ok, f"No breakpoint on {connection_id}")


def undo(session: EditorSession) -> dict[str, Any]:
    return _result(session, session.undo(), "Nothing to undo")


def redo(session: EditorSession) -> dict[str, Any]:
    return _result(session, session.redo(), "Nothing to redo")


def save(session: EditorSession) -> dict[str, Any]:
    """Settle pending edits and save the mission."""
    if session.mission is None:
        return {"success": False, "error": "No mission is open"}
    session.settle()
    if not session.save():
        error = session.notifications[-1] if session.notifications else "Save not configured"
        return {"success": False, "error": error}
    return {"success": True, "message": f"Saved mission {session.mission.name!r}"}


__all__ = [
    "add_breakpoint",
    "add_connection",
    "change_argument",
    "create_node",
    "delete_node",
    "get_graph",
    "get_history",
    "get_mission",
    "move_node",
    "redo",
    "remove_breakpoint",
    "save",
    "split_connection",
    "undo",
]
