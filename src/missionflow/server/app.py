"""missionflow.server.app - Flask app factory and REST API routes.

This is a THIN REST wrapper: all logic delegates to the pure handlers
in ``missionflow.server.handlers``, which in turn drive one
EditorSession.

State pattern:
    _state = {"session": session, "store": store, "config": config,
              "start_time": time.time()}
"""

from __future__ import annotations

import time
from typing import Any

from flask import Flask, jsonify, request
from flask_cors import CORS

from missionflow.editor.session import EditorSession
from missionflow.errors import PersistenceError
from missionflow.server import handlers
from missionflow.server.persistence import MissionStore


def _respond(result: dict[str, Any], failure_status: int = 400):
    status_code = 200 if result.get("success") else failure_status
    return jsonify(result), status_code


def create_app(
    session: EditorSession,
    store: MissionStore | None = None,
    config: dict[str, Any] | None = None,
) -> Flask:
    """Create the Flask application with REST API routes.

    Args:
        session: The editor session the routes operate on.
        store: Mission store used to list and open missions.
        config: missionflow configuration dict.

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)
    CORS(app)

    @app.after_request
    def _no_cache(response):
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        return response

    _state: dict[str, Any] = {
        "session": session,
        "store": store,
        "config": config or {},
        "start_time": time.time(),
    }

    @app.before_request
    def _run_due_edits():
        """Record debounced edits whose quiet period has elapsed."""
        _state["session"].tick()

    def _body() -> dict[str, Any]:
        data = request.get_json(force=True, silent=True)
        return data if isinstance(data, dict) else {}

    # ─────────────────────────────────────────────────────────────────
    # Read-only GET endpoints
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/status")
    def api_status():
        """GET /api/status - Server and session status."""
        s = _state["session"]
        return jsonify(
            {
                "mission": s.mission.name if s.mission is not None else None,
                "uptime": time.time() - _state["start_time"],
                "can_undo": s.can_undo(),
                "can_redo": s.can_redo(),
                "run_active": s.run_manager.active,
            }
        )

    @app.route("/api/mission")
    def api_mission():
        """GET /api/mission - The open mission in its persisted shape."""
        return _respond(handlers.get_mission(_state["session"]), 404)

    @app.route("/api/graph")
    def api_graph():
        """GET /api/graph - Merged canvas nodes and connections."""
        return _respond(handlers.get_graph(_state["session"]))

    @app.route("/api/history")
    def api_history():
        """GET /api/history - Recorded history entries."""
        return _respond(handlers.get_history(_state["session"]))

    @app.route("/api/missions")
    def api_missions():
        """GET /api/missions?project=<id> - Missions of a project, by order."""
        s = _state["session"]
        project_id = request.args.get("project") or s.project_id
        if _state["store"] is None or not project_id:
            return jsonify({"success": False, "error": "No mission store configured"}), 400
        try:
            missions = _state["store"].load_all_missions(project_id)
        except PersistenceError as e:
            return jsonify({"success": False, "error": str(e)}), 409
        return jsonify(
            {
                "success": True,
                "missions": [
                    {"name": m.name, "order": m.order, "steps": m.step_count()}
                    for m in missions
                ],
            }
        )

    # ─────────────────────────────────────────────────────────────────
    # Mutation endpoints
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/nodes", methods=["POST"])
    def api_create_node():
        """POST /api/nodes - Place an unattached node."""
        data = _body()
        result = handlers.create_node(_state["session"], data.get("step"), data.get("position"))
        return _respond(result)

    @app.route("/api/nodes/<node_id>", methods=["DELETE"])
    def api_delete_node(node_id: str):
        """DELETE /api/nodes/<node_id> - Delete a node."""
        return _respond(handlers.delete_node(_state["session"], node_id), 404)

    @app.route("/api/nodes/<node_id>/move", methods=["POST"])
    def api_move_node(node_id: str):
        """POST /api/nodes/<node_id>/move - Move a node."""
        data = _body()
        return _respond(handlers.move_node(_state["session"], node_id, data.get("position")))

    @app.route("/api/nodes/<node_id>/arguments", methods=["POST"])
    def api_change_argument(node_id: str):
        """POST /api/nodes/<node_id>/arguments - Edit one argument value."""
        data = _body()
        result = handlers.change_argument(
            _state["session"],
            node_id,
            data.get("name", ""),
            data.get("index"),
            data.get("value"),
        )
        return _respond(result)

    @app.route("/api/connections", methods=["POST"])
    def api_add_connection():
        """POST /api/connections - Connect an output port to an input port."""
        data = _body()
        result = handlers.add_connection(
            _state["session"], data.get("output_id", ""), data.get("input_id", "")
        )
        return _respond(result)

    @app.route("/api/split", methods=["POST"])
    def api_split():
        """POST /api/split - Drop a node onto a connection."""
        data = _body()
        result = handlers.split_connection(
            _state["session"], data.get("node_id", ""), data.get("connection_id", "")
        )
        return _respond(result)

    @app.route("/api/breakpoints", methods=["POST", "DELETE"])
    def api_breakpoints():
        """POST/DELETE /api/breakpoints - Add or remove a connection breakpoint."""
        data = _body()
        connection_id = data.get("connection_id", "")
        if not connection_id:
            return jsonify({"success": False, "error": "connection_id required"}), 400
        if request.method == "DELETE":
            return _respond(handlers.remove_breakpoint(_state["session"], connection_id))
        return _respond(handlers.add_breakpoint(_state["session"], connection_id))

    @app.route("/api/undo", methods=["POST"])
    def api_undo():
        """POST /api/undo - Restore the previous snapshot."""
        return _respond(handlers.undo(_state["session"]))

    @app.route("/api/redo", methods=["POST"])
    def api_redo():
        """POST /api/redo - Re-apply the next snapshot."""
        return _respond(handlers.redo(_state["session"]))

    # ─────────────────────────────────────────────────────────────────
    # Persistence endpoints
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/save", methods=["POST"])
    def api_save():
        """POST /api/save - Save the open mission."""
        return _respond(handlers.save(_state["session"]), 409)

    return app
