"""Tests for the Flask editor REST API."""

import pytest

from missionflow.editor.session import EditorSession
from missionflow.errors import PersistenceError
from missionflow.graph.FlowNode import START_OUTPUT_ID
from missionflow.server.app import create_app
from missionflow.server.persistence import FileMissionStore
from tests.helpers import RecordingStore, act, connection_id, mission_of, node_id, shape

# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def client(session, store):
    """Test client over the shared [A, B] session."""
    app = create_app(session, store, {})
    app.config["TESTING"] = True
    return app.test_client()


def _create(client, step="wait", position=None):
    resp = client.post("/api/nodes", json={"step": step, "position": position or {"x": 0, "y": 0}})
    assert resp.status_code == 200
    return resp.get_json()["node"]


# ─────────────────────────────────────────────────────────────────────────────
# Read-only endpoints
# ─────────────────────────────────────────────────────────────────────────────


class TestReadEndpoints:
    """Tests for the GET endpoints."""

    def test_status(self, client):
        data = client.get("/api/status").get_json()
        assert data["mission"] == "Test"
        assert data["can_undo"] is False
        assert data["run_active"] is False

    def test_mission(self, client):
        data = client.get("/api/mission").get_json()
        assert data["success"] is True
        assert data["mission"]["name"] == "Test"
        assert data["paths"] == {"1": "A", "2": "B"}

    def test_mission_not_open(self, catalog):
        client = create_app(EditorSession(catalog)).test_client()
        resp = client.get("/api/mission")
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "No mission is open"

    def test_graph(self, client):
        graph = client.get("/api/graph").get_json()["graph"]
        assert [n["text"] for n in graph["nodes"]] == ["A", "B"]
        assert len(graph["connections"]) == 2
        assert graph["start"]["output_id"] == START_OUTPUT_ID

    def test_history(self, client):
        _create(client)
        entries = client.get("/api/history").get_json()["entries"]
        assert [(e["kind"], e["current"]) for e in entries] == [
            ("initial", False),
            ("create-node", True),
        ]

    def test_no_cache_header(self, client):
        resp = client.get("/api/status")
        assert "no-store" in resp.headers["Cache-Control"]


class TestMissionList:
    """Tests for GET /api/missions."""

    def test_lists_project_missions(self, session, tmp_path):
        file_store = FileMissionStore(tmp_path)
        file_store.create_mission("lab", "Setup")
        file_store.save("lab", mission_of(act("A"), name="Main"))
        client = create_app(session, file_store).test_client()

        data = client.get("/api/missions?project=lab").get_json()

        assert data["success"] is True
        assert [(m["name"], m["steps"]) for m in data["missions"]] == [("Main", 1), ("Setup", 0)]

    def test_without_store(self, session):
        client = create_app(session).test_client()
        assert client.get("/api/missions").status_code == 400

    def test_store_failure_returns_error_envelope(self, session):
        class UnreadableStore(RecordingStore):
            def load_all_missions(self, project_id):
                raise PersistenceError("missions directory unreadable")

        client = create_app(session, UnreadableStore()).test_client()
        resp = client.get("/api/missions?project=lab")
        assert resp.status_code == 409
        assert resp.get_json() == {
            "success": False,
            "error": "missions directory unreadable",
        }


# ─────────────────────────────────────────────────────────────────────────────
# Mutation endpoints
# ─────────────────────────────────────────────────────────────────────────────


class TestNodeEndpoints:
    """Tests for node creation, deletion, moves and arguments."""

    def test_create(self, client, session):
        node = _create(client, position={"x": 5, "y": 6})
        assert node["text"] == "wait"
        assert node["kind"] == "unattached"
        assert node["position"] == {"x": 5.0, "y": 6.0}
        assert session.pool.find_node(node["id"]) is not None

    def test_create_unknown_step(self, client):
        resp = client.post("/api/nodes", json={"step": "fly"})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Unknown step: fly"

    def test_delete(self, client, session):
        resp = client.delete(f"/api/nodes/{node_id(session, 'A')}")
        assert resp.status_code == 200
        assert shape(session.mission) == ["B"]

    def test_delete_missing(self, client):
        assert client.delete("/api/nodes/missing").status_code == 404

    def test_move(self, client, session):
        nid = node_id(session, "B")
        resp = client.post(f"/api/nodes/{nid}/move", json={"position": {"x": 1, "y": 2}})
        assert resp.status_code == 200
        assert resp.get_json()["can_undo"] is True

    def test_move_requires_position(self, client, session):
        resp = client.post(f"/api/nodes/{node_id(session, 'B')}/move", json={})
        assert resp.status_code == 400

    def test_change_argument(self, client, session):
        node = _create(client)
        resp = client.post(
            f"/api/nodes/{node['id']}/arguments",
            json={"name": "seconds", "index": 0, "value": "2.5"},
        )
        assert resp.status_code == 200
        assert resp.get_json()["changed"] is True
        assert session.find_node(node["id"]).args == {"seconds": 2.5}

    def test_change_argument_bad_index(self, client, session):
        resp = client.post(
            f"/api/nodes/{node_id(session, 'A')}/arguments",
            json={"name": "x", "index": "first", "value": 1},
        )
        assert resp.status_code == 400


class TestConnectionEndpoints:
    """Tests for connections, splits and breakpoints."""

    def test_connect_promotes_node(self, client, session):
        node = _create(client)
        b = session.find_node(node_id(session, "B"))
        resp = client.post(
            "/api/connections", json={"output_id": b.output_id, "input_id": f"{node['id']}-input"}
        )
        assert resp.status_code == 200
        assert shape(session.mission) == ["A", ("B", ["wait"])]
        texts = [n["text"] for n in resp.get_json()["graph"]["nodes"]]
        assert texts == ["A", "B", "wait"]

    def test_connect_requires_ports(self, client):
        assert client.post("/api/connections", json={"output_id": "x"}).status_code == 400

    def test_split(self, client, session):
        node = _create(client)
        resp = client.post(
            "/api/split",
            json={"node_id": node["id"], "connection_id": connection_id(session, "A", "B")},
        )
        assert resp.status_code == 200
        assert shape(session.mission) == ["A", "wait", "B"]

    def test_split_refused(self, client, session):
        resp = client.post(
            "/api/split",
            json={"node_id": node_id(session, "A"), "connection_id": "missing"},
        )
        assert resp.status_code == 400
        assert resp.get_json()["success"] is False

    def test_breakpoints(self, client, session):
        resp = client.post(
            "/api/breakpoints", json={"connection_id": connection_id(session, "A", "B")}
        )
        assert resp.status_code == 200
        assert shape(session.mission) == ["A", ("bp", ["B"])]

        resp = client.delete(
            "/api/breakpoints", json={"connection_id": connection_id(session, "A", "B")}
        )
        assert resp.status_code == 200
        assert shape(session.mission) == ["A", "B"]

    def test_breakpoint_requires_connection(self, client):
        assert client.post("/api/breakpoints", json={}).status_code == 400


class TestDebouncedArguments:
    """Argument edits are recorded once their quiet period has passed."""

    def test_recorded_on_next_request_after_quiet_period(self, client, store, clock):
        node = _create(client)
        client.post(
            f"/api/nodes/{node['id']}/arguments",
            json={"name": "seconds", "index": 0, "value": 3},
        )
        entries = client.get("/api/history").get_json()["entries"]
        assert entries[-1]["kind"] == "create-node"
        assert store.saved == []

        clock.advance(1.0)
        entries = client.get("/api/history").get_json()["entries"]
        assert entries[-1]["kind"] == "update-argument"
        assert len(store.saved) == 1


class TestHistoryEndpoints:
    """Tests for undo and redo."""

    def test_undo_redo(self, client, session):
        client.delete(f"/api/nodes/{node_id(session, 'A')}")
        assert client.post("/api/undo").status_code == 200
        assert shape(session.mission) == ["A", "B"]
        resp = client.post("/api/redo")
        assert resp.status_code == 200
        assert resp.get_json()["can_redo"] is False
        assert shape(session.mission) == ["B"]

    def test_nothing_to_undo(self, client):
        resp = client.post("/api/undo")
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Nothing to undo"


class TestSaveEndpoint:
    """Tests for POST /api/save."""

    def test_save(self, client, store):
        resp = client.post("/api/save")
        assert resp.status_code == 200
        assert resp.get_json()["message"] == "Saved mission 'Test'"
        assert len(store.saved) == 1

    def test_save_failure(self, catalog, clock):
        failing = RecordingStore(fail_with=PersistenceError("read-only"))
        session = EditorSession(catalog, failing, "proj", clock=clock)
        session.set_mission(mission_of(act("A")))
        resp = create_app(session, failing).test_client().post("/api/save")
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "Could not save mission: read-only"

    def test_save_settles_pending_edit(self, client, session, store):
        node = _create(client)
        client.post(
            f"/api/nodes/{node['id']}/arguments",
            json={"name": "seconds", "index": 0, "value": 3},
        )
        client.post("/api/save")
        assert session.history.entries()[-1].kind == "update-argument"


# ─────────────────────────────────────────────────────────────────────────────
# CORS Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestCors:
    """Cross-origin requests from the canvas front end."""

    def test_cors_headers_present(self, client):
        resp = client.get("/api/status", headers={"Origin": "http://localhost:3000"})
        assert resp.status_code == 200
        assert "Access-Control-Allow-Origin" in resp.headers

    def test_cors_preflight(self, client):
        resp = client.options(
            "/api/nodes",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert resp.status_code == 200
        assert "Access-Control-Allow-Origin" in resp.headers
