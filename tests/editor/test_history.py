"""Tests for the snapshot stack and history manager."""

from missionflow.editor.history import INITIAL_KIND, FlowSnapshot, HistoryEntry, SnapshotStack
from missionflow.graph.FlowNode import FlowNode, FlowNodeKind
from missionflow.mission.models import Mission
from tests.helpers import act, history_kinds, mission_of


def _snap(name):
    return FlowSnapshot(mission=Mission(name=name))


class TestSnapshotStack:
    """Tests for SnapshotStack."""

    def test_initialize(self):
        stack = SnapshotStack()
        stack.initialize(_snap("s0"))
        assert len(stack) == 1
        assert stack.cursor == 0
        assert stack.current().kind == INITIAL_KIND
        assert not stack.can_undo()
        assert not stack.can_redo()

    def test_undo_redo_move_cursor(self):
        stack = SnapshotStack()
        stack.initialize(_snap("s0"))
        stack.update(_snap("s1"), "edit")
        stack.update(_snap("s2"), "edit")

        assert stack.undo().mission.name == "s1"
        assert stack.undo().mission.name == "s0"
        assert stack.undo() is None
        assert stack.redo().mission.name == "s1"

    def test_update_discards_redo_branch(self):
        stack = SnapshotStack()
        stack.initialize(_snap("s0"))
        stack.update(_snap("s1"), "a")
        stack.update(_snap("s2"), "b")
        stack.undo()
        stack.update(_snap("s3"), "c")

        assert [e.kind for e in stack] == [INITIAL_KIND, "a", "c"]
        assert not stack.can_redo()
        assert stack.redo() is None

    def test_max_entries_drops_oldest(self):
        stack = SnapshotStack(max_entries=3)
        stack.initialize(_snap("s0"))
        for i in range(1, 5):
            stack.update(_snap(f"s{i}"), f"e{i}")
        assert [e.kind for e in stack] == ["e2", "e3", "e4"]
        assert stack.cursor == 2
        assert stack.current().snapshot.mission.name == "s4"

    def test_clear(self):
        stack = SnapshotStack()
        stack.initialize(_snap("s0"))
        stack.clear()
        assert stack.current() is None
        assert not stack.can_undo()

    def test_entry_str(self):
        entry = HistoryEntry(kind="move-node", snapshot=_snap("s"))
        assert "move-node" in str(entry)
        assert entry.id[:8] in str(entry)


class TestHistoryManager:
    """Tests for HistoryManager driven through an editor session."""

    def test_switch_resets_history(self, session):
        session.create_node(None)
        assert history_kinds(session) == [INITIAL_KIND, "create-node"]

        session.set_mission(mission_of(act("X"), name="Other"))

        assert history_kinds(session) == [INITIAL_KIND]
        assert session.history.mission_key == "Other"
        assert session.pending_viewport_reset

    def test_same_mission_keeps_history(self, session):
        session.create_node(None)
        session.set_mission(session.mission)
        assert history_kinds(session) == [INITIAL_KIND, "create-node"]

    def test_pool_archived_per_mission(self, session):
        test_mission = session.mission
        node = session.create_node(None)

        session.set_mission(mission_of(act("X"), name="Other"))
        assert session.pool.nodes == []
        assert [n.id for n in session.history.archived_pool("Test").nodes] == [node.id]

        session.set_mission(test_mission)
        assert [n.id for n in session.pool.nodes] == [node.id]

    def test_archive_is_a_copy(self, session):
        node = session.create_node(None)
        session.set_mission(mission_of(name="Other"))
        node.text = "changed"
        session.set_mission(mission_of(name="Test"))
        assert session.find_node(node.id).text == "New node"

    def test_recording_is_skipped_while_restoring(self, session):
        session.history.restoring = True
        try:
            assert session.history.record_history("move-node") is None
        finally:
            session.history.restoring = False
        assert history_kinds(session) == [INITIAL_KIND]

    def test_snapshot_is_independent_of_live_state(self, session):
        snapshot = session.history.build_snapshot()
        session.pool.add_node(FlowNode(id="late", kind=FlowNodeKind.UNATTACHED))
        session.mission.steps.clear()
        assert snapshot.pool_nodes == ()
        assert len(snapshot.mission.steps) == 2
        assert len(snapshot.mission_nodes) == 2
