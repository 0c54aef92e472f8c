"""Tests for removal and breakpoint edits."""

from missionflow.graph.builder import build_mission_view
from missionflow.mission.edits import (
    add_breakpoint,
    enclosing_breakpoint,
    remove_breakpoint,
    remove_step,
)
from missionflow.mission.models import breakpoint_of, parallel, sequence
from tests.helpers import act, assert_tree_invariants, edge_names, mission_of, shape


class TestRemoveStep:
    """Tests for remove_step()."""

    def test_single_child_reconnects_to_predecessor(self):
        """Deleting A in [P, A{K}] leaves P -> K."""
        a = act("A", act("K"))
        mission = mission_of(act("P"), a)
        assert remove_step(mission, a)
        assert shape(mission) == ["P", "K"]
        view = build_mission_view(mission)
        assert edge_names(view.nodes, view.connections) == {("start", "P"), ("P", "K")}

    def test_removes_subtree_of_fan_out(self):
        a = act("A", act("B"), act("C"))
        mission = mission_of(act("P"), a)
        remove_step(mission, a)
        assert shape(mission) == ["P"]

    def test_dissolves_degenerate_parallel(self):
        b = act("B")
        mission = mission_of(parallel([act("A"), b]), act("T"))
        remove_step(mission, b)
        assert shape(mission) == ["A", "T"]
        assert_tree_invariants(mission)

    def test_dissolves_nested_wrappers(self):
        c = act("C")
        mission = mission_of(act("A", sequence([parallel([act("B"), c]), act("D")])))
        remove_step(mission, c)
        assert shape(mission) == [("A", [("seq", ["B", "D"])])]
        assert_tree_invariants(mission)

    def test_not_in_tree(self):
        mission = mission_of(act("A"))
        assert not remove_step(mission, act("A"))


class TestBreakpoints:
    """Tests for breakpoint edits."""

    def test_add_marks_incoming_edges(self):
        b = act("B")
        mission = mission_of(act("A"), b)
        assert add_breakpoint(mission, b)
        assert shape(mission) == ["A", ("bp", ["B"])]
        view = build_mission_view(mission)
        (into_b,) = [c for c in view.connections if c.target_path_key == "2"]
        assert into_b.has_breakpoint
        assert into_b.breakpoint_path_key == "2"

    def test_add_twice_refused(self):
        b = act("B")
        mission = mission_of(act("A"), b)
        add_breakpoint(mission, b)
        assert not add_breakpoint(mission, b)

    def test_add_not_in_tree(self):
        assert not add_breakpoint(mission_of(act("A")), act("B"))

    def test_remove(self):
        b = act("B")
        mission = mission_of(act("A"), breakpoint_of(b))
        assert remove_breakpoint(mission, b)
        assert shape(mission) == ["A", "B"]

    def test_remove_without_breakpoint(self):
        b = act("B")
        assert not remove_breakpoint(mission_of(act("A"), b), b)

    def test_enclosing_breakpoint_marks_first_action_only(self):
        x, y = act("X"), act("Y")
        bp = breakpoint_of(sequence([x, y]))
        mission = mission_of(bp)
        assert enclosing_breakpoint(mission, x) is bp
        assert enclosing_breakpoint(mission, y) is None

    def test_enclosing_breakpoint_stops_at_action(self):
        c = act("C")
        mission = mission_of(breakpoint_of(act("A", c)))
        assert enclosing_breakpoint(mission, c) is None

    def test_remove_container_breakpoint_splices_child(self):
        x = act("X")
        mission = mission_of(act("A"), breakpoint_of(sequence([x, act("Y")])))
        remove_breakpoint(mission, x)
        assert shape(mission) == ["A", ("seq", ["X", "Y"])]
