"""Tests for projecting a mission tree onto graph nodes and connections."""

from missionflow.graph.builder import MissionViewBuilder, build_mission_view
from missionflow.graph.FlowNode import START_OUTPUT_ID
from missionflow.graph.lookups import MissionLookups
from missionflow.mission.models import Position, breakpoint_of, parallel, sequence
from tests.helpers import act, edge_names, make_catalog, mission_of


def _edges(mission):
    view = build_mission_view(mission)
    return edge_names(view.nodes, view.connections)


class TestProjectionShape:
    """Connections follow the control flow of the tree."""

    def test_top_level_sequence(self):
        assert _edges(mission_of(act("A"), act("B"))) == {("start", "A"), ("A", "B")}

    def test_children_fan_out(self):
        mission = mission_of(act("A", act("B"), act("C")))
        assert _edges(mission) == {("start", "A"), ("A", "B"), ("A", "C")}

    def test_parallel_shares_entry_and_joins(self):
        mission = mission_of(parallel([act("A"), act("B")]), act("C"))
        assert _edges(mission) == {
            ("start", "A"),
            ("start", "B"),
            ("A", "C"),
            ("B", "C"),
        }

    def test_sequence_threads_children(self):
        mission = mission_of(act("A", sequence([act("B"), act("C")])))
        assert _edges(mission) == {("start", "A"), ("A", "B"), ("B", "C")}

    def test_fan_out_then_sequence_joins_leaves(self):
        mission = mission_of(act("A", sequence([parallel([act("B"), act("C")]), act("D")])))
        assert _edges(mission) == {
            ("start", "A"),
            ("A", "B"),
            ("A", "C"),
            ("B", "D"),
            ("C", "D"),
        }

    def test_empty_parallel_passes_through(self):
        assert _edges(mission_of(act("A"), parallel(), act("B"))) == {
            ("start", "A"),
            ("A", "B"),
        }

    def test_only_actions_become_nodes(self):
        mission = mission_of(parallel([act("A"), sequence([act("B"), act("C")])]))
        view = build_mission_view(mission)
        assert [n.text for n in view.nodes] == ["A", "B", "C"]

    def test_no_mission(self):
        view = build_mission_view(None)
        assert view.nodes == []
        assert view.connections == []

    def test_start_connection_source(self):
        view = build_mission_view(mission_of(act("A")))
        (conn,) = view.connections
        assert conn.output_id == START_OUTPUT_ID


class TestBreakpointMarking:
    """Connections into a Breakpoint's child are flagged."""

    def test_marks_edges_into_child(self):
        mission = mission_of(act("A"), breakpoint_of(act("B")), act("C"))
        view = build_mission_view(mission)
        flagged = {
            (c.target_path_key, c.breakpoint_path_key) for c in view.connections if c.has_breakpoint
        }
        assert flagged == {("2", "2")}

    def test_breakpoint_on_parallel_marks_every_lane(self):
        mission = mission_of(act("A"), breakpoint_of(parallel([act("B"), act("C")])))
        view = build_mission_view(mission)
        marked = [c for c in view.connections if c.has_breakpoint]
        assert len(marked) == 2
        assert {c.breakpoint_path_key for c in marked} == {"2"}


class TestNodeContent:
    """Node identity, paths, and argument values."""

    def test_paths_and_lookups(self):
        b = act("B")
        mission = mission_of(act("A", b))
        view = build_mission_view(mission)
        node_b = view.node(view.step_to_node_id[b.uid])
        assert node_b.path == [1, 1]
        assert view.path_to_node_id["1.1"] == node_b.id
        assert view.node_id_to_step[node_b.id] is b
        assert len(view.path_to_connection_ids["1.1"]) == 1

    def test_reuses_node_ids_across_rebuilds(self):
        mission = mission_of(act("A"), act("B"))
        first = build_mission_view(mission)
        second = build_mission_view(mission, previous=first.step_to_node_id)
        assert [n.id for n in second.nodes] == [n.id for n in first.nodes]
        assert {c.id for c in second.connections}.isdisjoint({c.id for c in first.connections})

    def test_fresh_ids_without_previous(self):
        mission = mission_of(act("A"))
        first = build_mission_view(mission)
        second = build_mission_view(mission)
        assert first.nodes[0].id != second.nodes[0].id

    def test_catalog_arguments(self):
        mission = mission_of(act("move_to", x=1.5))
        view = MissionViewBuilder(make_catalog()).build(mission)
        node = view.nodes[0]
        assert node.args == {"x": 1.5, "y": 0.0}
        assert node.definition.import_path == "robot.motion.move_to"

    def test_position_copied_from_step(self):
        step = act("A")
        step.position = Position(10, 20)
        view = build_mission_view(mission_of(step))
        assert view.nodes[0].position == Position(10, 20)
        assert view.nodes[0].position is not step.position

    def test_apply_to_lookups(self):
        a = act("A")
        view = build_mission_view(mission_of(a))
        lookups = MissionLookups()
        view.apply_to(lookups)
        assert lookups.step_for_node(view.nodes[0].id) is a
        assert lookups.node_for_step(a) == view.nodes[0].id
        assert lookups.step_paths[a.uid] == [1]
