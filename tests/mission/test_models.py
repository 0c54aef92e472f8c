"""Tests for the mission step tree model."""

import pytest

from missionflow.mission.models import (
    Mission,
    StepKind,
    action,
    breakpoint_of,
    container,
    parallel,
    sequence,
)
from tests.helpers import act, mission_of


class TestStepKind:
    """Tests for structural kind detection."""

    @pytest.mark.parametrize(
        "step_type,function_name,expected",
        [
            ("seq", "seq", StepKind.SEQUENCE),
            ("PARALLEL", "", StepKind.PARALLEL),
            ("", "Breakpoint", StepKind.BREAKPOINT),
            ("action", "move_to", StepKind.ACTION),
            (None, None, StepKind.ACTION),
        ],
    )
    def test_detect(self, step_type, function_name, expected):
        """Markers match case-insensitively in either field."""
        assert StepKind.detect(step_type, function_name) is expected

    def test_only_action_is_not_structural(self):
        assert not StepKind.ACTION.is_structural
        assert all(k.is_structural for k in StepKind if k is not StepKind.ACTION)


class TestStepIdentity:
    """Steps compare by identity, never by content."""

    def test_equal_content_is_not_equal(self):
        a1 = action("A")
        a2 = action("A")
        assert a1 != a2
        assert a1 == a1

    def test_uids_are_unique(self):
        assert action("A").uid != action("A").uid

    def test_has_child_uses_identity(self):
        child = action("B")
        parent = action("A", children=[child])
        assert parent.has_child(child)
        assert not parent.has_child(action("B"))


class TestFactories:
    """Tests for container factories."""

    def test_container_markers(self):
        seq = sequence([action("A"), action("B")])
        assert seq.function_name == "seq"
        assert seq.step_type == "seq"
        assert seq.child_count() == 2

    def test_container_rejects_action_kind(self):
        with pytest.raises(ValueError):
            container(StepKind.ACTION)

    def test_breakpoint_wraps_one_step(self):
        child = action("A")
        bp = breakpoint_of(child)
        assert bp.is_kind(StepKind.BREAKPOINT)
        assert bp.children == [child]

    def test_breakpoint_rejects_non_step(self):
        with pytest.raises(ValueError):
            breakpoint_of([action("A"), action("B")])


class TestWalk:
    """Tests for tree traversal orders."""

    @pytest.fixture
    def tree(self):
        return act("A", act("B", act("D")), act("C"))

    def names(self, steps):
        return [s.function_name for s in steps]

    def test_preorder(self, tree):
        assert self.names(tree.walk("pre")) == ["A", "B", "D", "C"]

    def test_postorder(self, tree):
        assert self.names(tree.walk("post")) == ["D", "B", "C", "A"]

    def test_level_order(self, tree):
        assert self.names(tree.walk("level")) == ["A", "B", "C", "D"]

    def test_unknown_order_raises(self, tree):
        with pytest.raises(ValueError, match="Unknown traversal order"):
            list(tree.walk("sideways"))

    def test_find(self, tree):
        assert self.names(tree.find(lambda s: not s.children)) == ["D", "C"]


class TestMission:
    """Tests for mission-level helpers."""

    def test_iter_actions_skips_containers(self):
        mission = mission_of(act("A"), parallel([act("B"), act("C")]))
        assert [s.function_name for s in mission.iter_actions()] == ["A", "B", "C"]

    def test_step_count_includes_containers(self):
        mission = mission_of(act("A"), parallel([act("B"), act("C")]))
        assert mission.step_count() == 4

    def test_find_by_uid(self):
        b = act("B")
        mission = mission_of(act("A", b))
        assert mission.find_by_uid(b.uid) is b
        assert mission.find_by_uid("missing") is None

    def test_key_prefers_uuid(self):
        assert Mission(name="Setup").key == "Setup"
        assert Mission(name="Setup", uuid="m-1").key == "m-1"
        assert Mission(name="").key is None
