"""Tests for action step path indexing."""

import pytest

from missionflow.mission.models import parallel, sequence
from missionflow.mission.paths import compute_step_paths, first_action, parse_path, path_key
from tests.helpers import act, mission_of


@pytest.fixture
def nested_mission():
    """[A, seq{B, parallel{C, D}}, E{F}]"""
    return mission_of(
        act("A"),
        sequence([act("B"), parallel([act("C"), act("D")])]),
        act("E", act("F")),
    )


def keys_by_name(mission):
    paths = compute_step_paths(mission)
    return {step.function_name: paths.key_of(step) for step in mission.iter_actions()}


class TestComputeStepPaths:
    """Tests for compute_step_paths()."""

    def test_containers_are_transparent(self, nested_mission):
        """Containers neither add a level nor restart the count."""
        assert keys_by_name(nested_mission) == {
            "A": "1",
            "B": "2",
            "C": "3",
            "D": "4",
            "E": "5",
            "F": "5.1",
        }

    def test_action_children_start_new_level(self):
        mission = mission_of(act("A", act("B", act("C")), parallel([act("D"), act("E")])))
        assert keys_by_name(mission) == {"A": "1", "B": "1.1", "C": "1.1.1", "D": "1.2", "E": "1.3"}

    def test_deterministic(self, nested_mission):
        first = compute_step_paths(nested_mission)
        second = compute_step_paths(nested_mission)
        assert first.by_uid == second.by_uid

    def test_unique_among_actions(self, nested_mission):
        paths = compute_step_paths(nested_mission)
        keys = [paths.key_of(s) for s in nested_mission.iter_actions()]
        assert len(keys) == len(set(keys)) == 6

    def test_reverse_lookup(self, nested_mission):
        paths = compute_step_paths(nested_mission)
        assert paths.step_at("5.1").function_name == "F"
        assert paths.step_at("9") is None
        assert len(paths) == 6

    def test_containers_have_no_path(self, nested_mission):
        paths = compute_step_paths(nested_mission)
        assert paths.path_of(nested_mission.steps[1]) is None

    def test_none_mission(self):
        assert len(compute_step_paths(None)) == 0


class TestPathHelpers:
    """Tests for path parsing and formatting."""

    def test_path_key(self):
        assert path_key([2, 1]) == "2.1"

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ([1, 2], [1, 2]),
            ("3.1", [3, 1]),
            (["2", 1.0], [2, 1]),
            ([0, 1], None),
            ([1.5], None),
            ([True], None),
            ([], None),
            ("", None),
            ("a.b", None),
            (7, None),
        ],
    )
    def test_parse_path(self, raw, expected):
        assert parse_path(raw) == expected

    def test_first_action(self):
        tree = sequence([parallel([act("X", act("Y")), act("Z")])])
        assert first_action(tree).function_name == "X"
        assert first_action(sequence([])) is None
