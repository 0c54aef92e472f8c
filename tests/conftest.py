"""Pytest fixtures shared across missionflow tests."""

import json

import pytest

from missionflow.editor.session import EditorSession
from missionflow.mission.serialize import serialize_mission
from tests.helpers import FakeClock, RecordingStore, act, make_catalog, mission_of


@pytest.fixture
def catalog():
    """Catalog with move_to, wait and grip."""
    return make_catalog()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def session(catalog, store, clock):
    """Session with an open two-step mission [A, B]."""
    s = EditorSession(catalog, store, "proj", clock=clock)
    s.set_mission(mission_of(act("A", y=100), act("B", y=200)))
    return s


@pytest.fixture
def write_mission(tmp_path):
    """Write a mission JSON file and return its path."""

    def _write(mission, name="mission.json"):
        path = tmp_path / name
        path.write_text(json.dumps(serialize_mission(mission), indent=2), encoding="utf-8")
        return path

    return _write
