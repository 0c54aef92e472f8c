"""missionflow.server - Flask REST API server and mission persistence.

Provides a thin REST wrapper over an EditorSession and a file-backed
store for the missions of a project.
"""

from missionflow.server.app import create_app
from missionflow.server.persistence import FileMissionStore, MissionStore

__all__ = ["FileMissionStore", "MissionStore", "create_app"]
