"""
missionflow.commands.serve - Run the editor REST server for one project.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from missionflow.commands.config_cmd import load_configuration
from missionflow.commands.mission_file import read_catalog
from missionflow.editor.session import EditorSession
from missionflow.server.app import create_app
from missionflow.server.persistence import FileMissionStore

logger = logging.getLogger(__name__)


def run(args: argparse.Namespace) -> int:
    """Start the REST server with the chosen mission open."""
    config = load_configuration(args)
    storage = config.get("storage", {})
    server = config.get("server", {})

    root = Path(getattr(args, "missions_dir", None) or storage.get("missions_dir", ".missions"))
    project_id = getattr(args, "project", None) or storage.get("project", "default")
    store = FileMissionStore(root)
    catalog = read_catalog(getattr(args, "catalog", None))

    missions = store.load_all_missions(project_id)
    name = getattr(args, "mission", None)
    if name:
        mission = next((m for m in missions if m.name == name), None)
        if mission is None:
            mission = store.create_mission(project_id, name)
    elif missions:
        mission = missions[0]
    else:
        print(f"Error: project {project_id!r} has no missions; pass --mission NAME",
              file=sys.stderr)
        return 1

    session = EditorSession.from_config(config, catalog, store, project_id)
    session.set_mission(mission)

    host = getattr(args, "host", None) or server.get("host", "127.0.0.1")
    port = getattr(args, "port", None) or int(server.get("port", 5050))

    print(
        f"""
======================================
  missionflow Editor Server
======================================

Project:    {project_id}
Mission:    {mission.name}
Server:     http://{host}:{port}

Press Ctrl+C to stop
"""
    )
    logger.info("Serving mission %r of project %r", mission.name, project_id)

    app = create_app(session, store, config)
    try:
        app.run(host=host, port=port, debug=False, threaded=False)
    except KeyboardInterrupt:
        print("\nServer stopped.")
    return 0
