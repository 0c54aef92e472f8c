"""
missionflow.commands.paths_cmd - Print the dotted path of every action step.
"""

from __future__ import annotations

import argparse
import json

from missionflow.commands.mission_file import read_mission
from missionflow.mission.paths import compute_step_paths
from missionflow.mission.serialize import to_outline


def run(args: argparse.Namespace) -> int:
    """Run the paths command.

    Prints one ``<path>  <function>`` line per action in document order,
    or a JSON object with ``--json``, or the indented tree with ``--outline``.
    """
    mission = read_mission(args.file)

    if getattr(args, "outline", False):
        print(to_outline(mission))
        return 0

    paths = compute_step_paths(mission)
    rows = [(paths.key_of(step), step.function_name) for step in mission.iter_actions()]

    if getattr(args, "json", False):
        print(json.dumps({key: name for key, name in rows}, indent=2))
        return 0

    width = max((len(key or "") for key, _ in rows), default=0)
    for key, name in rows:
        print(f"{(key or ''):<{width}}  {name}")
    return 0
