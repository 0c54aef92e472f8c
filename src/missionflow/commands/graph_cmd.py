"""
missionflow.commands.graph_cmd - Output a mission's canvas projection as JSON.
"""

from __future__ import annotations

import argparse
import json

from missionflow.commands.mission_file import read_catalog, read_mission
from missionflow.graph.builder import build_mission_view
from missionflow.graph.pool import MergedView
from missionflow.graph.serialize import serialize_view


def run(args: argparse.Namespace) -> int:
    """Run the graph command."""
    mission = read_mission(args.file)
    catalog = read_catalog(getattr(args, "catalog", None))
    view = build_mission_view(mission, catalog)

    data = serialize_view(MergedView(nodes=view.nodes, connections=view.connections))
    output = json.dumps(data, indent=2)

    output_file = getattr(args, "output", None)
    if output_file:
        output_file.write_text(output + "\n", encoding="utf-8")
        if not getattr(args, "quiet", False):
            print(f"Wrote {len(view.nodes)} nodes and {len(view.connections)} connections"
                  f" to {output_file}")
    else:
        print(output)
    return 0
