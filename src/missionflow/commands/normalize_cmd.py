"""
missionflow.commands.normalize_cmd - Normalize a mission file in place.

Dissolves empty and single-child containers and reports what changed.
"""

from __future__ import annotations

import argparse
import sys

from missionflow.commands.mission_file import read_mission, write_mission
from missionflow.mission.serialize import serialize_mission
from missionflow.mission.tree import degenerate_containers, duplicate_members, normalize_all


def run(args: argparse.Namespace) -> int:
    """Run the normalize command.

    Returns:
        0 when the file is (now) normalized, 1 when ``--check`` finds work
        to do, 2 when a step appears more than once in the tree.
    """
    mission = read_mission(args.file)
    quiet = getattr(args, "quiet", False)

    duplicates = duplicate_members(mission)
    if duplicates:
        for step in duplicates:
            print(f"Step appears more than once: {step!r}", file=sys.stderr)
        return 2

    degenerate = degenerate_containers(mission)
    before = serialize_mission(mission)
    normalize_all(mission)
    changed = serialize_mission(mission) != before

    if getattr(args, "check", False):
        if changed:
            if not quiet:
                print(f"{args.file}: {len(degenerate)} container(s) would be dissolved")
            return 1
        if not quiet:
            print(f"{args.file}: already normalized")
        return 0

    if changed:
        write_mission(args.file, mission)
    if not quiet:
        if changed:
            print(f"{args.file}: dissolved {len(degenerate)} container(s)")
        else:
            print(f"{args.file}: already normalized")
    return 0
