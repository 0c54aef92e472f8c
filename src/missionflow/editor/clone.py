"""Deep copies for history snapshots.

Snapshot state is plain data, so ``copy.deepcopy`` is the primary clone.
Missions fall back to a serialize/deserialize round trip that keeps step
identities, should deepcopy ever fail.
"""

from __future__ import annotations

import copy
import logging
from typing import Sequence, TypeVar

from missionflow.graph.FlowNode import Connection, FlowNode
from missionflow.mission.models import Mission
from missionflow.mission.serialize import deserialize_mission, serialize_mission

logger = logging.getLogger(__name__)

T = TypeVar("T")


def clone_plain(value: T) -> T:
    """Deep copy a plain value (None passes through)."""
    if value is None:
        return value
    return copy.deepcopy(value)


def clone_mission(mission: Mission | None) -> Mission | None:
    """Deep copy a mission, preserving step uids."""
    if mission is None:
        return None
    try:
        return copy.deepcopy(mission)
    except (copy.Error, TypeError, RecursionError) as e:
        logger.debug("deepcopy of mission %r failed (%s); using round trip", mission.name, e)
        return deserialize_mission(serialize_mission(mission, include_uids=True))


def clone_nodes(nodes: Sequence[FlowNode] | None) -> list[FlowNode]:
    return copy.deepcopy(list(nodes or []))


def clone_connections(connections: Sequence[Connection] | None) -> list[Connection]:
    return copy.deepcopy(list(connections or []))


__all__ = ["clone_connections", "clone_mission", "clone_nodes", "clone_plain"]
