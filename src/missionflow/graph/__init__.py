"""Graph module - The canvas projection of a mission.

Exports:
- FlowNode / FlowNodeKind: Canvas nodes (start, tree step, unattached)
- Connection: Directed edge between node ports
- PortKind, port_id, base_id: Port id helpers
- StepCatalog / StepDefinition / ArgumentDefinition: Step declarations
- MissionViewBuilder / MissionView: Tree -> graph projection
- MissionLookups: Step/node/path identity maps
- UnattachedPool / MergedView / merge_view: Unattached work and the merged view

Note: the tree itself lives in missionflow.mission
"""

from missionflow.graph.builder import MissionView, MissionViewBuilder, build_mission_view
from missionflow.graph.catalog import (
    ArgumentDefinition,
    StepCatalog,
    StepDefinition,
    step_from_unattached,
)
from missionflow.graph.FlowNode import (
    START_NODE_ID,
    START_OUTPUT_ID,
    Connection,
    FlowNode,
    FlowNodeKind,
    PortKind,
    base_id,
    port_id,
)
from missionflow.graph.lookups import MissionLookups
from missionflow.graph.pool import MergedView, UnattachedPool, merge_view

__all__ = [
    "START_NODE_ID",
    "START_OUTPUT_ID",
    "FlowNode",
    "FlowNodeKind",
    "Connection",
    "PortKind",
    "port_id",
    "base_id",
    "ArgumentDefinition",
    "StepDefinition",
    "StepCatalog",
    "step_from_unattached",
    "MissionView",
    "MissionViewBuilder",
    "build_mission_view",
    "MissionLookups",
    "UnattachedPool",
    "MergedView",
    "merge_view",
]
