"""MissionViewBuilder - Project the step tree onto nodes and connections.

The projection walks the tree once, carrying the set of exit ports that
feed the next step:

- Action: one node; a connection from every incoming exit port into its
  input. Its children fan out from its output port.
- Sequence: exits are threaded through the children in order.
- Parallel: every child gets the same incoming exits; the exits of all
  children are joined.
- Breakpoint: like a one-child Sequence, but every incoming exit port is
  tagged, so the connections into its child are marked.

Node ids are reused by step identity so that persisting steps keep their
ids across rebuilds. Connection ids are regenerated every time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from uuid import uuid4

from missionflow.graph.catalog import StepCatalog
from missionflow.graph.FlowNode import START_OUTPUT_ID, Connection, FlowNode, FlowNodeKind
from missionflow.graph.lookups import MissionLookups
from missionflow.mission.models import Mission, Position, Step, StepKind
from missionflow.mission.paths import PathIndex, compute_step_paths, first_action

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExitPort:
    """An output port that feeds whatever comes next.

    Attributes:
        port_id: Output port id.
        breakpoint_path_key: Set when the port passes through a Breakpoint.
    """

    port_id: str
    breakpoint_path_key: str | None = None


@dataclass
class MissionView:
    """Result of one projection.

    Attributes:
        nodes: Tree-derived nodes in document order.
        connections: Tree-derived connections.
        step_to_node_id: Step uid -> node id.
        node_id_to_step: Node id -> step.
        path_to_node_id: Path key -> node id.
        path_to_connection_ids: Path key -> ids of connections into the node.
        paths: Path index the projection was computed with.
    """

    nodes: list[FlowNode] = field(default_factory=list)
    connections: list[Connection] = field(default_factory=list)
    step_to_node_id: dict[str, str] = field(default_factory=dict)
    node_id_to_step: dict[str, Step] = field(default_factory=dict)
    path_to_node_id: dict[str, str] = field(default_factory=dict)
    path_to_connection_ids: dict[str, list[str]] = field(default_factory=dict)
    paths: PathIndex = field(default_factory=PathIndex)

    def apply_to(self, lookups: MissionLookups) -> None:
        """Publish this projection's maps into the session lookups."""
        lookups.set_node_lookups(self.step_to_node_id, self.node_id_to_step)
        lookups.set_path_lookups(self.path_to_node_id, self.path_to_connection_ids)
        lookups.step_paths = {uid: list(p) for uid, p in self.paths.by_uid.items()}

    def node(self, node_id: str) -> FlowNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None


class MissionViewBuilder:
    """Builds a MissionView from a mission tree.

    Args:
        catalog: Resolves display definitions and initial argument values.
    """

    def __init__(self, catalog: StepCatalog | None = None) -> None:
        self.catalog = catalog or StepCatalog()

    def build(self, mission: Mission | None, previous: dict[str, str] | None = None) -> MissionView:
        """Project a mission.

        Args:
            mission: The mission to project (None yields an empty view).
            previous: Step uid -> node id from the prior projection.

        Returns:
            MissionView with nodes, connections and lookup maps.
        """
        view = MissionView()
        if mission is None:
            return view
        view.paths = compute_step_paths(mission)
        reuse = previous or {}

        def visit(step: Step, incoming: list[ExitPort]) -> list[ExitPort]:
            if step.kind is StepKind.SEQUENCE:
                exits = incoming
                for child in step.children:
                    exits = visit(child, exits)
                return exits

            if step.kind is StepKind.PARALLEL:
                if not step.children:
                    return incoming
                joined: list[ExitPort] = []
                for child in step.children:
                    for port in visit(child, incoming):
                        if port not in joined:
                            joined.append(port)
                return joined

            if step.kind is StepKind.BREAKPOINT:
                target = first_action(step)
                key = view.paths.key_of(target) if target is not None else None
                exits = [ExitPort(p.port_id, key) for p in incoming]
                for child in step.children:
                    exits = visit(child, exits)
                return exits

            if step.kind is StepKind.ACTION:
                node = self._materialize(step, reuse, view)
                key = view.paths.key_of(step)
                for port in incoming:
                    conn = Connection(
                        id=uuid4().hex,
                        output_id=port.port_id,
                        input_id=node.input_id,
                        target_path_key=key,
                        has_breakpoint=port.breakpoint_path_key is not None,
                        breakpoint_path_key=port.breakpoint_path_key,
                    )
                    view.connections.append(conn)
                    if key is not None:
                        view.path_to_connection_ids.setdefault(key, []).append(conn.id)

                own_exit = [ExitPort(node.output_id)]
                if not step.children:
                    return own_exit
                fanned: list[ExitPort] = []
                for child in step.children:
                    for port in visit(child, own_exit):
                        if port not in fanned:
                            fanned.append(port)
                return fanned

            raise ValueError(f"Unknown step kind: {step.kind}")

        exits = [ExitPort(START_OUTPUT_ID)]
        for top in mission.steps:
            exits = visit(top, exits)

        logger.debug(
            "Projected mission %r: %d nodes, %d connections",
            mission.name,
            len(view.nodes),
            len(view.connections),
        )
        return view

    def _materialize(self, step: Step, reuse: dict[str, str], view: MissionView) -> FlowNode:
        node_id = reuse.get(step.uid) or uuid4().hex
        position = step.position or Position()
        node = FlowNode(
            id=node_id,
            kind=FlowNodeKind.STEP,
            text=step.function_name,
            definition=self.catalog.definition_for(step),
            args=self.catalog.initial_args(step),
            position=Position(position.x, position.y),
            path=view.paths.path_of(step),
        )
        view.nodes.append(node)
        view.step_to_node_id[step.uid] = node_id
        view.node_id_to_step[node_id] = step
        key = view.paths.key_of(step)
        if key is not None:
            view.path_to_node_id[key] = node_id
        return node


def build_mission_view(
    mission: Mission | None,
    catalog: StepCatalog | None = None,
    previous: dict[str, str] | None = None,
) -> MissionView:
    """Convenience wrapper around MissionViewBuilder."""
    return MissionViewBuilder(catalog).build(mission, previous)


__all__ = [
    "ExitPort",
    "MissionView",
    "MissionViewBuilder",
    "build_mission_view",
]
