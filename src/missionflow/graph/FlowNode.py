"""FlowNode - Node and connection types of the projected mission graph.

This module provides the canvas-facing data structures:
- FlowNodeKind: Enum of node origins (start, tree step, unattached)
- PortKind: Enum of node port directions
- FlowNode: A node with its step definition and argument values
- Connection: A directed edge between two node ports
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from missionflow.mission.models import ArgValue, Position

if TYPE_CHECKING:
    from missionflow.graph.catalog import StepDefinition

START_NODE_ID = "start-node"
START_OUTPUT_ID = "start-node-output"


class FlowNodeKind(Enum):
    """Where a graph node comes from."""

    START = "start"
    STEP = "step"
    UNATTACHED = "unattached"


class PortKind(Enum):
    """Direction of a node port."""

    INPUT = "input"
    OUTPUT = "output"


def port_id(node_id: str, kind: PortKind) -> str:
    """Build a port id (``<nodeId>-input`` / ``<nodeId>-output``)."""
    return f"{node_id}-{kind.value}"


def base_id(port: str, kind: PortKind) -> str:
    """Strip the port suffix to recover the node id.

    The start node's output port maps back to the start node id.
    """
    if kind is PortKind.OUTPUT and port == START_OUTPUT_ID:
        return START_NODE_ID
    suffix = f"-{kind.value}"
    if port.endswith(suffix):
        return port[: -len(suffix)]
    return port


@dataclass
class FlowNode:
    """A node on the canvas.

    Attributes:
        id: Node id; stable across rebuilds for persisting action steps.
        kind: Node origin.
        text: Display label (the step's function name).
        definition: Step definition the argument editor is built from.
        args: Coerced argument values keyed by argument name.
        position: Canvas position.
        path: Dotted address of the backing action step (tree nodes only).
    """

    id: str
    kind: FlowNodeKind = FlowNodeKind.STEP
    text: str = ""
    definition: StepDefinition | None = None
    args: dict[str, ArgValue] = field(default_factory=dict)
    position: Position = field(default_factory=Position)
    path: list[int] | None = None

    @property
    def input_id(self) -> str:
        return port_id(self.id, PortKind.INPUT)

    @property
    def output_id(self) -> str:
        if self.id == START_NODE_ID:
            return START_OUTPUT_ID
        return port_id(self.id, PortKind.OUTPUT)

    @property
    def is_unattached(self) -> bool:
        return self.kind is FlowNodeKind.UNATTACHED


@dataclass
class Connection:
    """A directed edge from an output port to an input port.

    Attributes:
        id: Connection id (fresh on every rebuild for tree connections).
        output_id: Source port id.
        input_id: Target port id.
        target_path_key: Path key of the target action step.
        has_breakpoint: True when the edge passes through a Breakpoint.
        breakpoint_path_key: Path key identifying that Breakpoint.
    """

    id: str
    output_id: str
    input_id: str
    target_path_key: str | None = None
    has_breakpoint: bool = False
    breakpoint_path_key: str | None = None

    @property
    def source_node_id(self) -> str:
        return base_id(self.output_id, PortKind.OUTPUT)

    @property
    def target_node_id(self) -> str:
        return base_id(self.input_id, PortKind.INPUT)

    def touches(self, node_id: str) -> bool:
        """True if either endpoint belongs to node_id."""
        return self.source_node_id == node_id or self.target_node_id == node_id


def start_node() -> FlowNode:
    """Create the synthetic start node."""
    return FlowNode(id=START_NODE_ID, kind=FlowNodeKind.START, text="Start")


__all__ = [
    "START_NODE_ID",
    "START_OUTPUT_ID",
    "Connection",
    "FlowNode",
    "FlowNodeKind",
    "PortKind",
    "base_id",
    "port_id",
    "start_node",
]
