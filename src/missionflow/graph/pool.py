"""Unattached-work pool and the merged canvas view.

Nodes the user has placed but not yet wired into the tree, and the
connections drawn between them, live in the pool. The canvas shows the
tree projection plus the pool, with pool connections whose endpoints no
longer exist pruned away.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Iterator

from missionflow.graph.FlowNode import START_OUTPUT_ID, Connection, FlowNode, PortKind, base_id

logger = logging.getLogger(__name__)


@dataclass
class UnattachedPool:
    """Nodes and connections not yet part of the mission tree."""

    nodes: list[FlowNode] = field(default_factory=list)
    connections: list[Connection] = field(default_factory=list)

    def iter_nodes(self) -> Iterator[FlowNode]:
        yield from self.nodes

    def find_node(self, node_id: str) -> FlowNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def has_node(self, node_id: str) -> bool:
        return self.find_node(node_id) is not None

    def find_connection(self, connection_id: str) -> Connection | None:
        for conn in self.connections:
            if conn.id == connection_id:
                return conn
        return None

    def add_node(self, node: FlowNode) -> None:
        self.nodes.append(node)

    def add_connection(self, connection: Connection) -> None:
        self.connections.append(connection)

    def remove_node(self, node_id: str) -> FlowNode | None:
        """Drop a node and every pool connection attached to its ports.

        Returns:
            The removed node, or None if it was not in the pool.
        """
        node = self.find_node(node_id)
        input_id = f"{node_id}-{PortKind.INPUT.value}"
        output_id = f"{node_id}-{PortKind.OUTPUT.value}"
        self.nodes = [n for n in self.nodes if n.id != node_id]
        self.connections = [
            c for c in self.connections if c.input_id != input_id and c.output_id != output_id
        ]
        return node

    def is_empty(self) -> bool:
        return not self.nodes and not self.connections

    def copy(self) -> UnattachedPool:
        """Deep copy; the pool never shares nodes with a snapshot."""
        return UnattachedPool(
            nodes=copy.deepcopy(self.nodes), connections=copy.deepcopy(self.connections)
        )


@dataclass
class MergedView:
    """What the canvas shows: tree projection plus pool."""

    nodes: list[FlowNode] = field(default_factory=list)
    connections: list[Connection] = field(default_factory=list)

    def node_ids(self) -> set[str]:
        return {n.id for n in self.nodes}

    def find_node(self, node_id: str) -> FlowNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def find_connection(self, connection_id: str) -> Connection | None:
        for conn in self.connections:
            if conn.id == connection_id:
                return conn
        return None


def merge_view(
    tree_nodes: list[FlowNode],
    tree_connections: list[Connection],
    pool: UnattachedPool,
) -> MergedView:
    """Union the tree projection with the pool.

    Pool connections are kept only when both endpoints exist; the start
    node's output port is always a valid source.
    """
    nodes = [*tree_nodes, *pool.nodes]
    ids = {n.id for n in nodes}

    def valid(conn: Connection) -> bool:
        source_ok = (
            conn.output_id == START_OUTPUT_ID
            or base_id(conn.output_id, PortKind.OUTPUT) in ids
        )
        return source_ok and base_id(conn.input_id, PortKind.INPUT) in ids

    kept = [c for c in pool.connections if valid(c)]
    if len(kept) != len(pool.connections):
        logger.debug("Pruned %d dangling pool connections", len(pool.connections) - len(kept))
    return MergedView(nodes=nodes, connections=[*tree_connections, *kept])


__all__ = [
    "MergedView",
    "UnattachedPool",
    "merge_view",
]
