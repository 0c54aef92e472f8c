"""Snapshot history for the mission editor.

This module provides:
- FlowSnapshot: Immutable copy of the full editable state
- HistoryEntry: One recorded snapshot with its edit kind
- SnapshotStack: Linear undo/redo stack with a cursor
- HistoryManager: Records snapshots, applies undo/redo, and keeps the
  unattached pool of each mission while another mission is open
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, Protocol
from uuid import uuid4

from missionflow.editor.clone import clone_connections, clone_mission, clone_nodes
from missionflow.graph.FlowNode import Connection, FlowNode
from missionflow.graph.pool import UnattachedPool
from missionflow.mission.models import Mission

logger = logging.getLogger(__name__)

INITIAL_KIND = "initial"


@dataclass(frozen=True)
class FlowSnapshot:
    """Immutable copy of the editable state.

    Attributes:
        mission: Cloned mission (comments included), or None.
        mission_nodes: Tree-derived nodes.
        mission_connections: Tree-derived connections.
        pool_nodes: Unattached nodes.
        pool_connections: Unattached connections.
        step_node_ids: (step uid, node id) pairs of the projection.
    """

    mission: Mission | None
    mission_nodes: tuple[FlowNode, ...] = ()
    mission_connections: tuple[Connection, ...] = ()
    pool_nodes: tuple[FlowNode, ...] = ()
    pool_connections: tuple[Connection, ...] = ()
    step_node_ids: tuple[tuple[str, str], ...] = ()


@dataclass
class HistoryEntry:
    """One snapshot on the history stack.

    Attributes:
        kind: Edit kind that produced the snapshot (e.g. "delete-node").
        snapshot: The recorded state.
        id: Unique entry id.
        timestamp: When the entry was recorded.
    """

    kind: str
    snapshot: FlowSnapshot
    id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"[{self.timestamp.isoformat()}] {self.kind} ({self.id[:8]})"


class SnapshotStack:
    """Linear history: entries plus a cursor at the current state.

    Recording after an undo discards the redo branch.

    Args:
        max_entries: Oldest entries are dropped beyond this size (None = unbounded).
    """

    def __init__(self, max_entries: int | None = None) -> None:
        self._entries: list[HistoryEntry] = []
        self._cursor = -1
        self._max_entries = max_entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    def initialize(self, snapshot: FlowSnapshot) -> None:
        """Reset the stack to a single entry."""
        self._entries = [HistoryEntry(kind=INITIAL_KIND, snapshot=snapshot)]
        self._cursor = 0

    def update(self, snapshot: FlowSnapshot, kind: str) -> HistoryEntry:
        """Push a new current state."""
        del self._entries[self._cursor + 1 :]
        entry = HistoryEntry(kind=kind, snapshot=snapshot)
        self._entries.append(entry)
        if self._max_entries is not None and len(self._entries) > self._max_entries:
            del self._entries[: len(self._entries) - self._max_entries]
        self._cursor = len(self._entries) - 1
        return entry

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return 0 <= self._cursor < len(self._entries) - 1

    def undo(self) -> FlowSnapshot | None:
        if not self.can_undo():
            return None
        self._cursor -= 1
        return self._entries[self._cursor].snapshot

    def redo(self) -> FlowSnapshot | None:
        if not self.can_redo():
            return None
        self._cursor += 1
        return self._entries[self._cursor].snapshot

    def current(self) -> HistoryEntry | None:
        if self._cursor < 0:
            return None
        return self._entries[self._cursor]

    def clear(self) -> None:
        self._entries = []
        self._cursor = -1


class HistoryHost(Protocol):
    """Editable state the history manager snapshots and restores."""

    mission: Mission | None
    mission_nodes: list[FlowNode]
    mission_connections: list[Connection]
    pool: UnattachedPool

    def step_node_ids(self) -> dict[str, str]: ...

    def assign_mission(self, mission: Mission | None) -> None: ...

    def restore_lookups(self, step_node_ids: dict[str, str]) -> None: ...

    def clear_view(self) -> None: ...

    def recompute_merged_view(self) -> None: ...

    def mark_needs_adjust(self) -> None: ...

    def mark_viewport_reset_pending(self) -> None: ...


class HistoryManager:
    """Drives snapshot history for one editor session.

    Flags:
        restoring: True while a snapshot is being applied; recording is a
            no-op and mission-change handling is skipped.
        traversing: True from a user undo/redo call until its snapshot
            has been applied.
    """

    def __init__(self, host: HistoryHost, max_entries: int | None = None) -> None:
        self._host = host
        self.stack = SnapshotStack(max_entries)
        self._archive: dict[str, UnattachedPool] = {}
        self._mission_key: str | None = None
        self._initialized = False
        self.restoring = False
        self.traversing = False
        self._ignore_mission_change = False

    @property
    def mission_key(self) -> str | None:
        return self._mission_key

    @property
    def initialized(self) -> bool:
        return self._initialized

    def archived_pool(self, key: str) -> UnattachedPool | None:
        """Return the archived pool of a mission (for inspection)."""
        return self._archive.get(key)

    def should_process_mission_change(self) -> bool:
        """Gate for the host's mission-changed handler.

        Returns False while restoring and, exactly once, for the mission
        assignment made by a snapshot apply.
        """
        if self.restoring:
            return False
        if self._ignore_mission_change:
            self._ignore_mission_change = False
            return False
        return True

    def prepare_for_mission(self, mission: Mission | None) -> bool:
        """Switch per-mission state when the mission identity changes.

        Archives the outgoing mission's pool, restores the incoming one's
        (or an empty pool), clears the tree-derived view, and owes a
        viewport reset.

        Returns:
            True if the mission identity changed.
        """
        new_key = mission.key if mission is not None else None
        if new_key == self._mission_key:
            return False

        if self._mission_key:
            self._archive[self._mission_key] = self._host.pool.copy()

        saved = self._archive.get(new_key) if new_key else None
        self._host.clear_view()
        self._host.pool = saved.copy() if saved is not None else UnattachedPool()
        self._host.mark_viewport_reset_pending()
        logger.debug("Switched mission %r -> %r", self._mission_key, new_key)
        self._mission_key = new_key
        self._initialized = False
        return True

    def build_snapshot(self) -> FlowSnapshot:
        host = self._host
        return FlowSnapshot(
            mission=clone_mission(host.mission),
            mission_nodes=tuple(clone_nodes(host.mission_nodes)),
            mission_connections=tuple(clone_connections(host.mission_connections)),
            pool_nodes=tuple(clone_nodes(host.pool.nodes)),
            pool_connections=tuple(clone_connections(host.pool.connections)),
            step_node_ids=tuple(host.step_node_ids().items()),
        )

    def record_history(self, kind: str) -> HistoryEntry | None:
        """Snapshot the current state.

        The first record after a mission switch initializes the stack
        instead of pushing.

        Returns:
            The pushed entry, or None when skipped or initializing.
        """
        if self.restoring:
            return None
        snapshot = self.build_snapshot()
        if not self._initialized:
            self.stack.initialize(snapshot)
            self._initialized = True
            return None
        entry = self.stack.update(snapshot, kind)
        logger.debug("Recorded %s", entry)
        return entry

    def reset_with_current_state(self) -> None:
        """Start a fresh history whose only entry is the current state."""
        self.stack.initialize(self.build_snapshot())
        self._initialized = True

    def can_undo(self) -> bool:
        return self.stack.can_undo()

    def can_redo(self) -> bool:
        return self.stack.can_redo()

    def undo(self) -> bool:
        """Restore the previous snapshot. Returns False if there is none."""
        if not self.stack.can_undo():
            return False
        self.traversing = True
        try:
            snapshot = self.stack.undo()
            if snapshot is not None:
                self._apply(snapshot)
        finally:
            self.traversing = False
        return True

    def redo(self) -> bool:
        """Re-apply the next snapshot. Returns False if there is none."""
        if not self.stack.can_redo():
            return False
        self.traversing = True
        try:
            snapshot = self.stack.redo()
            if snapshot is not None:
                self._apply(snapshot)
        finally:
            self.traversing = False
        return True

    def _apply(self, snapshot: FlowSnapshot) -> None:
        host = self._host
        self.restoring = True
        try:
            self._ignore_mission_change = True
            host.assign_mission(clone_mission(snapshot.mission))
            self._ignore_mission_change = False

            host.mission_nodes = clone_nodes(snapshot.mission_nodes)
            host.mission_connections = clone_connections(snapshot.mission_connections)
            host.pool = UnattachedPool(
                nodes=clone_nodes(snapshot.pool_nodes),
                connections=clone_connections(snapshot.pool_connections),
            )
            if self._mission_key:
                self._archive[self._mission_key] = host.pool.copy()

            host.restore_lookups(dict(snapshot.step_node_ids))
            host.recompute_merged_view()
            host.mark_needs_adjust()
            self._initialized = True
        finally:
            self.restoring = False

    def entries(self) -> list[HistoryEntry]:
        return list(self.stack)


__all__ = [
    "FlowSnapshot",
    "HistoryEntry",
    "HistoryHost",
    "HistoryManager",
    "SnapshotStack",
]
