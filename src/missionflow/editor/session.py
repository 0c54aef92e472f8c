"""EditorSession - graph edits in, tree edits and history out.

The session owns all editable state of one open editor: the current
mission, its projection, the unattached pool, the merged canvas view,
lookups, layout flags, history, run overlays and debounce timers.

Every public edit follows the same shape:
    1. settle pending debounced work (so it is recorded first)
    2. translate the graph edit into a tree or pool edit
    3. on success, rebuild the projection and record one history entry
A structural edit that fails leaves the mission exactly as it was and
records nothing.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Iterable
from uuid import uuid4

from missionflow.editor.clone import clone_mission
from missionflow.editor.comments import compute_comment_anchors
from missionflow.editor.debounce import Debouncer
from missionflow.editor.history import HistoryEntry, HistoryManager
from missionflow.editor.run import RunManager
from missionflow.errors import MissionflowError, PersistenceError
from missionflow.graph.builder import MissionViewBuilder
from missionflow.graph.catalog import StepCatalog, StepDefinition, step_from_unattached
from missionflow.graph.FlowNode import (
    START_NODE_ID,
    Connection,
    FlowNode,
    FlowNodeKind,
    PortKind,
    base_id,
    port_id,
)
from missionflow.graph.lookups import MissionLookups
from missionflow.graph.pool import MergedView, UnattachedPool, merge_view
from missionflow.graph.serialize import serialize_connection, serialize_node
from missionflow.mission.arguments import resolve_control_value, to_stored, values_equal
from missionflow.mission.edits import add_breakpoint, remove_breakpoint, remove_step
from missionflow.mission.models import Mission, MissionComment, Position, Step, StepArgument
from missionflow.mission.parallel import attach_child_with_parallel, attach_to_start_with_parallel
from missionflow.mission.paths import compute_step_paths, path_key
from missionflow.mission.sequence import (
    attach_child_sequentially,
    insert_between,
    should_append_sequentially,
)
from missionflow.mission.serialize import serialize_mission
from missionflow.mission.tree import detach_everywhere, normalize_all

logger = logging.getLogger(__name__)

TreeEdit = Callable[[Mission], bool]


def _ensure_argument(step: Step, index: int, name: str, arg_type: str | None) -> StepArgument:
    """Return the stored argument an edit targets, creating it if missing."""
    if 0 <= index < len(step.arguments):
        arg = step.arguments[index]
        if name and not arg.name:
            arg.name = name
        if arg_type and not arg.type:
            arg.type = arg_type
        return arg
    existing = step.get_argument(name)
    if existing is not None:
        return existing
    arg = StepArgument(name=name, value="", type=arg_type or "str")
    step.arguments.append(arg)
    return arg


class EditorSession:
    """Editable state of one mission editor.

    Args:
        catalog: Step definitions for node display and argument types.
        store: Where missions are saved (optional).
        project_id: Project the missions belong to.
        debounce_seconds: Quiet period before an argument edit is recorded.
        auto_layout: When True, dragging a tree node does not change the
            step's stored position.
        orientation: "vertical" or "horizontal"; used for comment anchors.
        clock: Time source for debounce timers.
        max_history: Cap on history entries (None = unbounded).
        on_stop_run: Called with the project id when a run is stopped.
    """

    def __init__(
        self,
        catalog: StepCatalog | None = None,
        store: Any = None,
        project_id: str | None = None,
        *,
        debounce_seconds: float = 0.5,
        auto_layout: bool = True,
        orientation: str = "vertical",
        clock: Callable[[], float] = time.monotonic,
        max_history: int | None = None,
        on_stop_run: Callable[[str], None] | None = None,
    ) -> None:
        self.catalog = catalog or StepCatalog()
        self.builder = MissionViewBuilder(self.catalog)
        self.store = store
        self.project_id = project_id
        self.auto_layout = auto_layout
        self.orientation = orientation

        self.mission: Mission | None = None
        self.mission_nodes: list[FlowNode] = []
        self.mission_connections: list[Connection] = []
        self.pool = UnattachedPool()
        self.nodes: list[FlowNode] = []
        self.connections: list[Connection] = []
        self.lookups = MissionLookups()

        self.needs_adjust = False
        self.pending_viewport_reset = False
        self.notifications: list[str] = []
        self._comment_drafts: dict[str, str] = {}

        self.history = HistoryManager(self, max_history)
        self.run_manager = RunManager(on_stop_run, on_error=self._run_failed)
        self.debouncer = Debouncer(debounce_seconds, clock)

    @classmethod
    def from_config(
        cls,
        config: dict[str, Any],
        catalog: StepCatalog | None = None,
        store: Any = None,
        project_id: str | None = None,
        **kwargs: Any,
    ) -> EditorSession:
        """Create a session from the ``[editor]`` config section."""
        editor = config.get("editor", {})
        kwargs.setdefault("max_history", int(editor.get("max_history") or 0) or None)
        return cls(
            catalog,
            store,
            project_id,
            debounce_seconds=float(editor.get("debounce_seconds", 0.5)),
            auto_layout=bool(editor.get("auto_layout", True)),
            orientation=str(editor.get("orientation", "vertical")),
            **kwargs,
        )

    # ─────────────────────────────────────────────────────────────────────
    # History host
    # ─────────────────────────────────────────────────────────────────────

    def step_node_ids(self) -> dict[str, str]:
        return dict(self.lookups.step_to_node_id)

    def assign_mission(self, mission: Mission | None) -> None:
        self.mission = mission
        self.on_mission_changed()

    def clear_view(self) -> None:
        self.mission_nodes = []
        self.mission_connections = []
        self.nodes = []
        self.connections = []
        self.lookups.reset_for_mission()

    def recompute_merged_view(self) -> None:
        merged = merge_view(self.mission_nodes, self.mission_connections, self.pool)
        self.nodes = merged.nodes
        self.connections = merged.connections

    def mark_needs_adjust(self) -> None:
        self.needs_adjust = True

    def mark_viewport_reset_pending(self) -> None:
        self.pending_viewport_reset = True

    def restore_lookups(self, step_node_ids: dict[str, str]) -> None:
        """Rebind lookups to the current mission without re-projecting.

        Used after a snapshot apply (nodes and connections come from the
        snapshot) and after a failed edit (nothing changed on screen).
        """
        self.lookups.reset_for_mission()
        if self.mission is not None:
            step_to_node: dict[str, str] = {}
            node_to_step: dict[str, Step] = {}
            for step in self.mission.iter_actions():
                node_id = step_node_ids.get(step.uid)
                if node_id:
                    step_to_node[step.uid] = node_id
                    node_to_step[node_id] = step
            self.lookups.set_node_lookups(step_to_node, node_to_step)

            paths = compute_step_paths(self.mission)
            node_paths = {
                path_key(p): step_to_node[uid]
                for uid, p in paths.by_uid.items()
                if uid in step_to_node
            }
            connection_paths: dict[str, list[str]] = {}
            for conn in self.mission_connections:
                if conn.target_path_key:
                    connection_paths.setdefault(conn.target_path_key, []).append(conn.id)
            self.lookups.set_path_lookups(node_paths, connection_paths)
            self.lookups.step_paths = {uid: list(p) for uid, p in paths.by_uid.items()}
        self.run_manager.update_path_lookups(
            self.lookups.path_to_node_id, self.lookups.path_to_connection_ids
        )
        self.run_manager.clear_run_visuals()

    # ─────────────────────────────────────────────────────────────────────
    # Mission lifecycle
    # ─────────────────────────────────────────────────────────────────────

    def set_mission(self, mission: Mission | None) -> None:
        """Open a mission (or close the current one with None)."""
        self.settle()
        self.assign_mission(mission)

    def on_mission_changed(self) -> None:
        """React to a new mission assignment.

        Skipped while a history snapshot is being applied.
        """
        if not self.history.should_process_mission_change():
            return
        changed = self.history.prepare_for_mission(self.mission)
        if changed:
            self._comment_drafts.clear()

        if self.mission is not None:
            self.rebuild()
            self.needs_adjust = True
        else:
            self.clear_view()
            self.run_manager.update_path_lookups(
                self.lookups.path_to_node_id, self.lookups.path_to_connection_ids
            )

        if changed:
            self.history.reset_with_current_state()

    def rebuild(self) -> None:
        """Re-project the mission and refresh every derived view."""
        view = self.builder.build(self.mission, previous=dict(self.lookups.step_to_node_id))
        view.apply_to(self.lookups)
        self.mission_nodes = view.nodes
        self.mission_connections = view.connections
        self.run_manager.update_path_lookups(
            self.lookups.path_to_node_id, self.lookups.path_to_connection_ids
        )
        self.recompute_merged_view()
        self.run_manager.clear_run_visuals()

    @property
    def merged(self) -> MergedView:
        return MergedView(nodes=list(self.nodes), connections=list(self.connections))

    def settle(self) -> int:
        """Run pending debounced work now."""
        return self.debouncer.flush()

    def tick(self) -> int:
        """Run debounced work whose quiet period has elapsed."""
        return self.debouncer.poll()

    def _record(self, kind: str) -> HistoryEntry | None:
        return self.history.record_history(kind)

    def _structural_edit(
        self,
        kind: str,
        edit: TreeEdit,
        on_success: Callable[[], None] | None = None,
    ) -> bool:
        """Apply a tree edit as a transaction.

        On failure the mission is restored from a clone taken before the
        edit. On success the tree is normalized, the projection rebuilt,
        and one history entry recorded.
        """
        if self.mission is None:
            return False
        backup = clone_mission(self.mission)
        bindings = self.step_node_ids()
        if not edit(self.mission):
            logger.debug("Structural edit %s found no attachment point", kind)
            self.mission = backup
            self.restore_lookups(bindings)
            return False
        normalize_all(self.mission)
        if on_success is not None:
            on_success()
        self.rebuild()
        self.needs_adjust = True
        self._record(kind)
        return True

    # ─────────────────────────────────────────────────────────────────────
    # Node edits
    # ─────────────────────────────────────────────────────────────────────

    def find_node(self, node_id: str) -> FlowNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def create_node(
        self, definition: StepDefinition | None, position: Position | None = None
    ) -> FlowNode:
        """Place a new unattached node on the canvas."""
        self.settle()
        node = FlowNode(
            id=uuid4().hex,
            kind=FlowNodeKind.UNATTACHED,
            text=definition.name if definition is not None else "New node",
            definition=definition,
            args=self.catalog.default_args(definition) if definition is not None else {},
            position=Position(position.x, position.y) if position is not None else Position(),
        )
        self.pool.add_node(node)
        self.recompute_merged_view()
        self.needs_adjust = True
        self._record("create-node")
        return node

    def delete_node(self, node_id: str) -> bool:
        """Delete a tree node (reconnecting around it) or an unattached node."""
        self.settle()
        if node_id == START_NODE_ID:
            return False
        step = self.lookups.step_for_node(node_id)
        if step is not None and self.mission is not None:
            return self._structural_edit("delete-node", lambda m: remove_step(m, step))
        if self.pool.remove_node(node_id) is None:
            return False
        self.recompute_merged_view()
        self.needs_adjust = True
        self._record("delete-node")
        return True

    def move_node(self, node_id: str, position: Position) -> bool:
        """Move a node; tree steps keep the position unless auto-layout is on."""
        self.settle()
        node = self.pool.find_node(node_id)
        if node is None:
            node = next((n for n in self.mission_nodes if n.id == node_id), None)
            if node is None:
                return False
            step = self.lookups.step_for_node(node_id)
            if step is not None and not self.auto_layout:
                step.position = Position(position.x, position.y)
        node.position = Position(position.x, position.y)
        self.recompute_merged_view()
        self._record("move-node")
        return True

    def change_argument(self, node_id: str, name: str, index: int, raw: Any) -> bool:
        """Apply an edited argument value.

        The node and the backing step change immediately; the history
        record and save are debounced per node and argument, so a burst
        of keystrokes produces one entry holding the final value.

        Returns:
            True if the value changed.
        """
        node = self.find_node(node_id)
        if node is None:
            return False
        stored_name = name or f"arg{index}"
        arg_type = None
        if node.definition is not None and 0 <= index < len(node.definition.arguments):
            arg_type = node.definition.arguments[index].type
        resolved = resolve_control_value(raw, arg_type)
        persisted = to_stored(resolved)

        current = node.args.get(stored_name)
        node.args[stored_name] = resolved
        changed = not values_equal(current, resolved)

        step = self.lookups.step_for_node(node_id)
        if step is not None:
            target = _ensure_argument(step, index, stored_name, arg_type)
            if not changed:
                changed = to_stored(target.value) != persisted
            if not changed:
                return False
            target.value = persisted
        elif not changed:
            return False

        self.debouncer.schedule((node_id, stored_name), self._argument_settled)
        return True

    def _argument_settled(self) -> None:
        self._record("update-argument")
        self.save()

    # ─────────────────────────────────────────────────────────────────────
    # Connection edits
    # ─────────────────────────────────────────────────────────────────────

    def _promote(self, node_id: str, parent: Step | None, kind: str) -> bool:
        node = self.pool.find_node(node_id)
        if node is None:
            return False
        step = step_from_unattached(node)

        def edit(mission: Mission) -> bool:
            if parent is None:
                mission.steps.append(step)
                return True
            if should_append_sequentially(mission, parent) and attach_child_sequentially(
                mission, parent, step
            ):
                return True
            return attach_child_with_parallel(mission, parent, step)

        def on_success() -> None:
            self.lookups.bind(step, node.id)
            self.pool.remove_node(node.id)

        return self._structural_edit(kind, edit, on_success)

    def add_connection(self, output_port: str, input_port: str) -> bool:
        """Connect two ports.

        Tree edits are tried first; a connection that cannot be expressed
        in the tree is kept in the unattached pool.
        """
        self.settle()
        if self.mission is None:
            return False
        source = base_id(output_port, PortKind.OUTPUT)
        target = base_id(input_port, PortKind.INPUT)
        if source == target or target == START_NODE_ID:
            return False

        src_step = self.lookups.step_for_node(source)
        dst_step = self.lookups.step_for_node(target)

        if source == START_NODE_ID:
            if dst_step is not None:
                if self._structural_edit(
                    "attach-to-start", lambda m: attach_to_start_with_parallel(m, dst_step)
                ):
                    return True
            elif self._promote(target, None, "attach-to-start"):
                return True

        if src_step is not None and dst_step is None:
            if self._promote(target, src_step, "promote-node"):
                return True

        if src_step is not None and dst_step is not None:
            if self._structural_edit(
                "connect-existing-steps",
                lambda m: attach_child_with_parallel(m, src_step, dst_step),
            ):
                return True

        self.pool.add_connection(
            Connection(id=uuid4().hex, output_id=output_port, input_id=input_port)
        )
        self.recompute_merged_view()
        self._record("create-adhoc-connection")
        return True

    def split_connection(self, node_id: str, connection_id: str) -> bool:
        """Drop a node onto a connection, splicing it into that edge."""
        self.settle()
        if node_id == START_NODE_ID:
            return False

        pooled = self.pool.find_connection(connection_id)
        if pooled is not None:
            if pooled.touches(node_id):
                return False
            tail = Connection(
                id=uuid4().hex,
                output_id=port_id(node_id, PortKind.OUTPUT),
                input_id=pooled.input_id,
            )
            pooled.input_id = port_id(node_id, PortKind.INPUT)
            self.pool.add_connection(tail)
            self.recompute_merged_view()
            self._record("split-adhoc-connection")
            return True

        if self.mission is None:
            return False
        conn = next((c for c in self.mission_connections if c.id == connection_id), None)
        if conn is None:
            return False
        source = conn.source_node_id
        parent = None if source == START_NODE_ID else self.lookups.step_for_node(source)
        child = self.lookups.step_for_node(conn.target_node_id)
        if child is None or (parent is None and source != START_NODE_ID):
            return False

        mid = self.lookups.step_for_node(node_id)
        unattached = None
        if mid is None:
            unattached = self.pool.find_node(node_id)
            if unattached is None:
                return False
            mid = step_from_unattached(unattached)
        if mid is parent or mid is child:
            return False

        def edit(mission: Mission) -> bool:
            detach_everywhere(mission, mid)
            return insert_between(mission, parent, child, mid)

        def on_success() -> None:
            if unattached is not None:
                self.lookups.bind(mid, unattached.id)
                self.pool.remove_node(unattached.id)

        return self._structural_edit("split-mission-connection", edit, on_success)

    def _connection_target(self, connection_id: str) -> tuple[Connection, Step] | None:
        conn = next((c for c in self.mission_connections if c.id == connection_id), None)
        if conn is None:
            return None
        step = self.lookups.step_for_node(conn.target_node_id)
        if step is None:
            return None
        return conn, step

    def add_breakpoint(self, connection_id: str) -> bool:
        """Mark a tree connection's target with a breakpoint."""
        self.settle()
        found = self._connection_target(connection_id)
        if found is None or found[0].has_breakpoint:
            return False
        step = found[1]
        return self._structural_edit("add-breakpoint", lambda m: add_breakpoint(m, step))

    def remove_breakpoint(self, connection_id: str) -> bool:
        """Remove the breakpoint a tree connection passes through."""
        self.settle()
        found = self._connection_target(connection_id)
        if found is None or not found[0].has_breakpoint:
            return False
        step = found[1]
        return self._structural_edit("remove-breakpoint", lambda m: remove_breakpoint(m, step))

    # ─────────────────────────────────────────────────────────────────────
    # Comments
    # ─────────────────────────────────────────────────────────────────────

    def find_comment(self, comment_id: str) -> MissionComment | None:
        if self.mission is None:
            return None
        return next((c for c in self.mission.comments if c.id == comment_id), None)

    def _anchor(self, comment: MissionComment) -> None:
        comment.before_path, comment.after_path = compute_comment_anchors(
            comment.position, self.mission_nodes, self.orientation
        )

    def add_comment(self, position: Position, text: str = "") -> MissionComment | None:
        self.settle()
        if self.mission is None:
            return None
        comment = MissionComment(
            id=f"comment-{uuid4().hex}", text=text, position=Position(position.x, position.y)
        )
        self._anchor(comment)
        self.mission.comments.append(comment)
        self._record("create-comment")
        return comment

    def set_comment_text(self, comment_id: str, text: str) -> bool:
        """Update a comment while typing; recorded on blur."""
        comment = self.find_comment(comment_id)
        if comment is None:
            return False
        comment.text = text
        return True

    def focus_comment(self, comment_id: str) -> None:
        comment = self.find_comment(comment_id)
        if comment is not None:
            self._comment_drafts[comment_id] = comment.text

    def blur_comment(self, comment_id: str) -> bool:
        """Finish editing; records ``edit-comment`` only if the text changed."""
        initial = self._comment_drafts.pop(comment_id, None)
        comment = self.find_comment(comment_id)
        if comment is None or initial is None or initial == comment.text:
            return False
        self.settle()
        self._record("edit-comment")
        return True

    def move_comment(self, comment_id: str, position: Position) -> bool:
        self.settle()
        comment = self.find_comment(comment_id)
        if comment is None:
            return False
        comment.position = Position(position.x, position.y)
        self._anchor(comment)
        self._record("move-comment")
        return True

    def delete_comment(self, comment_id: str) -> bool:
        self.settle()
        comment = self.find_comment(comment_id)
        if comment is None or self.mission is None:
            return False
        self.mission.comments = [c for c in self.mission.comments if c is not comment]
        self._comment_drafts.pop(comment_id, None)
        self._record("delete-comment")
        return True

    # ─────────────────────────────────────────────────────────────────────
    # History, persistence, runs
    # ─────────────────────────────────────────────────────────────────────

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    def undo(self) -> bool:
        self.settle()
        return self.history.undo()

    def redo(self) -> bool:
        self.settle()
        return self.history.redo()

    def _notify(self, message: str) -> None:
        self.notifications.append(message)

    def _run_failed(self, message: str) -> None:
        self._notify(f"Mission run failed: {message}")

    def save(self) -> bool:
        """Save the current mission through the store.

        A failure is reported as a notification; the in-memory mission is
        kept as is.
        """
        if self.mission is None or self.store is None or not self.project_id:
            return False
        try:
            self.store.save(self.project_id, self.mission)
        except PersistenceError as e:
            logger.warning("Could not save mission %r: %s", self.mission.name, e)
            self._notify(f"Could not save mission: {e}")
            return False
        return True

    def run(self, events: Iterable[Any], mode: str = "normal") -> bool:
        """Follow a run's event stream, highlighting completed steps."""
        key = self.mission.key if self.mission is not None else None
        try:
            return self.run_manager.run(events, self.project_id, key, mode)
        except (OSError, MissionflowError) as e:
            logger.warning("Mission run failed: %s", e)
            self._notify(f"Mission run failed: {e}")
            return False

    def stop_run(self) -> None:
        self.run_manager.stop()

    def state_dict(self) -> dict[str, Any]:
        """Value view of the editable state (mission, projection, pool)."""
        return {
            "mission": serialize_mission(self.mission) if self.mission is not None else None,
            "mission_nodes": [serialize_node(n) for n in self.mission_nodes],
            "mission_connections": [serialize_connection(c) for c in self.mission_connections],
            "pool_nodes": [serialize_node(n) for n in self.pool.nodes],
            "pool_connections": [serialize_connection(c) for c in self.pool.connections],
        }


__all__ = ["EditorSession"]
