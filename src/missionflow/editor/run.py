"""Run-path correlation for execution progress events.

The executor reports progress as a stream of events. Step events name the
step by path, by timeline index, or by plain order; the tracker resolves
each to a path key and then to the node and connection ids to highlight.
Events that cannot be resolved are ignored.

Event shapes:
    {"type": "open"}
    {"type": "planned_steps", "steps": [{"path": [1, 2], "index": 4}, ...]}
    {"type": "step", "path": [...]} | {"type": "step", "timeline_index": n}
        | {"type": "step", "index": n}
    {"type": "exit"} | {"type": "error", "message"?: str}
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping

from missionflow.mission.paths import path_key

logger = logging.getLogger(__name__)


def _as_int(raw: Any) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        number = float(raw)
    except (TypeError, ValueError):
        return None
    return int(number) if number.is_integer() else None


def normalize_run_path(raw: Any) -> str | None:
    """Path key of an event path: a non-empty list of positive integers."""
    if not isinstance(raw, (list, tuple)) or not raw:
        return None
    parts: list[int] = []
    for part in raw:
        number = _as_int(part)
        if number is None or number <= 0:
            return None
        parts.append(number)
    return path_key(parts)


class RunPathTracker:
    """Maps step events to completed node and connection ids."""

    def __init__(self) -> None:
        self.completed_node_ids: set[str] = set()
        self.completed_connection_ids: set[str] = set()
        self._path_to_node_id: Mapping[str, str] = {}
        self._path_to_connection_ids: Mapping[str, list[str]] = {}
        self._planned_by_index: dict[int, str] = {}
        self._planned_by_order: dict[int, str] = {}

    def update_lookups(
        self,
        path_to_node_id: Mapping[str, str],
        path_to_connection_ids: Mapping[str, list[str]],
    ) -> None:
        self._path_to_node_id = path_to_node_id
        self._path_to_connection_ids = path_to_connection_ids

    def reset(self) -> None:
        """Clear completion overlays and the planned-step caches."""
        self.completed_node_ids = set()
        self.completed_connection_ids = set()
        self._planned_by_index.clear()
        self._planned_by_order.clear()

    def cache_planned_steps(self, payload: Mapping[str, Any]) -> None:
        """Remember the executor's plan: timeline index and order -> path key."""
        self._planned_by_index.clear()
        self._planned_by_order.clear()
        steps = payload.get("steps") if isinstance(payload, Mapping) else None
        if not isinstance(steps, list):
            return
        for order, step in enumerate(steps, start=1):
            if not isinstance(step, Mapping):
                continue
            key = normalize_run_path(step.get("path"))
            if key is None:
                continue
            timeline = _as_int(step.get("index"))
            if timeline is not None:
                self._planned_by_index[timeline] = key
            self._planned_by_order[order] = key

    def resolve_path_key(self, event: Mapping[str, Any]) -> str | None:
        """Resolve a step event to a path key.

        Tries the direct path, then the timeline index, then the plain
        index (as timeline index first, then as 1-based planned order).
        """
        direct = normalize_run_path(event.get("path"))
        if direct:
            return direct

        timeline = _as_int(event.get("timeline_index"))
        if timeline is not None and timeline in self._planned_by_index:
            return self._planned_by_index[timeline]

        index = _as_int(event.get("index"))
        if index is not None:
            return self._planned_by_index.get(index) or self._planned_by_order.get(index)
        return None

    def handle_step_event(self, event: Mapping[str, Any]) -> bool:
        """Mark the event's node and incoming connections completed.

        Returns:
            True if the event resolved to a known path.
        """
        key = self.resolve_path_key(event)
        if key is None:
            logger.debug("Ignoring unresolvable step event %r", event)
            return False
        node_id = self._path_to_node_id.get(key)
        if node_id:
            self.completed_node_ids.add(node_id)
        self.completed_connection_ids.update(self._path_to_connection_ids.get(key, []))
        return node_id is not None

    def is_node_completed(self, node_id: str) -> bool:
        return node_id in self.completed_node_ids

    def is_connection_completed(self, connection_id: str) -> bool:
        return connection_id in self.completed_connection_ids


class RunManager:
    """Consumes an execution event stream for the current mission.

    Args:
        on_stop: Called with the project id when an active run is stopped.
        on_error: Called with the executor's message when the run fails.
    """

    def __init__(
        self,
        on_stop: Callable[[str], None] | None = None,
        on_error: Callable[[str], None] | None = None,
    ) -> None:
        self.tracker = RunPathTracker()
        self.active = False
        self._on_stop = on_stop
        self._on_error = on_error
        self._stream: Iterable[Any] | None = None
        self._project_id: str | None = None

    def update_path_lookups(
        self,
        path_to_node_id: Mapping[str, str],
        path_to_connection_ids: Mapping[str, list[str]],
    ) -> None:
        self.tracker.update_lookups(path_to_node_id, path_to_connection_ids)

    def clear_run_visuals(self) -> None:
        self.tracker.reset()

    def is_node_completed(self, node_id: str) -> bool:
        return self.tracker.is_node_completed(node_id)

    def is_connection_completed(self, connection_id: str) -> bool:
        return self.tracker.is_connection_completed(connection_id)

    def handle_event(self, event: Any) -> None:
        """Dispatch one event by its ``type``; unknown events are ignored."""
        if not isinstance(event, Mapping):
            return
        kind = event.get("type")
        if kind == "open":
            self.active = True
        elif kind == "planned_steps":
            self.tracker.cache_planned_steps(event)
        elif kind == "step":
            self.tracker.handle_step_event(event)
        elif kind == "exit":
            self.active = False
        elif kind == "error":
            self.active = False
            message = str(event.get("message") or "executor reported an error")
            logger.warning("Mission run error: %s", message)
            if self._on_error is not None:
                self._on_error(message)

    def run(
        self,
        events: Iterable[Any],
        project_id: str | None,
        mission_key: str | None,
        mode: str = "normal",
    ) -> bool:
        """Consume a run's event stream one event at a time.

        Args:
            events: The executor's event stream.
            project_id: Project the mission belongs to.
            mission_key: Identity of the mission being run.
            mode: Only "normal" runs are supported.

        Returns:
            False if the run was not started.
        """
        if mode != "normal":
            logger.info("Ignoring %s run request", mode)
            return False
        if not project_id or not mission_key:
            logger.warning("Run aborted: missing project or mission identifier")
            return False

        self.clear_run_visuals()
        self.active = True
        self._project_id = project_id
        stream = self._stream = events
        try:
            for event in stream:
                if self._stream is not stream:
                    break
                self.handle_event(event)
        finally:
            if self._stream is stream:
                self._stream = None
                self.active = False
        return True

    def stop(self) -> None:
        """Cancel the stream, clear overlays, and notify the executor."""
        if self._stream is None and not self.active:
            return
        self._stream = None
        self.active = False
        self.clear_run_visuals()
        if self._project_id and self._on_stop is not None:
            self._on_stop(self._project_id)


__all__ = ["RunManager", "RunPathTracker", "normalize_run_path"]
