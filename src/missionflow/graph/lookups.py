"""Lookup tables between tree steps, graph nodes, paths and connections."""

from __future__ import annotations

from dataclasses import dataclass, field

from missionflow.mission.models import Step


@dataclass
class MissionLookups:
    """Identity and address maps for the current projection.

    Attributes:
        step_to_node_id: Step uid -> node id. Seeded before a rebuild so
            that persisting (and freshly promoted) steps keep their ids.
        node_id_to_step: Node id -> step.
        path_to_node_id: Path key -> node id.
        path_to_connection_ids: Path key -> ids of connections into it.
        step_paths: Step uid -> path.
    """

    step_to_node_id: dict[str, str] = field(default_factory=dict)
    node_id_to_step: dict[str, Step] = field(default_factory=dict)
    path_to_node_id: dict[str, str] = field(default_factory=dict)
    path_to_connection_ids: dict[str, list[str]] = field(default_factory=dict)
    step_paths: dict[str, list[int]] = field(default_factory=dict)

    def reset_for_mission(self) -> None:
        """Forget every mapping (mission switch)."""
        self.step_to_node_id.clear()
        self.node_id_to_step.clear()
        self.path_to_node_id.clear()
        self.path_to_connection_ids.clear()
        self.step_paths.clear()

    def set_node_lookups(self, step_to_node: dict[str, str], node_to_step: dict[str, Step]) -> None:
        self.step_to_node_id = dict(step_to_node)
        self.node_id_to_step = dict(node_to_step)

    def set_path_lookups(
        self, node_paths: dict[str, str], connection_paths: dict[str, list[str]]
    ) -> None:
        self.path_to_node_id = dict(node_paths)
        self.path_to_connection_ids = {k: list(v) for k, v in connection_paths.items()}

    def step_for_node(self, node_id: str) -> Step | None:
        return self.node_id_to_step.get(node_id)

    def node_for_step(self, step: Step) -> str | None:
        return self.step_to_node_id.get(step.uid)

    def bind(self, step: Step, node_id: str) -> None:
        """Reserve node_id for step ahead of the next rebuild."""
        self.step_to_node_id[step.uid] = node_id


__all__ = ["MissionLookups"]
