"""Mission step tree - the editable source of truth.

This module provides the core data structures for a mission:
- StepKind: Enum of step variants (action plus the structural containers)
- Position: Canvas coordinate
- StepArgument: One stored argument of an action step
- Step: Tagged tree node with identity-based equality
- MissionComment: Free text anchored between two action steps
- Mission: Named, ordered list of top-level steps plus comments
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, Union
from uuid import uuid4

ArgValue = Union[str, int, float, bool, None]


class StepKind(Enum):
    """Variants of a mission step.

    Only ACTION steps are executable and become graph nodes. The other
    kinds are structural containers that shape control flow:
    - SEQUENCE: children run strictly in order
    - PARALLEL: children share one entry and join into one exit
    - BREAKPOINT: exactly one child, marks the edges entering it
    """

    ACTION = "action"
    SEQUENCE = "seq"
    PARALLEL = "parallel"
    BREAKPOINT = "breakpoint"

    @property
    def is_structural(self) -> bool:
        """True for container kinds that never become graph nodes."""
        return self is not StepKind.ACTION

    @classmethod
    def detect(cls, step_type: str | None, function_name: str | None) -> StepKind:
        """Resolve the kind from persisted markers.

        Structural steps carry a reserved marker in ``function_name`` or
        ``step_type``; matching is case-insensitive.
        """
        markers = ((function_name or "").lower(), (step_type or "").lower())
        for kind in (cls.SEQUENCE, cls.PARALLEL, cls.BREAKPOINT):
            if kind.value in markers:
                return kind
        return cls.ACTION


@dataclass
class Position:
    """Canvas coordinate."""

    x: float = 0
    y: float = 0


@dataclass
class StepArgument:
    """A stored argument value of an action step.

    Values are persisted as strings; typed values are derived through
    ``missionflow.mission.arguments.coerce_value``.
    """

    name: str
    value: ArgValue = ""
    type: str = "str"


@dataclass(eq=False)
class Step:
    """A node in the mission step tree.

    Equality is identity: two steps with the same content are still
    different tree members. ``uid`` is the stable in-memory identity used
    by the graph projection; it survives cloning but is not persisted.

    Attributes:
        kind: The step variant.
        function_name: Executable name for actions, marker for containers.
        arguments: Ordered stored arguments (actions only).
        position: Optional canvas position saved with the mission.
        children: Nested steps.
        step_type: Raw persisted step type of an action.
        uid: Stable identity key.
    """

    kind: StepKind
    function_name: str = ""
    arguments: list[StepArgument] = field(default_factory=list)
    position: Position | None = None
    children: list[Step] = field(default_factory=list)
    step_type: str = ""
    uid: str = field(default_factory=lambda: uuid4().hex)

    @property
    def is_action(self) -> bool:
        return self.kind is StepKind.ACTION

    @property
    def is_structural(self) -> bool:
        return self.kind.is_structural

    def is_kind(self, kind: StepKind) -> bool:
        """Check the step variant."""
        return self.kind is kind

    def iter_children(self) -> Iterator[Step]:
        """Iterate over direct children."""
        yield from self.children

    def child_count(self) -> int:
        """Return number of direct children."""
        return len(self.children)

    def has_child(self, step: Step) -> bool:
        """Check if step is a direct child (by identity)."""
        return any(ch is step for ch in self.children)

    def get_argument(self, name: str) -> StepArgument | None:
        """Find a stored argument by name."""
        for arg in self.arguments:
            if arg.name == name:
                return arg
        return None

    def walk(self, order: str = "pre") -> Iterator[Step]:
        """Iterate over this step and its descendants.

        Args:
            order: Traversal order:
                - "pre": Parent first (depth-first, pre-order)
                - "post": Children first (depth-first, post-order)
                - "level": Breadth-first (level order)

        Yields:
            Step instances in the specified order.
        """
        if order == "pre":
            yield from self._walk_preorder()
        elif order == "post":
            yield from self._walk_postorder()
        elif order == "level":
            yield from self._walk_level()
        else:
            raise ValueError(f"Unknown traversal order: {order}")

    def _walk_preorder(self) -> Iterator[Step]:
        yield self
        for child in self.children:
            yield from child._walk_preorder()

    def _walk_postorder(self) -> Iterator[Step]:
        for child in self.children:
            yield from child._walk_postorder()
        yield self

    def _walk_level(self) -> Iterator[Step]:
        queue: deque[Step] = deque([self])
        while queue:
            step = queue.popleft()
            yield step
            queue.extend(step.children)

    def find(self, predicate: Callable[[Step], bool]) -> Iterator[Step]:
        """Find this step and descendants matching predicate."""
        for step in self.walk():
            if predicate(step):
                yield step

    def __repr__(self) -> str:
        if self.is_action:
            return f"Step({self.function_name!r}, children={self.children!r})"
        return f"Step<{self.kind.value}>({self.children!r})"


@dataclass
class MissionComment:
    """Free text placed on the canvas.

    ``before_path``/``after_path`` are dotted path keys of the action
    steps the comment sits between in document order. They are plain
    strings recomputed whenever the comment moves.
    """

    id: str
    text: str = ""
    position: Position = field(default_factory=Position)
    before_path: str | None = None
    after_path: str | None = None


@dataclass(eq=False)
class Mission:
    """A named mission: an implicit top-level sequence of steps.

    Attributes:
        name: Mission name (also the identity key when ``uuid`` is unset).
        is_setup: Runs before the regular missions.
        is_shutdown: Runs after the regular missions.
        order: Position in the project's mission list.
        steps: Top-level steps, executed in order.
        comments: Canvas comments.
        uuid: Optional backend identity.
    """

    name: str
    is_setup: bool = False
    is_shutdown: bool = False
    order: int = 0
    steps: list[Step] = field(default_factory=list)
    comments: list[MissionComment] = field(default_factory=list)
    uuid: str | None = None

    @property
    def key(self) -> str | None:
        """Identity key used to scope per-mission editor state."""
        return self.uuid or self.name or None

    def walk(self, order: str = "pre") -> Iterator[Step]:
        """Iterate over every step in the tree."""
        for step in self.steps:
            yield from step.walk(order)

    def iter_actions(self) -> Iterator[Step]:
        """Iterate over action steps in document order."""
        for step in self.walk():
            if step.is_action:
                yield step

    def find_by_uid(self, uid: str) -> Step | None:
        """Find a step by its identity key."""
        for step in self.walk():
            if step.uid == uid:
                return step
        return None

    def step_count(self) -> int:
        """Return total number of steps, structural ones included."""
        return sum(1 for _ in self.walk())


# ─────────────────────────────────────────────────────────────────────────────
# Factories
# ─────────────────────────────────────────────────────────────────────────────


def action(
    function_name: str,
    arguments: list[StepArgument] | None = None,
    children: list[Step] | None = None,
    position: Position | None = None,
    step_type: str = "",
) -> Step:
    """Create an action step."""
    return Step(
        kind=StepKind.ACTION,
        function_name=function_name,
        arguments=list(arguments or []),
        position=position,
        children=list(children or []),
        step_type=step_type,
    )


def container(kind: StepKind, children: list[Step] | None = None) -> Step:
    """Create an empty or pre-filled structural container."""
    if not kind.is_structural:
        raise ValueError(f"{kind.value} is not a structural kind")
    return Step(
        kind=kind,
        function_name=kind.value,
        children=list(children or []),
        step_type=kind.value,
    )


def sequence(children: list[Step] | None = None) -> Step:
    """Create a sequence container."""
    return container(StepKind.SEQUENCE, children)


def parallel(children: list[Step] | None = None) -> Step:
    """Create a parallel container."""
    return container(StepKind.PARALLEL, children)


def breakpoint_of(child: Step) -> Step:
    """Create a breakpoint wrapping exactly one step."""
    if not isinstance(child, Step):
        raise ValueError("A breakpoint wraps exactly one step")
    return container(StepKind.BREAKPOINT, [child])


__all__ = [
    "ArgValue",
    "Mission",
    "MissionComment",
    "Position",
    "Step",
    "StepArgument",
    "StepKind",
    "action",
    "breakpoint_of",
    "container",
    "parallel",
    "sequence",
]
