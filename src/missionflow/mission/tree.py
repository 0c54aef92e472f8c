"""Tree lookups and normalization for the mission step tree.

Steps carry no parent pointers. Locations are recovered by search, which
keeps a single owner per step without reference cycles. All membership
tests use identity, never structural equality.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from missionflow.mission.models import Mission, Step, StepKind


@dataclass
class StepLocation:
    """Where a step sits in the tree.

    Attributes:
        parent: The owning step, or None for top-level steps.
        container: The list holding the step (parent.children or mission.steps).
        index: Position of the step in ``container``.
    """

    parent: Step | None
    container: list[Step]
    index: int

    @property
    def step(self) -> Step:
        return self.container[self.index]

    @property
    def next_sibling(self) -> Step | None:
        if self.index + 1 < len(self.container):
            return self.container[self.index + 1]
        return None


def index_of(container: list[Step], target: Step) -> int:
    """Identity-based index lookup; -1 when absent."""
    for i, step in enumerate(container):
        if step is target:
            return i
    return -1


def find_parent_and_index(mission: Mission, target: Step) -> StepLocation | None:
    """Locate a step (depth-first, first occurrence).

    Args:
        mission: The mission to search.
        target: The step to find.

    Returns:
        StepLocation, or None when the step is not in the tree.
    """

    def dfs(container: list[Step], parent: Step | None) -> StepLocation | None:
        idx = index_of(container, target)
        if idx != -1:
            return StepLocation(parent=parent, container=container, index=idx)
        for step in container:
            found = dfs(step.children, step)
            if found:
                return found
        return None

    return dfs(mission.steps, None)


def find_slot(mission: Mission, target: Step) -> StepLocation | None:
    """Locate the slot a step occupies, looking through Breakpoint wrappers.

    Returns:
        Location of the outermost Breakpoint wrapping target (or of target
        itself), or None when target is not in the tree.
    """
    loc = find_parent_and_index(mission, target)
    while loc is not None and loc.parent is not None and loc.parent.is_kind(StepKind.BREAKPOINT):
        loc = find_parent_and_index(mission, loc.parent)
    return loc


def contains_step(root: Step, target: Step) -> bool:
    """True if target is root or one of its descendants."""
    if root is target:
        return True
    return any(contains_step(ch, target) for ch in root.children)


def in_tree(mission: Mission, target: Step) -> bool:
    """True if target is a member of the mission tree."""
    return find_parent_and_index(mission, target) is not None


def detach_everywhere(mission: Mission, target: Step, except_parent: Step | None = None) -> None:
    """Remove every reference to target from the tree.

    Lists are filtered in place so that previously obtained locations keep
    pointing at live containers.

    Args:
        mission: The mission to edit.
        target: The step to detach.
        except_parent: Keep target's membership under this one container.
    """
    mission.steps[:] = [s for s in mission.steps if s is not target]

    def walk(step: Step) -> None:
        if not step.children:
            return
        if step is not except_parent:
            step.children[:] = [ch for ch in step.children if ch is not target]
        for child in step.children:
            walk(child)

    for top in mission.steps:
        walk(top)


def normalize(mission: Mission, kind: StepKind) -> int:
    """Dissolve degenerate containers of one kind, depth-first.

    A Sequence or Parallel with at most one child is replaced by its child
    (or removed when empty). A Breakpoint is only removed when it has lost
    its child; a breakpoint keeps wrapping a single step.

    Args:
        mission: The mission to normalize.
        kind: Container kind to process.

    Returns:
        Number of containers dissolved.

    Raises:
        ValueError: If kind is not structural.
    """
    if not kind.is_structural:
        raise ValueError(f"Cannot normalize {kind.value} steps")
    limit = 0 if kind is StepKind.BREAKPOINT else 1
    dissolved = 0

    def walk(container: list[Step]) -> None:
        nonlocal dissolved
        i = 0
        while i < len(container):
            step = container[i]
            walk(step.children)
            if step.kind is kind and len(step.children) <= limit:
                container[i : i + 1] = step.children
                dissolved += 1
                continue
            i += 1

    walk(mission.steps)
    return dissolved


def normalize_all(mission: Mission) -> None:
    """Run the normalization passes until no container is left to dissolve.

    Dissolving one kind can empty a container of another kind (an empty
    Sequence inside a Breakpoint), so the passes repeat until stable.
    """
    while True:
        dissolved = normalize(mission, StepKind.BREAKPOINT)
        dissolved += normalize(mission, StepKind.PARALLEL)
        dissolved += normalize(mission, StepKind.SEQUENCE)
        if not dissolved:
            return


def iter_ancestors(mission: Mission, step: Step) -> Iterator[Step]:
    """Iterate ancestors of a step, nearest first."""

    def dfs(container: list[Step], stack: list[Step]) -> list[Step] | None:
        for candidate in container:
            if candidate is step:
                return stack
            found = dfs(candidate.children, [*stack, candidate])
            if found is not None:
                return found
        return None

    chain = dfs(mission.steps, [])
    if chain:
        yield from reversed(chain)


def find_nearest_parallel_ancestor(mission: Mission, step: Step) -> Step | None:
    """Return the closest enclosing Parallel container, or None."""
    for ancestor in iter_ancestors(mission, step):
        if ancestor.is_kind(StepKind.PARALLEL):
            return ancestor
    return None


def iter_memberships(mission: Mission) -> Iterator[Step]:
    """Yield every container membership (a step appears once per list it is in)."""

    def walk(container: list[Step]) -> Iterator[Step]:
        for step in container:
            yield step
            yield from walk(step.children)

    yield from walk(mission.steps)


def duplicate_members(mission: Mission) -> list[Step]:
    """Return steps referenced from more than one place in the tree."""
    seen: set[int] = set()
    duplicates: list[Step] = []
    for step in iter_memberships(mission):
        if id(step) in seen:
            duplicates.append(step)
        seen.add(id(step))
    return duplicates


def degenerate_containers(mission: Mission) -> list[Step]:
    """Return containers that violate the shape invariants.

    Sequence/Parallel with fewer than two children, and Breakpoints
    without exactly one child.
    """
    bad: list[Step] = []
    for step in mission.walk():
        if step.kind in (StepKind.SEQUENCE, StepKind.PARALLEL) and len(step.children) < 2:
            bad.append(step)
        elif step.kind is StepKind.BREAKPOINT and len(step.children) != 1:
            bad.append(step)
    return bad


__all__ = [
    "StepLocation",
    "contains_step",
    "degenerate_containers",
    "detach_everywhere",
    "duplicate_members",
    "find_nearest_parallel_ancestor",
    "find_parent_and_index",
    "find_slot",
    "in_tree",
    "index_of",
    "iter_ancestors",
    "iter_memberships",
    "normalize",
    "normalize_all",
]
