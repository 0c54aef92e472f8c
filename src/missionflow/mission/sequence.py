"""Sequential attachment and edge splitting.

``insert_between`` translates "drop a step onto the edge parent -> child"
into a tree edit. Cases are tried in order and the first that applies
wins; each keeps the edit inside the smallest enclosing lane or sequence.
"""

from __future__ import annotations

import logging

from missionflow.mission.models import Mission, Step, StepKind, parallel, sequence
from missionflow.mission.tree import (
    contains_step,
    detach_everywhere,
    find_nearest_parallel_ancestor,
    find_parent_and_index,
    find_slot,
    index_of,
)

logger = logging.getLogger(__name__)


def should_append_sequentially(mission: Mission, parent: Step | None) -> bool:
    """Decide whether a new step after parent continues parent's lane.

    True when parent has no children and is either outside the tree, a
    lane of a Parallel, or the last step of its container.
    """
    if parent is None or parent.children:
        return False
    loc = find_slot(mission, parent)
    if loc is None:
        return True
    if loc.parent is not None and loc.parent.is_kind(StepKind.PARALLEL):
        return True
    return loc.next_sibling is None


def attach_child_sequentially(mission: Mission, parent: Step, child: Step) -> bool:
    """Make child the next step after parent, in the same lane.

    - No children: child becomes the only child.
    - Sole Sequence child: child is appended to it.
    - Otherwise the existing children and child are wrapped in a new
      Sequence (several existing children first become one Parallel, so
      child runs after all of them).
    """
    if parent is child or contains_step(child, parent):
        return False

    detach_everywhere(mission, child)
    if not parent.children:
        parent.children.append(child)
        return True

    if len(parent.children) == 1:
        sole = parent.children[0]
        if sole.is_kind(StepKind.SEQUENCE):
            if not sole.has_child(child):
                sole.children.append(child)
            return True
        parent.children = [sequence([sole, child])]
        return True

    parent.children = [sequence([parallel(parent.children), child])]
    return True


def _adjacent_in_sequence(
    mission: Mission, parent: Step, child: Step
) -> tuple[list[Step], int] | None:
    """Find a sequence where parent's element is directly followed by child.

    The mission's top-level list counts as a sequence. Returns the
    container and the index of child in it.
    """
    candidates: list[list[Step]] = [mission.steps]
    candidates.extend(s.children for s in mission.walk() if s.is_kind(StepKind.SEQUENCE))
    for container in candidates:
        idx = index_of(container, child)
        if idx > 0 and contains_step(container[idx - 1], parent):
            return container, idx
    return None


def _replace_and_adopt(
    mission: Mission, container: list[Step], index: int, mid: Step, child: Step
) -> None:
    """Put mid in child's slot and move child beneath mid."""
    container[index] = mid
    if not mid.has_child(child):
        mid.children.append(child)
    detach_everywhere(mission, child, except_parent=mid)


def insert_between(mission: Mission, parent: Step | None, child: Step, mid: Step) -> bool:
    """Splice mid onto the edge from parent to child.

    Cases, first match wins:
      a. parent is a childless lane of a Parallel: the lane becomes
         Sequence{parent, mid}. child stays where it is.
      b. parent is inside a Parallel that does not contain child (the edge
         leaves a lane): mid is placed right after parent in that lane.
      c. parent's element is directly followed by child in a sequence
         (or the top-level list): mid is spliced between them.
      d. no parent (edge from the start node) and child is top-level:
         mid takes child's slot and child moves beneath mid.
      e. child is found directly nested anywhere: mid takes its slot and
         child moves beneath mid.

    A Breakpoint wrapping parent is treated as part of parent's slot.

    Args:
        mission: The mission to edit.
        parent: Source step of the edge, or None for the start node.
        child: Target step of the edge.
        mid: Detached step to insert.

    Returns:
        True on success, False when no case applies.
    """
    if mid is child or mid is parent or contains_step(mid, child):
        return False
    if parent is not None and contains_step(mid, parent):
        return False

    if parent is not None:
        parent_loc = find_slot(mission, parent)
        if parent_loc is None:
            logger.debug("Insert anchor %r is not in the tree", parent)
            return False

        if (
            parent_loc.parent is not None
            and parent_loc.parent.is_kind(StepKind.PARALLEL)
            and not parent.children
        ):
            parent_loc.container[parent_loc.index] = sequence([parent_loc.step, mid])
            return True

        lane_parallel = find_nearest_parallel_ancestor(mission, parent)
        if lane_parallel is not None and not contains_step(lane_parallel, child):
            if parent_loc.parent is not None and parent_loc.parent.is_kind(StepKind.SEQUENCE):
                parent_loc.container.insert(parent_loc.index + 1, mid)
            else:
                parent_loc.container[parent_loc.index] = sequence([parent_loc.step, mid])
            return True

        adjacent = _adjacent_in_sequence(mission, parent, child)
        if adjacent is not None:
            container, idx = adjacent
            container.insert(idx, mid)
            return True
    else:
        idx = index_of(mission.steps, child)
        if idx != -1:
            _replace_and_adopt(mission, mission.steps, idx, mid, child)
            return True

    child_loc = find_parent_and_index(mission, child)
    if child_loc is None:
        logger.debug("Insert target %r is not in the tree", child)
        return False
    _replace_and_adopt(mission, child_loc.container, child_loc.index, mid, child)
    return True


__all__ = [
    "attach_child_sequentially",
    "insert_between",
    "should_append_sequentially",
]
