"""Parallel attachment helpers.

These operations make a step run concurrently with whatever currently
follows an anchor step. They prefer growing the nearest existing Parallel
over creating a new one.
"""

from __future__ import annotations

import logging

from missionflow.mission.models import Mission, Step, StepKind, parallel, sequence
from missionflow.mission.tree import (
    contains_step,
    detach_everywhere,
    find_parent_and_index,
    find_slot,
)

logger = logging.getLogger(__name__)


def _add_lane(par: Step, child: Step) -> None:
    """Add child as a lane, flattening the lanes of a Parallel child."""
    lanes = child.children if child.is_kind(StepKind.PARALLEL) else [child]
    for lane in list(lanes):
        if not par.has_child(lane):
            par.children.append(lane)


def ensure_top_level_parallel(mission: Mission) -> Step:
    """Return a Parallel in the first top-level slot, creating it if needed.

    An existing first step is absorbed as the first lane.
    """
    first = mission.steps[0] if mission.steps else None
    if first is not None and first.is_kind(StepKind.PARALLEL):
        return first
    par = parallel()
    if first is not None:
        mission.steps[0] = par
        par.children.append(first)
    else:
        mission.steps.append(par)
    return par


def ensure_parallel_after(mission: Mission, parent: Step | None) -> Step | None:
    """Return the Parallel that runs right after ``parent``.

    - No parent: the top-level parallel at the start of the mission.
    - Parent is a lane of a Parallel: that Parallel, unless it is the last
      step of its own context and already has two or more lanes, in which
      case a new Parallel is created right after it.
    - The slot after parent holds a Parallel: reuse it.
    - Otherwise a new Parallel is inserted after parent, absorbing the
      step that was in that slot as its first lane.

    A parent wrapped in a Breakpoint is handled at the Breakpoint's slot.

    Returns:
        The Parallel, or None when parent is not in the tree.
    """
    if parent is None:
        return ensure_top_level_parallel(mission)

    loc = find_slot(mission, parent)
    if loc is None:
        return None

    if loc.parent is not None and loc.parent.is_kind(StepKind.PARALLEL):
        enclosing = loc.parent
        outer = find_slot(mission, enclosing)
        if outer is not None and outer.next_sibling is None and len(enclosing.children) >= 2:
            after = parallel()
            outer.container.insert(outer.index + 1, after)
            return after
        return enclosing

    following = loc.next_sibling
    if following is not None and following.is_kind(StepKind.PARALLEL):
        return following

    par = parallel()
    if following is not None:
        loc.container[loc.index + 1] = par
        par.children.append(following)
    else:
        loc.container.insert(loc.index + 1, par)
    return par


def attach_to_start_with_parallel(mission: Mission, child: Step) -> bool:
    """Make child an entry lane of the mission, next to the other first steps."""
    par = ensure_top_level_parallel(mission)
    if par is child:
        return False
    detach_everywhere(mission, child)
    if not par.has_child(child):
        par.children.append(child)
    return True


def _promote_single_child(mission: Mission, parent: Step, child: Step) -> None:
    """Turn parent's only action child into a lane next to child.

    The promoted child's own descendants become a continuation that runs
    after the new Parallel, so they are not swallowed into a lane.
    """
    existing = parent.children[0]
    detach_everywhere(mission, child)

    continuation = list(existing.children)
    existing.children = []

    par = parallel([existing])
    _add_lane(par, child)

    if not continuation:
        parent.children = [par]
        return
    tail = continuation[0] if len(continuation) == 1 else parallel(continuation)
    parent.children = [sequence([par, tail])]


def attach_child_with_parallel(mission: Mission, parent: Step, child: Step) -> bool:
    """Make child run concurrently with whatever currently follows parent.

    Args:
        mission: The mission to edit.
        parent: Anchor step already in the tree.
        child: Step to attach (detached from its old position first).

    Returns:
        True on success, False when no attachment point exists.
    """
    if parent is child or contains_step(child, parent):
        logger.debug("Refusing to attach %r below itself", child)
        return False
    if find_parent_and_index(mission, parent) is None:
        logger.debug("Parallel attach anchor %r is not in the tree", parent)
        return False

    if len(parent.children) == 1 and parent.children[0] is not child:
        existing = parent.children[0]
        if existing.is_action:
            _promote_single_child(mission, parent, child)
            return True
        if existing.is_kind(StepKind.PARALLEL):
            detach_everywhere(mission, child)
            _add_lane(existing, child)
            return True
        detach_everywhere(mission, child)
        par = parallel([existing])
        _add_lane(par, child)
        parent.children = [par]
        return True

    if parent.children:
        detach_everywhere(mission, child)
        if child.is_kind(StepKind.PARALLEL):
            parent.children.extend(child.children)
        elif not parent.has_child(child):
            parent.children.append(child)
        return True

    detach_everywhere(mission, child)
    par = ensure_parallel_after(mission, parent)
    if par is None:
        return False
    _add_lane(par, child)
    return True


__all__ = [
    "attach_child_with_parallel",
    "attach_to_start_with_parallel",
    "ensure_parallel_after",
    "ensure_top_level_parallel",
]
