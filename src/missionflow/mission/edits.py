"""Removal and breakpoint edits on the step tree."""

from __future__ import annotations

import logging

from missionflow.mission.models import Mission, Step, StepKind, breakpoint_of
from missionflow.mission.paths import first_action
from missionflow.mission.tree import find_parent_and_index, iter_ancestors, normalize_all

logger = logging.getLogger(__name__)


def remove_step(mission: Mission, step: Step) -> bool:
    """Delete a step from the tree.

    An action with exactly one child is replaced in place by that child,
    so its predecessor connects straight to the child. Any other step is
    removed together with its subtree. Degenerate containers left behind
    are dissolved afterwards.

    Returns:
        True if the step was found and removed.
    """
    loc = find_parent_and_index(mission, step)
    if loc is None:
        logger.debug("Cannot remove %r: not in the tree", step)
        return False

    if step.is_action and len(step.children) == 1:
        loc.container[loc.index] = step.children[0]
        step.children = []
    else:
        del loc.container[loc.index]

    normalize_all(mission)
    return True


def enclosing_breakpoint(mission: Mission, step: Step) -> Step | None:
    """Return the Breakpoint that marks the edges into step, if any.

    Walks up through structural containers only; an action ancestor ends
    the search since its breakpoint marks a different edge.
    """
    for ancestor in iter_ancestors(mission, step):
        if ancestor.is_kind(StepKind.BREAKPOINT):
            return ancestor if first_action(ancestor) is step else None
        if ancestor.is_action:
            return None
    return None


def add_breakpoint(mission: Mission, step: Step) -> bool:
    """Wrap step in a Breakpoint so every edge into it is marked.

    Returns:
        False when step is not in the tree or already has a breakpoint.
    """
    loc = find_parent_and_index(mission, step)
    if loc is None or step.is_kind(StepKind.BREAKPOINT):
        return False
    if enclosing_breakpoint(mission, step) is not None:
        return False
    loc.container[loc.index] = breakpoint_of(step)
    return True


def remove_breakpoint(mission: Mission, step: Step) -> bool:
    """Unwrap the Breakpoint marking the edges into step.

    Returns:
        False when step has no breakpoint.
    """
    wrapper = enclosing_breakpoint(mission, step)
    if wrapper is None:
        return False
    outer = find_parent_and_index(mission, wrapper)
    if outer is None:
        return False
    outer.container[outer.index : outer.index + 1] = wrapper.children
    wrapper.children = []
    return True


__all__ = [
    "add_breakpoint",
    "enclosing_breakpoint",
    "remove_breakpoint",
    "remove_step",
]
