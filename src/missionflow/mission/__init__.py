"""Mission module - The editable step tree and its structural edits.

Exports:
- StepKind: Enum of step variants
- Step: Tree node (action or structural container)
- Mission: Named list of top-level steps plus comments
- MissionComment, Position, StepArgument: Supporting value types
- compute_step_paths / PathIndex: Dotted addresses of action steps
- Structural edits: attach, insert, detach, normalize, remove

Note: projection to nodes and connections lives in missionflow.graph.builder
"""

from missionflow.mission.edits import add_breakpoint, remove_breakpoint, remove_step
from missionflow.mission.models import (
    Mission,
    MissionComment,
    Position,
    Step,
    StepArgument,
    StepKind,
    action,
    breakpoint_of,
    parallel,
    sequence,
)
from missionflow.mission.parallel import (
    attach_child_with_parallel,
    attach_to_start_with_parallel,
    ensure_parallel_after,
    ensure_top_level_parallel,
)
from missionflow.mission.paths import PathIndex, compute_step_paths, parse_path, path_key
from missionflow.mission.sequence import (
    attach_child_sequentially,
    insert_between,
    should_append_sequentially,
)
from missionflow.mission.serialize import deserialize_mission, serialize_mission
from missionflow.mission.tree import (
    contains_step,
    detach_everywhere,
    find_nearest_parallel_ancestor,
    find_parent_and_index,
    find_slot,
    normalize,
    normalize_all,
)

__all__ = [
    "StepKind",
    "Step",
    "StepArgument",
    "Position",
    "Mission",
    "MissionComment",
    "action",
    "sequence",
    "parallel",
    "breakpoint_of",
    "PathIndex",
    "compute_step_paths",
    "parse_path",
    "path_key",
    "serialize_mission",
    "deserialize_mission",
    "find_parent_and_index",
    "find_slot",
    "detach_everywhere",
    "contains_step",
    "find_nearest_parallel_ancestor",
    "normalize",
    "normalize_all",
    "ensure_parallel_after",
    "ensure_top_level_parallel",
    "attach_to_start_with_parallel",
    "attach_child_with_parallel",
    "should_append_sequentially",
    "attach_child_sequentially",
    "insert_between",
    "remove_step",
    "add_breakpoint",
    "remove_breakpoint",
]
