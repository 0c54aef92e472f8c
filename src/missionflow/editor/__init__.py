"""Editor module - Editing session, history, and run overlays.

Exports:
- EditorSession: Translates graph edits into tree edits and records history
- HistoryManager / SnapshotStack / FlowSnapshot / HistoryEntry: Undo/redo
- Debouncer: Keyed quiet-period timers for argument edits
- RunManager / RunPathTracker: Completed-step highlighting during a run
- compute_comment_anchors: Place a comment between two steps
"""

from missionflow.editor.clone import clone_connections, clone_mission, clone_nodes
from missionflow.editor.comments import compute_comment_anchors
from missionflow.editor.debounce import Debouncer
from missionflow.editor.history import (
    INITIAL_KIND,
    FlowSnapshot,
    HistoryEntry,
    HistoryManager,
    SnapshotStack,
)
from missionflow.editor.run import RunManager, RunPathTracker, normalize_run_path
from missionflow.editor.session import EditorSession

__all__ = [
    "EditorSession",
    "INITIAL_KIND",
    "FlowSnapshot",
    "HistoryEntry",
    "HistoryManager",
    "SnapshotStack",
    "Debouncer",
    "RunManager",
    "RunPathTracker",
    "normalize_run_path",
    "compute_comment_anchors",
    "clone_connections",
    "clone_mission",
    "clone_nodes",
]
