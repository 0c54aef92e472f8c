"""
missionflow - Mission step-tree editor

A mission is an ordered tree of steps: actions that call a function, and
sequence, parallel and breakpoint containers that shape the flow between
them. missionflow projects that tree onto a node graph, turns graph edits
back into tree edits, and keeps an undoable history of every change.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("missionflow")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed

from missionflow.editor.session import EditorSession
from missionflow.mission.models import Mission, Step, StepKind

__all__ = [
    "__version__",
    "EditorSession",
    "Mission",
    "Step",
    "StepKind",
]
