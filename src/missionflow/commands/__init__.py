"""
missionflow.commands - CLI command implementations
"""

__all__ = [
    "config_cmd",
    "graph_cmd",
    "mission_file",
    "normalize_cmd",
    "paths_cmd",
    "serve",
]
