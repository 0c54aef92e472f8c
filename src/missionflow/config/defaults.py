"""
missionflow.config.defaults - Built-in configuration values
"""

from __future__ import annotations

from typing import Any

CONFIG_FILENAME = ".missionflow.toml"

ENV_PREFIX = "MISSIONFLOW_"

DEFAULT_CONFIG: dict[str, Any] = {
    "editor": {
        "debounce_seconds": 0.5,
        "auto_layout": True,
        "orientation": "vertical",
        "max_history": 0,
    },
    "storage": {
        "missions_dir": ".missions",
        "project": "default",
    },
    "server": {
        "host": "127.0.0.1",
        "port": 5050,
    },
    "logging": {
        "level": "WARNING",
    },
}
