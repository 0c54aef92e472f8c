"""
missionflow.config - Configuration loading and defaults
"""

from missionflow.config.defaults import CONFIG_FILENAME, DEFAULT_CONFIG
from missionflow.config.loader import (
    _apply_env_overrides,
    _try_parse_env_value,
    find_config_file,
    get_config,
    load_config,
    merge_configs,
    parse_toml,
)

__all__ = [
    "load_config",
    "get_config",
    "find_config_file",
    "merge_configs",
    "parse_toml",
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG",
]
