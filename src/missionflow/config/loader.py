"""
missionflow.config.loader - Find, parse, and merge configuration files

Configuration is layered: DEFAULT_CONFIG, then the nearest
``.missionflow.toml`` (searching upward from the working directory), then
``MISSIONFLOW_<SECTION>_<KEY>`` environment variables.
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from missionflow.config.defaults import CONFIG_FILENAME, DEFAULT_CONFIG, ENV_PREFIX
from missionflow.errors import ConfigError


def find_config_file(start: Path) -> Path | None:
    """Search ``start`` and its parents for a config file.

    Args:
        start: Directory to begin the search in.

    Returns:
        Path to the config file, or None if none exists up to the root.
    """
    current = Path(start).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def parse_toml(content: str) -> dict[str, Any]:
    """Parse TOML text into plain Python containers.

    Raises:
        ConfigError: If the text is not valid TOML.
    """
    try:
        return tomlkit.parse(content).unwrap()
    except TOMLKitError as e:
        raise ConfigError(f"Invalid TOML: {e}") from e


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``.

    Nested tables merge key by key; any other value replaces the base value.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _try_parse_numeric(value: str) -> int | float | None:
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return None


def _try_parse_env_value(value: str) -> Any:
    """Interpret an environment variable value.

    JSON arrays/objects and booleans are parsed; numbers become int or
    float; anything else (including malformed JSON) stays a string.
    """
    stripped = value.strip()
    if stripped.lower() in ("true", "false"):
        return stripped.lower() == "true"
    if stripped[:1] in ("[", "{"):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return value
    numeric = _try_parse_numeric(stripped)
    if numeric is not None:
        return numeric
    return value


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply ``MISSIONFLOW_<SECTION>_<KEY>`` variables onto config in place.

    The first segment after the prefix names the section; the rest is the
    key. Missing sections are created.
    """
    for name, raw in os.environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        parts = name[len(ENV_PREFIX) :].lower().split("_", 1)
        if len(parts) != 2 or not all(parts):
            continue
        section, key = parts
        table = config.setdefault(section, {})
        if isinstance(table, dict):
            table[key] = _try_parse_env_value(raw)
    return config


def load_config(path: Path | None = None, *, env: bool = True) -> dict[str, Any]:
    """Load configuration merged over the defaults.

    Args:
        path: Config file to read; None uses the defaults only.
        env: Apply environment variable overrides.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    if path is not None:
        try:
            content = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}") from e
        config = merge_configs(config, parse_toml(content))
    if env:
        _apply_env_overrides(config)
    return config


def get_config(start: Path | None = None, config_path: Path | None = None) -> dict[str, Any]:
    """Load the effective configuration for a working directory.

    Args:
        start: Directory to search from (defaults to the current directory).
        config_path: Explicit config file, skipping the search.
    """
    path = config_path or find_config_file(start or Path.cwd())
    return load_config(path)
