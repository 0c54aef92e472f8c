"""
missionflow.commands.config_cmd - Show the effective configuration.
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

import tomlkit

from missionflow.config import find_config_file, load_config


def load_configuration(args: argparse.Namespace) -> dict[str, Any]:
    """Load configuration from ``--config`` or the nearest config file.

    Raises:
        ConfigError: If the config file cannot be read or parsed.
    """
    config_path = getattr(args, "config", None) or find_config_file(Path.cwd())
    return load_config(config_path)


def run(args: argparse.Namespace) -> int:
    """Run the config command.

    Subcommands:
    - show: Print the merged configuration (TOML, or JSON with --json)
    - path: Print the config file location
    """
    action = getattr(args, "config_action", None)

    if action == "path":
        config_path = getattr(args, "config", None) or find_config_file(Path.cwd())
        if config_path is None:
            print("No .missionflow.toml found (using defaults)")
            return 1
        print(config_path)
        return 0

    if action == "show":
        config = load_configuration(args)
        section = getattr(args, "section", None)
        if section:
            if section not in config:
                print(f"Unknown section: {section}")
                return 1
            config = {section: config[section]}
        if getattr(args, "json", False):
            print(json.dumps(config, indent=2))
        else:
            print(tomlkit.dumps(config).rstrip())
        return 0

    print("Usage: missionflow config <show|path>")
    return 1
