"""
missionflow.cli - Command-line interface.

Main entry point for the missionflow CLI tool.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from missionflow import __version__
from missionflow.commands import config_cmd, graph_cmd, normalize_cmd, paths_cmd, serve
from missionflow.errors import MissionflowError


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="missionflow",
        description="Mission step-tree editor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  missionflow paths mission.json          # Dotted path of every action
  missionflow paths mission.json --outline
  missionflow graph mission.json          # Canvas projection as JSON
  missionflow normalize mission.json      # Dissolve degenerate containers
  missionflow serve --mission Setup       # REST editor server

Configuration:
  missionflow config path                 # Show config file location
  missionflow config show                 # View all settings

For detailed command help: missionflow <command> --help
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"missionflow {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output (debug logging)",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # paths command
    paths_parser = subparsers.add_parser(
        "paths",
        help="Print the dotted path of every action step",
    )
    paths_parser.add_argument("file", type=Path, help="Mission JSON file")
    paths_parser.add_argument(
        "-j",
        "--json",
        action="store_true",
        help="Output a JSON object of path -> function name",
    )
    paths_parser.add_argument(
        "--outline",
        action="store_true",
        help="Print the step tree as an indented outline",
    )

    # graph command
    graph_parser = subparsers.add_parser(
        "graph",
        help="Output the canvas projection of a mission as JSON",
    )
    graph_parser.add_argument("file", type=Path, help="Mission JSON file")
    graph_parser.add_argument(
        "--catalog",
        type=Path,
        help="JSON file with step definitions",
        metavar="PATH",
    )
    graph_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Write to file instead of stdout",
        metavar="PATH",
    )

    # normalize command
    normalize_parser = subparsers.add_parser(
        "normalize",
        help="Dissolve empty and single-child containers, rewriting the file",
    )
    normalize_parser.add_argument("file", type=Path, help="Mission JSON file")
    normalize_parser.add_argument(
        "--check",
        action="store_true",
        help="Report without rewriting; exit 1 if changes are needed",
    )

    # serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the editor REST server",
    )
    serve_parser.add_argument("--project", help="Project id", metavar="ID")
    serve_parser.add_argument(
        "--mission",
        help="Mission to open (created if missing)",
        metavar="NAME",
    )
    serve_parser.add_argument(
        "--missions-dir",
        type=Path,
        help="Directory holding project mission files",
        metavar="PATH",
    )
    serve_parser.add_argument(
        "--catalog",
        type=Path,
        help="JSON file with step definitions",
        metavar="PATH",
    )
    serve_parser.add_argument("--host", help="Bind address")
    serve_parser.add_argument("--port", type=int, help="Port")

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="View configuration",
    )
    config_subparsers = config_parser.add_subparsers(dest="config_action")
    config_show = config_subparsers.add_parser("show", help="Show merged configuration")
    config_show.add_argument("--section", help="Only this section", metavar="NAME")
    config_show.add_argument("-j", "--json", action="store_true", help="Output JSON")
    config_subparsers.add_parser("path", help="Show config file location")

    # version command
    subparsers.add_parser("version", help="Show version")

    return parser


def configure_logging(args: argparse.Namespace) -> None:
    """Set the root log level from --verbose or the [logging] config key."""
    level_name = "DEBUG" if args.verbose else None
    if level_name is None:
        try:
            level_name = str(config_cmd.load_configuration(args)["logging"]["level"])
        except (MissionflowError, KeyError, TypeError):
            level_name = "WARNING"
    level = logging.getLevelName(level_name.upper())
    logging.basicConfig(
        level=level if isinstance(level, int) else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Handle no command
    if not args.command:
        parser.print_help()
        return 0

    configure_logging(args)

    try:
        # Dispatch to command handlers
        if args.command == "paths":
            return paths_cmd.run(args)
        elif args.command == "graph":
            return graph_cmd.run(args)
        elif args.command == "normalize":
            return normalize_cmd.run(args)
        elif args.command == "serve":
            return serve.run(args)
        elif args.command == "config":
            return config_cmd.run(args)
        elif args.command == "version":
            return version_command(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except MissionflowError as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


def version_command(args: argparse.Namespace) -> int:
    """Handle version command."""
    print(f"missionflow {__version__}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
