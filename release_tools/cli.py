from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Callable, Mapping
from pathlib import Path

from release_tools.common import ReleaseToolError


def command_map() -> dict[str, Callable[[], None]]:
    """
    Map CLI command names to Python entry functions.

    Each value is a `main()` function from one release pipeline module.
    """
    from release_tools.docker_artifacts import main as docker_artifacts
    from release_tools.docker_release import main as docker_release

    return {
        "docker-release": docker_release,
        "docker-artifacts": docker_artifacts,
    }


def build_parser(commands: Mapping[str, Callable[[], None]]) -> argparse.ArgumentParser:
    """Build argument parser with one positional command choice."""
    parser = argparse.ArgumentParser(
        prog="python3 -m release_tools.cli",
        description="Run one release pipeline.",
    )
    parser.add_argument("command", choices=sorted(commands.keys()))
    parser.add_argument(
        "--workspace",
        help="Working tree holding version.json and the Dockerfile (default: GITHUB_WORKSPACE or the current directory).",
    )
    return parser


def run_command(command: str, commands: Mapping[str, Callable[[], None]]) -> None:
    """
    Run one registered command.

    `commands` is passed in to keep this function easy to test.
    """
    commands[command]()


def main(argv: list[str] | None = None) -> None:
    """Parse `argv`, run the chosen release pipeline, and exit 1 on a known failure."""
    commands = command_map()
    parser = build_parser(commands)
    args = parser.parse_args(argv)
    if args.workspace:
        # Pipelines read the workspace from the environment, like every other runner value.
        os.environ["GITHUB_WORKSPACE"] = str(Path(args.workspace).resolve())

    try:
        run_command(args.command, commands)
    except ReleaseToolError as exc:
        # Keep failures short and readable in workflow logs.
        print(str(exc), file=sys.stderr)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
