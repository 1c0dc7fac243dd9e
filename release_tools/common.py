"""
Script: release_tools/common.py
What: Shared helper functions used by all `release_tools` modules.
Doing: Wraps env/input reads, command execution, file discovery, and GitHub output/path writes.
Why: Avoids duplicated helper code across pipeline steps.
Goal: Keep behavior consistent across every step of the release pipeline.
"""

from __future__ import annotations

import json
import os
import subprocess
from pathlib import Path
from typing import Mapping, Protocol, Sequence


class ReleaseToolError(RuntimeError):
    """Raised when a release pipeline step hits a known error condition."""


class CommandRunner(Protocol):
    def __call__(
        self,
        args: Sequence[str],
        *,
        capture_output: bool = True,
        cwd: str | None = None,
        fail_on_stderr: bool = False,
    ) -> str: ...


def require_env(name: str) -> str:
    """Return a required environment variable or raise a clear error."""
    value = os.environ.get(name)
    if value is None or value == "":
        raise ReleaseToolError(f"Missing required environment variable: {name}")
    return value


def optional_env(name: str, default: str = "") -> str:
    """Return an environment variable with a fallback default."""
    return os.environ.get(name, default)


def input_env_name(name: str) -> str:
    """
    Return the environment variable name GitHub uses for an action input.

    Example: input `app-name` is exposed as `INPUT_APP-NAME`.
    """
    return f"INPUT_{name.replace(' ', '_').upper()}"


def get_input(name: str, default: str = "") -> str:
    """Return an action input value, trimmed, or `default` when unset."""
    value = os.environ.get(input_env_name(name), "").strip()
    return value or default


def require_input(name: str) -> str:
    """Return a required action input or raise a clear error."""
    value = get_input(name)
    if not value:
        raise ReleaseToolError(f"Input required and not supplied: {name}")
    return value


def run_cmd(
    args: Sequence[str],
    *,
    capture_output: bool = True,
    cwd: str | None = None,
    fail_on_stderr: bool = False,
) -> str:
    """
    Run a command and return stdout, raising a readable error on failure.

    With `fail_on_stderr`, any text the command writes to stderr is treated as
    a failure even when the exit code is 0.
    """
    try:
        result = subprocess.run(
            list(args),
            check=True,
            text=True,
            capture_output=capture_output,
            cwd=cwd,
        )
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        stdout = (exc.stdout or "").strip()
        details = stderr or stdout or str(exc)
        raise ReleaseToolError(f"Command failed: {' '.join(args)}\n{details}") from exc
    except FileNotFoundError as exc:
        raise ReleaseToolError(f"Command not found: {args[0]}") from exc

    if not capture_output:
        return ""
    if fail_on_stderr and result.stderr.strip():
        raise ReleaseToolError(result.stderr.strip())
    return result.stdout


def parse_json_output(output: str, source: str) -> dict:
    """Parse JSON text printed by a command, naming the command on failure."""
    try:
        document = json.loads(output)
    except json.JSONDecodeError as exc:
        raise ReleaseToolError(f"Expected JSON from command: {source}") from exc
    if not isinstance(document, dict):
        raise ReleaseToolError(f"Expected a JSON object from command: {source}")
    return document


def find_single_file(root: Path, name: str) -> Path:
    """
    Find the file called `name` anywhere below `root`.

    Exactly one match is expected. No match is an error; with several matches
    the first one in sorted order wins and a warning is printed.
    """
    matches = sorted(path for path in root.rglob(name) if path.is_file())
    if not matches:
        raise ReleaseToolError(f"{name} not found under {root}")
    if len(matches) > 1:
        others = " ".join(str(path) for path in matches[1:])
        print(f"::warning::Found {len(matches)} files named {name}; using {matches[0]} (ignored: {others})")
    return matches[0]


def write_github_outputs(values: Mapping[str, str]) -> None:
    """
    Write step outputs for GitHub Actions.

    GitHub provides a file path in `GITHUB_OUTPUT`; writing `name=value` lines
    there makes that value available to later steps in the same job.
    """
    output_file = require_env("GITHUB_OUTPUT")
    with open(output_file, "a", encoding="utf-8") as handle:
        for key, value in values.items():
            handle.write(f"{key}={value}\n")


def add_github_path(directory: Path) -> None:
    """
    Prepend `directory` to PATH for this process and for later workflow steps.

    Later steps pick it up from the file GitHub provides in `GITHUB_PATH`.
    """
    os.environ["PATH"] = f"{directory}{os.pathsep}{os.environ.get('PATH', '')}"
    path_file = optional_env("GITHUB_PATH")
    if path_file:
        with open(path_file, "a", encoding="utf-8") as handle:
            handle.write(f"{directory}\n")


def bool_output(value: bool) -> str:
    """Format a boolean the way workflow expressions compare it."""
    return "true" if value else "false"


def report_failure(message: str) -> None:
    """Print an error annotation so the run summary shows the failure reason."""
    escaped = message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
    print(f"::error::{escaped}")
