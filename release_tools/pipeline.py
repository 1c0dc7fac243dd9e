"""
Script: release_tools/pipeline.py
What: Holds the run context and the fail-fast step runner shared by both release pipelines.
Doing: Runs named steps in order, logs start/finish lines, and turns the first failure into a run failure.
Why: Every pipeline step needs the same "log, run, log, or report and stop" wrapper.
Goal: Make the step order explicit and keep run state in one object instead of module globals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping, Sequence

import httpx

from release_tools.common import (
    CommandRunner,
    ReleaseToolError,
    get_input,
    optional_env,
    report_failure,
    require_input,
    run_cmd,
    write_github_outputs,
)


class StepFailedError(ReleaseToolError):
    """Raised when one named pipeline step fails; carries the step name."""

    def __init__(self, display_name: str, error: BaseException) -> None:
        super().__init__(f'Step "{display_name}" failed. Error: {error}')
        self.display_name = display_name


@dataclass
class ReleaseContext:
    """
    Values shared between pipeline steps.

    Inputs are filled in before the run starts. Each step writes the fields it
    produces exactly once; later steps only read them.
    """

    workspace: Path
    app_name: str
    ref: str = ""
    event_path: str = ""
    registry: str = ""
    build_configuration: str = ""
    use_build_configuration: bool = False
    retention_days: int | None = None
    check_version_stderr: bool = False
    run: CommandRunner = run_cmd
    http_transport: httpx.BaseTransport | None = None

    package_version: str = ""
    is_pre_release: bool = False
    image_name: str = ""
    image_tag: str = ""
    extracted_files: list[Path] = field(default_factory=list)
    artifact_name: str = ""
    outputs: dict[str, str] = field(default_factory=dict)

    @property
    def extract_dir(self) -> Path:
        return self.workspace / "extracted-app"

    def set_outputs(self, values: Mapping[str, str]) -> None:
        """Publish step outputs and remember them on the context."""
        write_github_outputs(values)
        self.outputs.update(values)


@dataclass(frozen=True)
class Step:
    display_name: str
    action: Callable[[ReleaseContext], None]


def run_step(step: Step, context: ReleaseContext) -> None:
    """Run one step; on failure report it and raise `StepFailedError`."""
    try:
        print(f"{step.display_name} started.")
        step.action(context)
        print(f"{step.display_name} finished.")
    except Exception as exc:
        failure = StepFailedError(step.display_name, exc)
        report_failure(str(failure))
        raise failure from exc


def run_steps(steps: Sequence[Step], context: ReleaseContext) -> None:
    """Run steps in order; the first failure stops the run."""
    for step in steps:
        run_step(step, context)


def parse_retention_days(value: str) -> int | None:
    """Parse the optional `retention-days` input; empty means the repository default."""
    if not value:
        return None
    try:
        days = int(value)
    except ValueError as exc:
        raise ReleaseToolError(f"retention-days must be a whole number, got {value!r}") from exc
    if days < 1:
        raise ReleaseToolError(f"retention-days must be at least 1, got {days}")
    return days


def context_from_env(**settings: object) -> ReleaseContext:
    """Build a context from workflow inputs and runner environment variables."""
    return ReleaseContext(
        workspace=Path(optional_env("GITHUB_WORKSPACE") or Path.cwd()),
        app_name=require_input("app-name"),
        ref=optional_env("GITHUB_REF"),
        event_path=optional_env("GITHUB_EVENT_PATH"),
        retention_days=parse_retention_days(get_input("retention-days")),
        **settings,
    )
