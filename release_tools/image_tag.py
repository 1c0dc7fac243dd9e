"""
Script: release_tools/image_tag.py
What: Computes the docker image name and tag for the triggering ref.
Doing: Maps tags, branches, and pull requests to a version label and writes image outputs.
Why: Image tags must follow the same naming rules on every trigger type.
Goal: Give the build step a stable `{image}:{label}` reference.
"""

from __future__ import annotations

import json
from pathlib import Path

from release_tools.common import ReleaseToolError
from release_tools.pipeline import ReleaseContext


TAG_REF_PREFIX = "refs/tags"
BRANCH_REF_PREFIX = "refs/heads/"
PULL_REF_PREFIX = "refs/pull/"
DEFAULT_LABEL = "edge"


def image_name_for(app_name: str, registry: str = "") -> str:
    """Lower-case the app name and prefix it with the registry host when one is set."""
    repository_name = app_name.lower()
    if registry:
        return f"{registry.rstrip('/')}/{repository_name}"
    return repository_name


def pull_request_number(event_path: str) -> int:
    """Read `pull_request.number` from the event payload GitHub writes to disk."""
    if not event_path:
        raise ReleaseToolError("Missing event payload path for pull request run")
    try:
        with Path(event_path).open("r", encoding="utf-8") as handle:
            event = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        raise ReleaseToolError(f"Failed to read event payload {event_path}: {exc}") from exc

    number = (event.get("pull_request") or {}).get("number")
    if number is None:
        raise ReleaseToolError(f"Event payload {event_path} has no pull_request.number")
    return int(number)


def version_label_for_ref(ref: str, event_path: str = "") -> str:
    """
    Map the triggering ref to the label used as image tag.

    - `refs/tags/v1.2` -> `v1.2`
    - `refs/heads/feature/x` -> `feature-x` (first `/` only)
    - `refs/pull/7/merge` -> `pr-<number from event payload>`
    - anything else -> `edge`
    """
    if ref.startswith(TAG_REF_PREFIX):
        return ref.replace(f"{TAG_REF_PREFIX}/", "", 1)
    if ref.startswith(BRANCH_REF_PREFIX):
        return ref[len(BRANCH_REF_PREFIX):].replace("/", "-", 1)
    if ref.startswith(PULL_REF_PREFIX):
        return f"pr-{pull_request_number(event_path)}"
    return DEFAULT_LABEL


def compute_image_tag(context: ReleaseContext) -> None:
    context.image_name = image_name_for(context.app_name, context.registry)
    label = version_label_for_ref(context.ref, context.event_path)
    context.image_tag = f"{context.image_name}:{label}"

    context.set_outputs(
        {
            "image-name": context.image_name,
            "image-tag": context.image_tag,
        }
    )
    print(f"Image tag: {context.image_tag}")
