"""
Script: release_tools/docker_release.py
What: Release pipeline for images named after a registry host.
Doing: Resolves the version, tags `<registry>/<app>`, builds, extracts `/dist`, and uploads it.
Why: Registry-published services need both the image tags and the build output artifact.
Goal: One command per workflow job instead of a chain of shell steps.
"""

from __future__ import annotations

from release_tools.artifact_upload import upload_artifacts
from release_tools.common import get_input
from release_tools.docker_image import (
    build_and_push,
    create_extract_container,
    extract_registry_build_result,
)
from release_tools.image_tag import compute_image_tag
from release_tools.package_version import resolve_package_version
from release_tools.pipeline import ReleaseContext, Step, context_from_env, run_steps


# Registry host the release images are published under; `docker-registry` overrides it.
DOCKER_REGISTRY = "ghcr.io"

STEPS = (
    Step("Loading package version", resolve_package_version),
    Step("Prepare docker version.", compute_image_tag),
    Step("Build and push docker container", build_and_push),
    Step("Create extract container", create_extract_container),
    Step("Extract build result", extract_registry_build_result),
    Step("Upload artifacts", upload_artifacts),
)


def run(context: ReleaseContext) -> None:
    run_steps(STEPS, context)


def main() -> None:
    context = context_from_env(registry=get_input("docker-registry", DOCKER_REGISTRY))
    run(context)


if __name__ == "__main__":
    main()
