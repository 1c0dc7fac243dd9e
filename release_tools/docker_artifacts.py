"""
Script: release_tools/docker_artifacts.py
What: Build pipeline for images that only exist to produce build output.
Doing: Resolves the version, builds `<app>` with an optional build configuration, extracts `/app/dist`, and uploads it.
Why: Some apps are built inside docker only to get a reproducible toolchain.
Goal: Publish the build output as `{app-name}-{version}` without pushing anywhere.
"""

from __future__ import annotations

from release_tools.artifact_upload import upload_artifacts
from release_tools.common import get_input
from release_tools.docker_image import build_and_push, extract_app_build_result
from release_tools.image_tag import compute_image_tag
from release_tools.package_version import resolve_package_version
from release_tools.pipeline import ReleaseContext, Step, context_from_env, run_steps


STEPS = (
    Step("Loading package version", resolve_package_version),
    Step("Prepare docker version.", compute_image_tag),
    Step("Build and push docker container", build_and_push),
    Step("Extract build result", extract_app_build_result),
    Step("Upload artifacts", upload_artifacts),
)


def run(context: ReleaseContext) -> None:
    run_steps(STEPS, context)


def main() -> None:
    context = context_from_env(
        build_configuration=get_input("build-configuration").lower(),
        use_build_configuration=True,
        # nbgv reports problems on stderr even when it exits 0.
        check_version_stderr=True,
    )
    run(context)


if __name__ == "__main__":
    main()
