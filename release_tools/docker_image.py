"""
Script: release_tools/docker_image.py
What: Builds the release image and copies the build output out of it.
Doing: Runs `docker build`, `docker create`, `docker cp`, and `docker rm` for the current run.
Why: Build output lives inside the image; the upload step needs it on the runner.
Goal: Leave the build result in `./extracted-app` for artifact upload.
"""

from __future__ import annotations

from release_tools.common import find_single_file
from release_tools.pipeline import ReleaseContext


DOCKERFILE_NAME = "Dockerfile"
EXTRACT_CONTAINER = "extract"
REGISTRY_DIST_PATH = "/dist"
APP_DIST_PATH = "/app/dist"


def build_command(
    *,
    dockerfile: str,
    image_tag: str,
    image_name: str,
    package_version: str,
    build_configuration: str | None = None,
) -> list[str]:
    """
    Return the `docker build` command line.

    The image is tagged twice: once with the ref-based tag and once with the
    package version. `build_configuration` is passed as a build argument when
    it is not `None` (an empty string is still passed).
    """
    command = [
        "docker",
        "build",
        ".",
        "-f",
        dockerfile,
        "-t",
        image_tag,
        "-t",
        f"{image_name}:{package_version}",
    ]
    if build_configuration is not None:
        command.extend(["--build-arg", f"BUILD_CONFIGURATION={build_configuration}"])
    return command


def build_and_push(context: ReleaseContext) -> None:
    dockerfile = find_single_file(context.workspace, DOCKERFILE_NAME)
    print(f"Using Dockerfile: {dockerfile}")

    command = build_command(
        dockerfile=str(dockerfile),
        image_tag=context.image_tag,
        image_name=context.image_name,
        package_version=context.package_version,
        build_configuration=context.build_configuration if context.use_build_configuration else None,
    )
    context.run(command, cwd=str(context.workspace), capture_output=False)


def create_extract_container(context: ReleaseContext) -> None:
    context.run(["docker", "create", "--name", EXTRACT_CONTAINER, context.image_tag])


def copy_from_extract_container(context: ReleaseContext, source_path: str) -> None:
    # `docker rm` only runs after a successful copy; a failed copy leaves the container behind.
    context.run(["docker", "cp", f"{EXTRACT_CONTAINER}:{source_path}", str(context.extract_dir)])
    context.run(["docker", "rm", EXTRACT_CONTAINER])


def extract_registry_build_result(context: ReleaseContext) -> None:
    """Copy `/dist` out of the container created by `create_extract_container`."""
    copy_from_extract_container(context, REGISTRY_DIST_PATH)


def extract_app_build_result(context: ReleaseContext) -> None:
    """Create the container, copy `/app/dist` out of it, and remove it again."""
    create_extract_container(context)
    context.extract_dir.mkdir(parents=True, exist_ok=True)
    copy_from_extract_container(context, APP_DIST_PATH)
