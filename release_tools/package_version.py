"""
Script: release_tools/package_version.py
What: Resolves the package version for this run with Nerdbank.GitVersioning (`nbgv`).
Doing: Installs `nbgv` when needed, finds `version.json`, queries `nbgv get-version`, and writes version outputs.
Why: The image tag and artifact name both depend on the same resolved version.
Goal: Publish `version` and `is-pre-release` for the rest of the run and for later workflow steps.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from release_tools.common import (
    ReleaseToolError,
    add_github_path,
    bool_output,
    find_single_file,
    parse_json_output,
)
from release_tools.pipeline import ReleaseContext


VERSION_FILE_NAME = "version.json"
NBGV_TOOL = "nbgv"


def dotnet_tools_dir() -> Path:
    """Directory where `dotnet tool install -g` puts tool shims."""
    return Path.home() / ".dotnet" / "tools"


def version_directory(version_file: Path) -> str:
    """Return the directory `nbgv -p` should read, with a trailing slash."""
    return str(version_file.parent).rstrip("/") + "/"


def extract_package_version(document: dict) -> str:
    """Read `CloudBuildAllVars.NBGV_NuGetPackageVersion` from `nbgv get-version -f json`."""
    cloud_vars = document.get("CloudBuildAllVars")
    if not isinstance(cloud_vars, dict):
        raise ReleaseToolError("nbgv output is missing CloudBuildAllVars")
    package_version = str(cloud_vars.get("NBGV_NuGetPackageVersion") or "")
    if not package_version:
        raise ReleaseToolError("nbgv output is missing CloudBuildAllVars.NBGV_NuGetPackageVersion")
    return package_version


def is_pre_release(package_version: str) -> bool:
    """SemVer pre-release versions carry a `-suffix` (for example `1.2.3-beta`)."""
    return "-" in package_version


def install_nbgv(context: ReleaseContext) -> None:
    # The tools dir goes on PATH before the lookup so an earlier global install is found.
    add_github_path(dotnet_tools_dir())
    if shutil.which(NBGV_TOOL) is None:
        context.run(["dotnet", "tool", "install", "-g", NBGV_TOOL], capture_output=False)


def resolve_package_version(context: ReleaseContext) -> None:
    install_nbgv(context)

    version_file = find_single_file(context.workspace, VERSION_FILE_NAME)
    version_dir = version_directory(version_file)
    print(f"Using version file: {version_file}")

    # Human-readable output goes straight to the log.
    context.run([NBGV_TOOL, "get-version", "-p", version_dir], capture_output=False)
    command = [NBGV_TOOL, "get-version", "-f", "json", "-p", version_dir]
    output = context.run(command, fail_on_stderr=context.check_version_stderr)

    document = parse_json_output(output, " ".join(command))
    context.package_version = extract_package_version(document)
    context.is_pre_release = is_pre_release(context.package_version)

    context.set_outputs(
        {
            "version": context.package_version,
            "is-pre-release": bool_output(context.is_pre_release),
        }
    )
    print(f"Package version: {context.package_version}")
