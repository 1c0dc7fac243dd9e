"""
Script: release_tools/artifact_upload.py
What: Uploads the extracted build result as one named workflow artifact.
Doing: Collects files under `./extracted-app`, zips them, and talks to the GitHub Actions artifact service.
Why: Later jobs and releases download the build output by artifact name.
Goal: Publish `{app-name}-{version}` and write `artifact-name` for later steps.

Upload flow (artifact service v4):
1. `CreateArtifact` returns a signed blob URL for the new artifact.
2. The zip archive is PUT to that URL.
3. `FinalizeArtifact` records the archive size and sha256 hash.
"""

from __future__ import annotations

import hashlib
import tempfile
import zipfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx
import jwt

from release_tools.common import ReleaseToolError, require_env
from release_tools.pipeline import ReleaseContext


ARTIFACT_SERVICE = "twirp/github.actions.results.api.v1.ArtifactService"
ARTIFACT_VERSION = 4
RESULTS_SCOPE_PREFIX = "Actions.Results:"
HTTP_TIMEOUT = 60.0
HASH_CHUNK_SIZE = 1024 * 1024


def artifact_name_for(app_name: str, package_version: str) -> str:
    return f"{app_name}-{package_version}"


def collect_files(root: Path) -> list[Path]:
    """Return every regular file below `root`, in a stable order."""
    if not root.is_dir():
        raise ReleaseToolError(f"Artifact directory not found: {root}")
    files = sorted(path for path in root.rglob("*") if path.is_file())
    if not files:
        raise ReleaseToolError(f"No files found to upload under {root}")
    return files


def backend_ids_from_token(token: str) -> tuple[str, str]:
    """
    Return `(workflow_run_backend_id, workflow_job_run_backend_id)` from the runtime token.

    The ids live in the JWT `scp` claim as `Actions.Results:<run id>:<job id>`.
    """
    # The token is only read for its claims; the artifact service verifies it.
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as exc:
        raise ReleaseToolError(f"Failed to decode ACTIONS_RUNTIME_TOKEN: {exc}") from exc

    for scope in str(claims.get("scp") or "").split(" "):
        if not scope.startswith(RESULTS_SCOPE_PREFIX):
            continue
        scope_parts = scope.split(":")
        if len(scope_parts) != 3 or not scope_parts[1] or not scope_parts[2]:
            raise ReleaseToolError(f"Unexpected results scope in runtime token: {scope}")
        return scope_parts[1], scope_parts[2]
    raise ReleaseToolError("Runtime token has no Actions.Results scope")


def write_zip(files: list[Path], root: Path, destination: Path) -> None:
    """Write `files` into a zip archive with paths relative to `root`."""
    with zipfile.ZipFile(destination, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for file_path in files:
            archive.write(file_path, arcname=file_path.relative_to(root).as_posix())


def sha256_of(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(HASH_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def expires_at(retention_days: int, *, now: datetime | None = None) -> str:
    """RFC 3339 timestamp `retention_days` from now, as the artifact service expects."""
    moment = (now or datetime.now(timezone.utc)) + timedelta(days=retention_days)
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


class ArtifactClient:
    """Minimal client for the artifact service calls used by a single upload."""

    def __init__(
        self,
        results_url: str,
        runtime_token: str,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._token = runtime_token
        self._run_id, self._job_id = backend_ids_from_token(runtime_token)
        self._client = httpx.Client(
            base_url=results_url.rstrip("/") + "/",
            timeout=HTTP_TIMEOUT,
            transport=transport,
        )

    def __enter__(self) -> ArtifactClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._client.close()

    def _call(self, method: str, payload: dict) -> dict:
        response = self._client.post(
            f"{ARTIFACT_SERVICE}/{method}",
            json=payload,
            headers={
                "Authorization": f"Bearer {self._token}",
                "Accept": "application/json",
            },
        )
        if response.status_code >= 400:
            raise ReleaseToolError(
                f"Artifact service {method} failed: {response.status_code} {response.text.strip()}"
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise ReleaseToolError(f"Artifact service {method} returned invalid JSON") from exc
        if not isinstance(body, dict):
            raise ReleaseToolError(f"Artifact service {method} returned a non-object response")
        if not body.get("ok"):
            raise ReleaseToolError(f"Artifact service {method} returned ok=false")
        return body

    def create_artifact(self, name: str, *, retention_days: int | None = None) -> str:
        """Register the artifact and return the signed URL its archive goes to."""
        payload: dict = {
            "workflowRunBackendId": self._run_id,
            "workflowJobRunBackendId": self._job_id,
            "name": name,
            "version": ARTIFACT_VERSION,
        }
        if retention_days is not None:
            payload["expiresAt"] = expires_at(retention_days)
        body = self._call("CreateArtifact", payload)
        upload_url = str(body.get("signedUploadUrl") or body.get("signed_upload_url") or "")
        if not upload_url:
            raise ReleaseToolError("Artifact service did not return a signed upload URL")
        return upload_url

    def upload_archive(self, upload_url: str, archive: Path) -> None:
        # The signed URL carries its own credentials; no bearer token here.
        with archive.open("rb") as handle:
            response = self._client.put(
                upload_url,
                content=handle,
                headers={
                    "x-ms-blob-type": "BlockBlob",
                    "Content-Type": "application/zip",
                },
            )
        if response.status_code >= 400:
            raise ReleaseToolError(
                f"Artifact archive upload failed: {response.status_code} {response.text.strip()}"
            )

    def finalize_artifact(self, name: str, *, size: int, sha256: str) -> str:
        body = self._call(
            "FinalizeArtifact",
            {
                "workflowRunBackendId": self._run_id,
                "workflowJobRunBackendId": self._job_id,
                "name": name,
                "size": str(size),
                "hash": f"sha256:{sha256}",
            },
        )
        return str(body.get("artifactId") or body.get("artifact_id") or "")


def upload_artifact(
    name: str,
    files: list[Path],
    root: Path,
    *,
    results_url: str,
    runtime_token: str,
    retention_days: int | None = None,
    transport: httpx.BaseTransport | None = None,
) -> str:
    """Upload `files` as one artifact rooted at `root`; return the artifact id."""
    with tempfile.TemporaryDirectory() as temp_dir:
        archive = Path(temp_dir) / f"{name}.zip"
        write_zip(files, root, archive)
        size = archive.stat().st_size
        digest = sha256_of(archive)

        with ArtifactClient(results_url, runtime_token, transport=transport) as client:
            upload_url = client.create_artifact(name, retention_days=retention_days)
            client.upload_archive(upload_url, archive)
            artifact_id = client.finalize_artifact(name, size=size, sha256=digest)

    print(f"Uploaded artifact {name} ({len(files)} files, {size} bytes, id {artifact_id})")
    return artifact_id


def upload_artifacts(context: ReleaseContext) -> None:
    context.extracted_files = collect_files(context.extract_dir)
    context.artifact_name = artifact_name_for(context.app_name, context.package_version)

    artifact_id = upload_artifact(
        context.artifact_name,
        context.extracted_files,
        context.extract_dir,
        results_url=require_env("ACTIONS_RESULTS_URL"),
        runtime_token=require_env("ACTIONS_RUNTIME_TOKEN"),
        retention_days=context.retention_days,
        transport=context.http_transport,
    )

    context.set_outputs(
        {
            "artifact-name": context.artifact_name,
            "artifact-id": artifact_id,
        }
    )
