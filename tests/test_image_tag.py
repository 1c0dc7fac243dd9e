from __future__ import annotations

import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from release_tools.common import ReleaseToolError
from release_tools.image_tag import compute_image_tag, image_name_for, version_label_for_ref
from release_tools.pipeline import ReleaseContext


class VersionLabelTests(unittest.TestCase):
    def test_tag_ref_is_used_verbatim(self) -> None:
        self.assertEqual(version_label_for_ref("refs/tags/v1.2.3"), "v1.2.3")
        self.assertEqual(version_label_for_ref("refs/tags/release/2024"), "release/2024")

    def test_branch_ref_replaces_first_slash_only(self) -> None:
        self.assertEqual(version_label_for_ref("refs/heads/main"), "main")
        self.assertEqual(version_label_for_ref("refs/heads/feature/login"), "feature-login")
        self.assertEqual(version_label_for_ref("refs/heads/a/b/c"), "a-b/c")

    def test_pull_request_ref_reads_event_payload(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            event_path = Path(temp_dir) / "event.json"
            event_path.write_text(json.dumps({"pull_request": {"number": 42}}), encoding="utf-8")
            self.assertEqual(version_label_for_ref("refs/pull/42/merge", str(event_path)), "pr-42")

    def test_pull_request_without_payload_fails(self) -> None:
        with self.assertRaises(ReleaseToolError):
            version_label_for_ref("refs/pull/42/merge", "")
        with self.assertRaises(ReleaseToolError):
            version_label_for_ref("refs/pull/42/merge", "/does/not/exist.json")

    def test_pull_request_payload_without_number_fails(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            event_path = Path(temp_dir) / "event.json"
            event_path.write_text(json.dumps({"action": "opened"}), encoding="utf-8")
            with self.assertRaises(ReleaseToolError):
                version_label_for_ref("refs/pull/1/merge", str(event_path))

    def test_other_refs_are_edge(self) -> None:
        for ref in ("", "refs/remotes/origin/main", "main", "refs/notes/x"):
            with self.subTest(ref=ref):
                self.assertEqual(version_label_for_ref(ref), "edge")


class ImageNameTests(unittest.TestCase):
    def test_bare_name_is_lowercased(self) -> None:
        self.assertEqual(image_name_for("MyService"), "myservice")

    def test_registry_prefix(self) -> None:
        self.assertEqual(image_name_for("MyService", "ghcr.io/acme"), "ghcr.io/acme/myservice")
        self.assertEqual(image_name_for("svc", "ghcr.io/acme/"), "ghcr.io/acme/svc")


class ComputeImageTagTests(unittest.TestCase):
    def test_sets_context_and_outputs(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            output_file = Path(temp_dir) / "output"
            context = ReleaseContext(
                workspace=Path(temp_dir),
                app_name="Svc",
                ref="refs/heads/release/1.0",
                registry="registry.example.com",
            )
            with mock.patch.dict(os.environ, {"GITHUB_OUTPUT": str(output_file)}):
                compute_image_tag(context)

        self.assertEqual(context.image_name, "registry.example.com/svc")
        self.assertEqual(context.image_tag, "registry.example.com/svc:release-1.0")
        self.assertEqual(context.outputs["image-tag"], "registry.example.com/svc:release-1.0")


if __name__ == "__main__":
    unittest.main()
