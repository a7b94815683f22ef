"""
Unit tests for ReportEmitter.
"""

import json
import re
import tempfile
from pathlib import Path

import pytest

from commit_review.errors import PersistenceFailure
from commit_review.review.models import FilterResult, ReportProfile
from commit_review.review.report import ReportEmitter, unique_timestamp


@pytest.fixture
def filter_result() -> FilterResult:
    return FilterResult(
        text="",
        included_files=["main.go"],
        excluded_files=["vendor/lib.go"],
        all_files=["main.go", "vendor/lib.go"],
    )


class TestUniqueTimestamp:
    """Tests for session-unique timestamps."""

    def test_strictly_increasing(self):
        stamps = [unique_timestamp() for _ in range(1000)]
        assert all(a < b for a, b in zip(stamps, stamps[1:]))


class TestManifest:
    """Tests for the file manifest."""

    def test_manifest_schema(self, tmp_path: Path, filter_result: FilterResult):
        emitter = ReportEmitter(tmp_path / "ws", manifest_dir=tmp_path / "tmp")

        artifact = emitter.write_manifest(filter_result)

        assert artifact.path.parent == tmp_path / "tmp"
        assert re.fullmatch(r"commit-review-files-\d+\.json", artifact.path.name)
        data = json.loads(artifact.path.read_text())
        assert list(data) == ["generatedAt", "workspace", "allFiles", "includedFiles", "excludedFiles"]
        assert data["workspace"] == str(tmp_path / "ws")
        assert data["allFiles"] == ["main.go", "vendor/lib.go"]
        assert data["includedFiles"] == ["main.go"]
        assert data["excludedFiles"] == ["vendor/lib.go"]

    def test_defaults_to_temp_dir(self, tmp_path: Path):
        emitter = ReportEmitter(tmp_path)
        assert emitter.manifest_dir == Path(tempfile.gettempdir())

    def test_manifests_never_overwritten(self, tmp_path: Path, filter_result: FilterResult):
        emitter = ReportEmitter(tmp_path, manifest_dir=tmp_path)

        first = emitter.write_manifest(filter_result)
        second = emitter.write_manifest(filter_result)

        assert first.path != second.path
        assert first.path.exists() and second.path.exists()

    def test_write_failure(self, tmp_path: Path, filter_result: FilterResult):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file")
        emitter = ReportEmitter(tmp_path, manifest_dir=blocker)

        with pytest.raises(PersistenceFailure):
            emitter.write_manifest(filter_result)


class TestReport:
    """Tests for the review report."""

    @pytest.mark.parametrize("profile", [ReportProfile.JSON, ReportProfile.HTML])
    def test_report_name_and_content(self, tmp_path: Path, profile: ReportProfile):
        emitter = ReportEmitter(tmp_path, prefix="team")

        artifact = emitter.write_report("answer text", profile)

        assert artifact.path.parent == tmp_path
        assert re.fullmatch(rf"team-report-\d+\.{profile.value}", artifact.path.name)
        assert artifact.path.read_text() == "answer text"
        assert artifact.format == profile.value
