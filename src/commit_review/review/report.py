"""
Report Emitter

Persists the file manifest and the final review report. Each run writes
new timestamped files; existing artifacts are never modified.
"""

import json
import tempfile
import threading
import time
from datetime import datetime
from pathlib import Path

import structlog

from commit_review.errors import PersistenceFailure

from .models import FilterResult, ReportArtifact, ReportProfile

logger = structlog.get_logger(__name__)

DEFAULT_PREFIX = "commit-review"

_stamp_lock = threading.Lock()
_last_stamp = 0


def unique_timestamp() -> int:
    """Epoch milliseconds, strictly increasing within this process."""
    global _last_stamp
    with _stamp_lock:
        stamp = time.time_ns() // 1_000_000
        if stamp <= _last_stamp:
            stamp = _last_stamp + 1
        _last_stamp = stamp
        return stamp


class ReportEmitter:
    """Write manifest and report artifacts."""

    def __init__(
        self,
        workspace_root: str | Path,
        manifest_dir: str | Path | None = None,
        prefix: str = DEFAULT_PREFIX,
    ):
        """
        Initialize the emitter.

        Args:
            workspace_root: Directory receiving report files
            manifest_dir: Directory receiving manifests (system temp dir by default)
            prefix: File name prefix for both artifacts
        """
        self.workspace_root = Path(workspace_root)
        self.manifest_dir = Path(manifest_dir) if manifest_dir else Path(tempfile.gettempdir())
        self.prefix = prefix

    def write_manifest(self, filter_result: FilterResult) -> ReportArtifact:
        """
        Record the filtering decisions for this run.

        Raises:
            PersistenceFailure: the file could not be written
        """
        created_at = datetime.now()
        manifest = {
            "generatedAt": created_at.isoformat(),
            "workspace": str(self.workspace_root),
            "allFiles": filter_result.all_files,
            "includedFiles": filter_result.included_files,
            "excludedFiles": filter_result.excluded_files,
        }
        path = self.manifest_dir / f"{self.prefix}-files-{unique_timestamp()}.json"
        content = json.dumps(manifest, indent=2).encode("utf-8")
        return self._write(ReportArtifact(format="json", path=path, content=content, created_at=created_at))

    def write_report(self, content: str, profile: ReportProfile) -> ReportArtifact:
        """
        Persist the review answer as-is.

        Raises:
            PersistenceFailure: the file could not be written
        """
        path = self.workspace_root / f"{self.prefix}-report-{unique_timestamp()}.{profile.value}"
        return self._write(
            ReportArtifact(format=profile.value, path=path, content=content.encode("utf-8"))
        )

    def _write(self, artifact: ReportArtifact) -> ReportArtifact:
        try:
            artifact.path.parent.mkdir(parents=True, exist_ok=True)
            artifact.path.write_bytes(artifact.content)
        except OSError as e:
            logger.warning("Failed to write artifact", path=str(artifact.path), error=str(e))
            raise PersistenceFailure(f"Could not write {artifact.path}: {e}") from e

        logger.info("Artifact written", path=str(artifact.path), bytes=len(artifact.content))
        return artifact
