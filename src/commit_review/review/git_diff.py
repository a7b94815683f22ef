"""
Git Change-Set Extractor

Fetches the diff of the latest commit and its changed-file list.
"""

import asyncio
from pathlib import Path

import structlog

from commit_review.errors import ExtractionFailure

from .models import (
    MAX_DIFF_BYTES,
    MAX_DIFF_CHARS,
    MAX_NAME_LIST_BYTES,
    ChangeSet,
    limit_text,
)
from .path_filter import unquote_git_path

logger = structlog.get_logger(__name__)


class OutputLimitExceeded(Exception):
    """Raised when a git command writes more than its buffer allows."""


class ChangeSetExtractor:
    """Run git against a working directory to obtain the change set."""

    # Compare the working head against its immediate parent
    BASE_REVISION = "HEAD~1"

    # Emit non-ASCII paths verbatim instead of as quoted octal escapes
    GIT_OPTIONS = ["-c", "core.quotePath=false"]

    def __init__(
        self,
        max_chars: int = MAX_DIFF_CHARS,
        max_diff_bytes: int = MAX_DIFF_BYTES,
        max_name_bytes: int = MAX_NAME_LIST_BYTES,
        git_executable: str = "git",
    ):
        self.max_chars = max_chars
        self.max_diff_bytes = max_diff_bytes
        self.max_name_bytes = max_name_bytes
        self.git_executable = git_executable

    @property
    def diff_args(self) -> list[str]:
        return ["diff", self.BASE_REVISION]

    @property
    def name_args(self) -> list[str]:
        return ["diff", "--name-only", self.BASE_REVISION]

    @property
    def diff_command(self) -> str:
        """Human-readable diff command, quoted in prompts."""
        return " ".join([self.git_executable, *self.diff_args])

    @property
    def name_command(self) -> str:
        return " ".join([self.git_executable, *self.name_args])

    async def fetch_change_set(self, working_directory: str | Path) -> ChangeSet:
        """
        Fetch the diff and changed-file list for the latest commit.

        Args:
            working_directory: Repository working directory

        Returns:
            ChangeSet, empty when git reports no differences

        Raises:
            ExtractionFailure: git exited non-zero, could not be started,
                or exceeded its output buffer
        """
        cwd = Path(working_directory)
        raw_diff = await self._run_git(cwd, self.diff_args, self.max_diff_bytes)

        if not raw_diff.strip():
            logger.info("Empty change set", cwd=str(cwd))
            return ChangeSet(
                diff_command=self.diff_command,
                name_command=self.name_command,
            )

        chunk = limit_text(raw_diff, self.max_chars)
        if chunk.truncated:
            logger.info(
                "Diff truncated",
                original_chars=len(raw_diff),
                kept_chars=len(chunk.text),
            )

        names = await self._run_git(cwd, self.name_args, self.max_name_bytes)
        files = [unquote_git_path(f.strip()) for f in names.split("\n") if f.strip()]

        return ChangeSet(
            diff_text=chunk.text,
            truncated=chunk.truncated,
            files=files,
            diff_command=self.diff_command,
            name_command=self.name_command,
        )

    async def _run_git(self, cwd: Path, args: list[str], max_bytes: int) -> str:
        """Run a git command with a bounded stdout buffer."""
        cmd = [self.git_executable] + self.GIT_OPTIONS + args

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=str(cwd),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error("Could not start git", cmd=cmd, error=str(e))
            raise ExtractionFailure(f"Could not run {' '.join(cmd)}: {e}") from e

        try:
            stdout, stderr = await asyncio.gather(
                self._read_bounded(proc.stdout, max_bytes),
                proc.stderr.read(),
            )
        except OutputLimitExceeded as e:
            proc.kill()
            await proc.wait()
            logger.error("Git output exceeded buffer", cmd=cmd, max_bytes=max_bytes)
            raise ExtractionFailure(
                f"{' '.join(cmd)} produced more than {max_bytes} bytes of output"
            ) from e

        await proc.wait()

        if proc.returncode != 0:
            error_msg = stderr.decode(errors="replace").strip()
            logger.error("Git command failed", cmd=cmd, returncode=proc.returncode)
            raise ExtractionFailure(f"Git command failed: {error_msg}")

        return stdout.decode(errors="replace")

    @staticmethod
    async def _read_bounded(stream: asyncio.StreamReader, max_bytes: int) -> bytes:
        """Read a stream to EOF, failing once it grows past ``max_bytes``."""
        buffer = bytearray()
        while True:
            chunk = await stream.read(64 * 1024)
            if not chunk:
                break
            buffer.extend(chunk)
            if len(buffer) > max_bytes:
                raise OutputLimitExceeded(max_bytes)
        return bytes(buffer)
