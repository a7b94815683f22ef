"""
Data models for the commit review pipeline.

Defines all types used between extraction, filtering, the conversation
and persistence. Everything here lives for a single invocation.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

# Hard character caps
MAX_DIFF_CHARS = 60_000
MAX_CHECKLIST_CHARS = 20_000

# Output buffer bounds for the git commands
MAX_DIFF_BYTES = 10 * 1024 * 1024
MAX_NAME_LIST_BYTES = 1 * 1024 * 1024


class ConversationPhase(str, Enum):
    """One step of the two-step request protocol."""

    PREPARATION = "preparation"
    REVIEW = "review"


class ConversationState(str, Enum):
    """States of the conversation state machine."""

    INIT = "init"
    PREPARING = "preparing"
    PREPARED = "prepared"
    REVIEWING = "reviewing"
    DONE = "done"
    FAILED = "failed"


class ReviewOutcome(str, Enum):
    """How an invocation ended."""

    COMPLETED = "completed"
    NO_CHANGES = "no_changes"  # Empty change set or sentinel from phase 1
    NO_CONTENT = "no_content"  # Phase 1 produced only whitespace
    INVALID_ANSWER = "invalid_answer"  # Answer failed schema validation
    FAILED = "failed"
    CANCELLED = "cancelled"


class ReportProfile(str, Enum):
    """Deployment profile selecting the answer format."""

    JSON = "json"
    HTML = "html"


@dataclass
class TextChunk:
    """Text bounded by a character cap."""

    text: str
    truncated: bool = False


def limit_text(text: str, limit: int) -> TextChunk:
    """Keep at most ``limit`` characters of ``text``."""
    if len(text) <= limit:
        return TextChunk(text=text, truncated=False)
    return TextChunk(text=text[:limit], truncated=True)


@dataclass
class ChangeSet:
    """Raw diff text and changed-file list for one invocation."""

    diff_text: str = ""
    truncated: bool = False
    files: list[str] = field(default_factory=list)
    diff_command: str = ""
    name_command: str = ""

    @property
    def is_empty(self) -> bool:
        """True when git succeeded but reported no textual diff."""
        return not self.diff_text.strip()


@dataclass
class DiffSegment:
    """The portion of a diff belonging to exactly one file."""

    path: str
    start: int
    text: str

    @property
    def end(self) -> int:
        return self.start + len(self.text)


@dataclass
class FilterResult:
    """Outcome of applying exclusion rules to a diff."""

    text: str
    included_files: list[str] = field(default_factory=list)
    excluded_files: list[str] = field(default_factory=list)
    all_files: list[str] = field(default_factory=list)


@dataclass
class ChecklistDocument:
    """A checklist loaded from disk or the built-in default."""

    label: str
    content: str
    truncated: bool = False


@dataclass
class ReviewFinding:
    """A single finding extracted from a validated JSON answer."""

    file_path: str
    line: str
    severity: str
    message: str


@dataclass
class ReportArtifact:
    """A persisted output file."""

    format: str  # "json" | "html"
    path: Path
    content: bytes
    created_at: datetime = field(default_factory=datetime.now)


@dataclass
class ReviewRun:
    """Complete result of one pipeline invocation."""

    outcome: ReviewOutcome
    workspace: Path
    change_set: ChangeSet | None = None
    filter_result: FilterResult | None = None
    checklists: list[ChecklistDocument] = field(default_factory=list)
    prepared_diff: str = ""
    review_text: str = ""
    findings: list[ReviewFinding] = field(default_factory=list)
    manifest: ReportArtifact | None = None
    report: ReportArtifact | None = None
    warnings: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging or JSON output."""
        return {
            "outcome": self.outcome.value,
            "workspace": str(self.workspace),
            "included_files": self.filter_result.included_files if self.filter_result else [],
            "excluded_files": self.filter_result.excluded_files if self.filter_result else [],
            "checklists": [c.label for c in self.checklists],
            "findings": len(self.findings),
            "manifest_path": str(self.manifest.path) if self.manifest else None,
            "report_path": str(self.report.path) if self.report else None,
            "warnings": self.warnings,
            "error": self.error,
        }
