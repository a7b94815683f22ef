"""
Checklist Aggregator

Loads review checklists referenced in the workspace settings, or the
built-in default when none are configured.
"""

from collections.abc import Sequence
from pathlib import Path

import structlog

from .models import MAX_CHECKLIST_CHARS, ChecklistDocument, limit_text

logger = structlog.get_logger(__name__)

DEFAULT_CHECKLIST_LABEL = "Built-in review checklist"

DEFAULT_CHECKLIST = """\
- Correctness: logic errors, off-by-one mistakes, unhandled None/null values.
- Error handling: exceptions swallowed or lost, missing cleanup of resources.
- Security: injection, unsafe deserialization, secrets committed to the repository.
- Concurrency: shared state mutated without synchronization, unawaited tasks.
- API contracts: breaking changes to public signatures, undocumented behavior.
- Tests: new behavior without tests, tests that cannot fail.
- Maintainability: dead code, duplicated logic, misleading names.
"""


class ChecklistAggregator:
    """Resolve, read and truncate checklist documents."""

    def __init__(self, max_chars: int = MAX_CHECKLIST_CHARS):
        self.max_chars = max_chars

    def load(
        self, references: Sequence[str], workspace_root: str | Path
    ) -> list[ChecklistDocument]:
        """
        Load checklist documents in the order given.

        Unreadable references are skipped with a warning. An empty
        reference list yields the built-in checklist.
        """
        if not references:
            return [ChecklistDocument(label=DEFAULT_CHECKLIST_LABEL, content=DEFAULT_CHECKLIST)]

        root = Path(workspace_root)
        documents = []
        for reference in references:
            path = Path(reference.strip()).expanduser()
            if not path.is_absolute():
                path = root / path

            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Skipping unreadable checklist", reference=reference, error=str(e))
                continue

            chunk = limit_text(content, self.max_chars)
            if chunk.truncated:
                logger.info("Checklist truncated", reference=reference, chars=len(content))
            documents.append(
                ChecklistDocument(label=reference, content=chunk.text, truncated=chunk.truncated)
            )

        return documents
