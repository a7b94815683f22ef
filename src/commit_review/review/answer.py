"""
Canonical answer schema for the JSON profile.

    {"comments": {"<file>": [{"line": "<context>", "message": "[<Severity>] <text>"}]}}
"""

import json
import re

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from commit_review.errors import AnswerSchemaViolation

from .models import ReviewFinding

SEVERITY_PREFIX = re.compile(r"^\s*\[([A-Za-z]+)\]\s*(.*)$", re.DOTALL)


class ReviewComment(BaseModel):
    """One comment on a file."""

    model_config = ConfigDict(extra="forbid")

    line: str
    message: str = Field(min_length=1)

    @field_validator("message")
    @classmethod
    def message_has_severity(cls, value: str) -> str:
        if not SEVERITY_PREFIX.match(value):
            raise ValueError("message must start with a bracketed severity, e.g. [Major]")
        return value


class ReviewAnswer(BaseModel):
    """The whole answer: file path to comments."""

    model_config = ConfigDict(extra="forbid")

    comments: dict[str, list[ReviewComment]]

    def findings(self) -> list[ReviewFinding]:
        """Flatten comments into findings, keeping file and comment order."""
        findings = []
        for file_path, comments in self.comments.items():
            for comment in comments:
                match = SEVERITY_PREFIX.match(comment.message)
                findings.append(
                    ReviewFinding(
                        file_path=file_path,
                        line=comment.line,
                        severity=match.group(1),
                        message=match.group(2).strip(),
                    )
                )
        return findings


def _fenced_blocks(text: str) -> list[tuple[str, str]]:
    """Return (info string, body) for each fenced block that opens at a line start."""
    blocks = []
    info: str | None = None
    body: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if info is None:
            if line.startswith("```"):
                info = stripped[3:].strip().lower()
                body = []
        elif stripped == "```":
            blocks.append((info, "\n".join(body)))
            info = None
        else:
            body.append(line)
    return blocks


def _is_json(text: str) -> bool:
    try:
        json.loads(text)
    except json.JSONDecodeError:
        return False
    return True


def extract_answer_payload(text: str) -> str:
    """
    Pick the JSON payload out of an answer.

    A block tagged ``json`` wins; otherwise the first untagged block whose
    body parses; otherwise the whole stripped text.
    """
    blocks = _fenced_blocks(text)
    for info, body in blocks:
        if info == "json":
            return body.strip()
    for info, body in blocks:
        if not info and _is_json(body):
            return body.strip()
    return text.strip()


def parse_answer(text: str) -> tuple[str, ReviewAnswer]:
    """
    Validate an engine answer against the canonical schema.

    Returns:
        Tuple of (payload text, parsed answer)

    Raises:
        AnswerSchemaViolation: payload is not JSON or does not match the schema
    """
    payload = extract_answer_payload(text)
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise AnswerSchemaViolation(f"Answer is not valid JSON: {e}") from e

    try:
        answer = ReviewAnswer.model_validate(data)
    except ValidationError as e:
        raise AnswerSchemaViolation(f"Answer does not match the review schema: {e}") from e

    return payload, answer
