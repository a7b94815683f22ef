"""
Prompt builders for the two conversation phases.
"""

import json
from collections.abc import Sequence

from .guidelines import GuidelineBlock
from .models import ChecklistDocument, ReportProfile

NO_CHANGES_SENTINEL = "NO CHANGES DETECTED"

HTML_EMPTY_RESULT = "<p>No issues found.</p>"


def contains_no_changes_sentinel(text: str) -> bool:
    """Case-insensitive check for the no-changes marker."""
    return NO_CHANGES_SENTINEL.lower() in text.lower()


def build_preparation_prompt(
    diff_command: str,
    name_command: str,
    exclusion_rules: Sequence[str],
    diff_text: str | None,
    truncated: bool = False,
    max_chars: int | None = None,
) -> str:
    """
    Build the phase-1 instruction.

    When ``diff_text`` is None the engine is asked to run the retrieval
    command itself and apply the exclusion rules on its own.
    """
    parts = [
        "You are preparing a code change for review.",
        "",
        "Source of truth for the change set:",
        f"- Diff: `{diff_command}`",
        f"- Changed files: `{name_command}`",
        "",
        "Exclusion rules (drop every file equal to a rule or below it as a directory):",
        json.dumps(list(exclusion_rules)),
        "",
    ]

    if diff_text is None:
        parts.extend([
            "Run the diff command in the repository, remove the hunks of every excluded",
            "file, and output the remaining unified diff verbatim.",
        ])
    else:
        parts.extend([
            "The diff below has already been retrieved and filtered.",
            "Output it as a unified diff, dropping anything that matches an exclusion",
            "rule, without commentary.",
            "",
            "```diff",
            diff_text,
            "```",
        ])
        if truncated and max_chars:
            parts.append(f"(The diff contains only the first {max_chars} characters.)")

    parts.extend([
        "",
        f"If there is no diff to review, reply with exactly: {NO_CHANGES_SENTINEL}",
    ])
    return "\n".join(parts)


def _format_contract(profile: ReportProfile) -> list[str]:
    if profile == ReportProfile.HTML:
        return [
            "Output format:",
            "Return a single HTML <table> with the columns File, Line, Severity, Message,",
            "one row per finding, ordered by file then line.",
            "Severity is one of Critical, Major, Minor, Info.",
            f"When there are no findings return exactly: {HTML_EMPTY_RESULT}",
        ]
    return [
        "Output format:",
        "```json",
        "{",
        '  "comments": {',
        '    "<file path>": [',
        '      { "line": "<line context>", "message": "[<Severity>] <description>" }',
        "    ]",
        "  }",
        "}",
        "```",
        "Keep the keys in exactly this order. Severity is one of Critical, Major, Minor, Info.",
        'When there are no findings return {"comments": {}}.',
    ]


def build_review_prompt(
    prepared_diff: str,
    checklists: Sequence[ChecklistDocument],
    guidelines: Sequence[GuidelineBlock],
    profile: ReportProfile,
    max_checklist_chars: int | None = None,
) -> str:
    """
    Build the phase-2 instruction.

    Section order is fixed: diff, checklists, guidelines, output contract.
    """
    parts = [
        "You are a senior, rigorous code reviewer. Review the change below and focus on",
        "defects, risks and missing tests.",
        "",
        "Change under review:",
        "```diff",
        prepared_diff,
        "```",
    ]

    for document in checklists:
        parts.extend(["", f"Checklist: {document.label}", document.content])
        if document.truncated:
            limit = f"the first {max_checklist_chars} characters" if max_checklist_chars else "a prefix"
            parts.append(f"(This checklist was truncated to {limit}.)")

    for block in guidelines:
        parts.extend(["", f"{block.title}:", block.text])

    parts.append("")
    parts.extend(_format_contract(profile))
    return "\n".join(parts)
