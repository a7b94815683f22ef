"""
Path Exclusion Filter

Splits a unified diff into per-file segments and drops the segments whose
path falls under a configured exclusion rule.
"""

import os
import re
from collections.abc import Iterable
from pathlib import Path

import structlog

from .models import DiffSegment, FilterResult

logger = structlog.get_logger(__name__)


# Single-character escapes git uses inside quoted paths
_C_ESCAPES = {
    "a": 0x07, "b": 0x08, "t": 0x09, "n": 0x0A, "v": 0x0B,
    "f": 0x0C, "r": 0x0D, '"': 0x22, "\\": 0x5C,
}
_OCTAL = re.compile(r"[0-3][0-7]{2}")


def unquote_git_path(path: str) -> str:
    """
    Decode a path that git wrapped in double quotes.

    Git quotes paths containing control characters, quotes, backslashes
    and (with ``core.quotePath`` on) non-ASCII bytes, writing the raw
    bytes as C-style escapes. Unquoted paths are returned unchanged.
    """
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path

    body = path[1:-1]
    raw = bytearray()
    i = 0
    while i < len(body):
        char = body[i]
        if char == "\\" and i + 1 < len(body):
            octal = _OCTAL.match(body, i + 1)
            if octal:
                raw.append(int(octal.group(), 8))
                i = octal.end()
                continue
            escaped = _C_ESCAPES.get(body[i + 1])
            if escaped is not None:
                raw.append(escaped)
                i += 2
                continue
        raw.extend(char.encode("utf-8"))
        i += 1
    return raw.decode("utf-8", errors="replace")


def canonical_path(path: str) -> str:
    """Forward slashes, no leading ``./`` or ``/``."""
    path = path.strip().replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path.lstrip("/")


def _dedupe(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            result.append(item)
    return result


class PathExclusionFilter:
    """Segment diffs by file and partition them by exclusion rules."""

    # Two-path header; each side may be quoted by git for unusual file names
    FILE_HEADER = re.compile(
        r'^diff --git ("a/(?:[^"\\]|\\.)*"|a/.+?) ("b/(?:[^"\\]|\\.)*"|b/.+?)$',
        re.MULTILINE,
    )

    def normalize(
        self, raw_paths: Iterable[str], workspace_root: str | Path
    ) -> list[str]:
        """
        Turn configured exclusion entries into workspace-relative rules.

        Args:
            raw_paths: Entries as written in the settings
            workspace_root: Root that absolute entries are resolved against

        Returns:
            De-duplicated rules in first-seen order
        """
        root = str(workspace_root)
        rules = []
        for raw in raw_paths:
            entry = raw.strip().replace("\\", "/")
            if not entry:
                continue
            if os.path.isabs(entry):
                relative = os.path.relpath(entry, root).replace("\\", "/")
                # Outside the workspace: read "/vendor" as root-relative
                if relative != ".." and not relative.startswith("../"):
                    entry = relative
            entry = canonical_path(entry).rstrip("/")
            if entry in ("", "."):
                continue
            rules.append(entry)
        return _dedupe(rules)

    def segment(self, diff_text: str) -> list[DiffSegment]:
        """
        Split diff text into contiguous per-file segments.

        Each segment runs from its header line to the start of the next
        header, or to the end of the text. Text before the first header
        (the preamble) belongs to no segment.
        """
        matches = list(self.FILE_HEADER.finditer(diff_text))
        segments = []
        for i, match in enumerate(matches):
            start = match.start()
            end = matches[i + 1].start() if i + 1 < len(matches) else len(diff_text)
            # Prefer the destination side of the pair; drop the "b/" prefix
            path = canonical_path(unquote_git_path(match.group(2))[2:])
            segments.append(DiffSegment(path=path, start=start, text=diff_text[start:end]))
        return segments

    @staticmethod
    def is_excluded(path: str, rules: Iterable[str]) -> bool:
        """A path matches a rule when it equals it or lives below it."""
        return any(path == rule or path.startswith(rule + "/") for rule in rules)

    def filter(
        self,
        diff_text: str,
        rules: Iterable[str],
        known_files: Iterable[str] = (),
    ) -> FilterResult:
        """
        Remove excluded files from a diff.

        Args:
            diff_text: Unified diff text
            rules: Normalized exclusion rules
            known_files: Explicit changed-file list from git

        Returns:
            FilterResult with the rebuilt text and the file partition
        """
        rules = list(rules)
        segments = self.segment(diff_text)

        all_files = _dedupe(
            [canonical_path(unquote_git_path(f)) for f in known_files]
            + [s.path for s in segments]
        )
        included = [f for f in all_files if not self.is_excluded(f, rules)]
        excluded = [f for f in all_files if self.is_excluded(f, rules)]

        if not segments or not rules:
            # Mode-only diffs have no headers; no rules means nothing to remove
            text = diff_text
        else:
            text = "".join(
                s.text for s in segments if not self.is_excluded(s.path, rules)
            )

        logger.debug(
            "Filtered diff",
            rules=rules,
            segments=len(segments),
            included=len(included),
            excluded=len(excluded),
        )

        return FilterResult(
            text=text,
            included_files=included,
            excluded_files=excluded,
            all_files=all_files,
        )
