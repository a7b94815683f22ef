"""
Review Module

Change-set extraction, path filtering, checklists, the review conversation
and report persistence.
"""

from .answer import ReviewAnswer, parse_answer
from .checklist import ChecklistAggregator
from .git_diff import ChangeSetExtractor
from .guidelines import GuidelineBlock, GuidelineRegistry
from .models import (
    ChangeSet,
    ChecklistDocument,
    ConversationPhase,
    ConversationState,
    DiffSegment,
    FilterResult,
    ReportProfile,
    ReviewFinding,
    ReviewOutcome,
    ReviewRun,
)
from .orchestrator import ConversationOrchestrator, ConversationRequest, ConversationResult
from .path_filter import PathExclusionFilter
from .report import ReportEmitter

__all__ = [
    "ReviewAnswer",
    "parse_answer",
    "ChecklistAggregator",
    "ChangeSetExtractor",
    "GuidelineBlock",
    "GuidelineRegistry",
    "ChangeSet",
    "ChecklistDocument",
    "ConversationPhase",
    "ConversationState",
    "DiffSegment",
    "FilterResult",
    "ReportProfile",
    "ReviewFinding",
    "ReviewOutcome",
    "ReviewRun",
    "ConversationOrchestrator",
    "ConversationRequest",
    "ConversationResult",
    "PathExclusionFilter",
    "ReportEmitter",
]
