"""
Conversation Orchestrator

Drives the two-phase request protocol against the reasoning engine:

1. Preparation: hand the engine the retrieval command, the exclusion rules
   and (unless retrieval is delegated) the filtered diff; collect the
   prepared diff.
2. Review: embed the prepared diff, checklists, matching guideline blocks
   and the output contract; collect the review answer.

One forward pass per invocation. No retries, no loops back.
"""

from collections.abc import Callable
from contextlib import aclosing
from dataclasses import dataclass, field

import httpx
import structlog

from commit_review.engine.base import (
    CancellationToken,
    ChatMessage,
    ReasoningEngine,
    RequestOptions,
)
from commit_review.errors import EngineRequestFailure, ReviewCancelled

from .guidelines import GuidelineRegistry
from .models import (
    MAX_CHECKLIST_CHARS,
    MAX_DIFF_CHARS,
    ChecklistDocument,
    ConversationPhase,
    ConversationState,
    ReportProfile,
    ReviewOutcome,
)
from .prompts import (
    build_preparation_prompt,
    build_review_prompt,
    contains_no_changes_sentinel,
)

logger = structlog.get_logger(__name__)

FragmentCallback = Callable[[ConversationPhase, str], None]

ELEVATED_ACCESS_JUSTIFICATION = (
    "Repository context is required to perform a thorough code review"
)


@dataclass
class ConversationRequest:
    """Inputs to one conversation."""

    diff_command: str
    name_command: str
    exclusion_rules: list[str] = field(default_factory=list)
    diff_text: str | None = None  # None delegates retrieval to the engine
    truncated: bool = False
    checklists: list[ChecklistDocument] = field(default_factory=list)


@dataclass
class ConversationResult:
    """Final state of one conversation."""

    state: ConversationState
    outcome: ReviewOutcome
    prepared_diff: str = ""
    review_text: str = ""
    preparation_prompt: str = ""
    review_prompt: str = ""
    guidelines: list[str] = field(default_factory=list)
    error: str | None = None


class ConversationOrchestrator:
    """State machine turning a filtered diff into a review answer."""

    def __init__(
        self,
        engine: ReasoningEngine,
        profile: ReportProfile = ReportProfile.JSON,
        guidelines: GuidelineRegistry | None = None,
        two_phase: bool = True,
        on_fragment: FragmentCallback | None = None,
        max_diff_chars: int = MAX_DIFF_CHARS,
        max_checklist_chars: int = MAX_CHECKLIST_CHARS,
    ):
        self.engine = engine
        self.profile = profile
        self.guidelines = guidelines or GuidelineRegistry()
        self.two_phase = two_phase
        self.on_fragment = on_fragment
        self.max_diff_chars = max_diff_chars
        self.max_checklist_chars = max_checklist_chars
        self.state = ConversationState.INIT

    def _transition(self, state: ConversationState) -> None:
        logger.info("Conversation state", previous=self.state.value, state=state.value)
        self.state = state

    async def run(
        self, request: ConversationRequest, token: CancellationToken
    ) -> ConversationResult:
        """
        Run the conversation to completion.

        Engine failures and cancellation are recorded in the result with
        state FAILED; they are never raised. Other exceptions propagate.
        """
        if self.state != ConversationState.INIT:
            raise RuntimeError("A conversation runs exactly once")
        if request.diff_text is None and not self.two_phase:
            raise ValueError("Delegated retrieval requires the preparation phase")

        result = ConversationResult(state=self.state, outcome=ReviewOutcome.FAILED)
        phase = ConversationPhase.PREPARATION

        try:
            token.raise_if_cancelled()
            self._transition(ConversationState.PREPARING)

            if self.two_phase:
                result.preparation_prompt = build_preparation_prompt(
                    diff_command=request.diff_command,
                    name_command=request.name_command,
                    exclusion_rules=request.exclusion_rules,
                    diff_text=request.diff_text,
                    truncated=request.truncated,
                    max_chars=self.max_diff_chars,
                )
                prepared = await self._consume(phase, result.preparation_prompt, token)
            else:
                prepared = request.diff_text or ""

            if not prepared.strip():
                return self._finish(result, ReviewOutcome.NO_CONTENT)
            if self.two_phase and contains_no_changes_sentinel(prepared):
                return self._finish(result, ReviewOutcome.NO_CHANGES)

            result.prepared_diff = prepared
            self._transition(ConversationState.PREPARED)

            phase = ConversationPhase.REVIEW
            self._transition(ConversationState.REVIEWING)
            token.raise_if_cancelled()

            blocks = self.guidelines.select(prepared)
            result.guidelines = [b.name for b in blocks]
            result.review_prompt = build_review_prompt(
                prepared_diff=prepared,
                checklists=request.checklists,
                guidelines=blocks,
                profile=self.profile,
                max_checklist_chars=self.max_checklist_chars,
            )
            result.review_text = await self._consume(phase, result.review_prompt, token)
            return self._finish(result, ReviewOutcome.COMPLETED)

        except ReviewCancelled:
            logger.info("Conversation cancelled", phase=phase.value)
            result.error = f"Cancelled during {phase.value}"
            return self._fail(result, ReviewOutcome.CANCELLED)
        except (EngineRequestFailure, httpx.HTTPError) as e:
            logger.error("Engine request failed", phase=phase.value, error=str(e), exc_info=True)
            result.error = f"{phase.value.capitalize()} request failed: {e}"
            return self._fail(result, ReviewOutcome.FAILED)

    async def _consume(
        self, phase: ConversationPhase, prompt: str, token: CancellationToken
    ) -> str:
        """Send one message and concatenate the streamed answer in delivery order."""
        messages = [ChatMessage.user(prompt)]
        options = RequestOptions(justification=ELEVATED_ACCESS_JUSTIFICATION)

        fragments: list[str] = []
        token.raise_if_cancelled()
        async with aclosing(self.engine.stream(messages, options, token)) as stream:
            async for fragment in stream:
                token.raise_if_cancelled()
                fragments.append(fragment)
                if self.on_fragment:
                    self.on_fragment(phase, fragment)

        text = "".join(fragments)
        logger.info("Phase answer received", phase=phase.value, chars=len(text))
        return text

    def _finish(self, result: ConversationResult, outcome: ReviewOutcome) -> ConversationResult:
        self._transition(ConversationState.DONE)
        result.state = self.state
        result.outcome = outcome
        return result

    def _fail(self, result: ConversationResult, outcome: ReviewOutcome) -> ConversationResult:
        # Partial text of the interrupted phase is never kept
        result.review_text = ""
        self._transition(ConversationState.FAILED)
        result.state = self.state
        result.outcome = outcome
        return result
