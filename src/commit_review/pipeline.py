"""
Review Pipeline

One sequential pass per invocation:

    extraction -> filtering -> manifest -> checklists -> conversation -> report

Filtering, checklist aggregation and the preparation phase are optional
stages switched by configuration.
"""

import structlog

from commit_review.config import ReviewerConfig
from commit_review.engine.base import CancellationToken, ReasoningEngine
from commit_review.errors import AnswerSchemaViolation, PersistenceFailure, ReviewCancelled
from commit_review.review.answer import parse_answer
from commit_review.review.checklist import ChecklistAggregator
from commit_review.review.git_diff import ChangeSetExtractor
from commit_review.review.guidelines import GuidelineRegistry
from commit_review.review.models import ReportProfile, ReviewOutcome, ReviewRun
from commit_review.review.orchestrator import (
    ConversationOrchestrator,
    ConversationRequest,
    FragmentCallback,
)
from commit_review.review.path_filter import PathExclusionFilter
from commit_review.review.report import ReportEmitter

logger = structlog.get_logger(__name__)


class ReviewPipeline:
    """Wire the review components together for a single invocation."""

    def __init__(
        self,
        config: ReviewerConfig,
        engine: ReasoningEngine,
        extractor: ChangeSetExtractor | None = None,
        path_filter: PathExclusionFilter | None = None,
        aggregator: ChecklistAggregator | None = None,
        guidelines: GuidelineRegistry | None = None,
        on_fragment: FragmentCallback | None = None,
    ):
        self.config = config
        self.engine = engine
        self.extractor = extractor or ChangeSetExtractor()
        self.path_filter = path_filter or PathExclusionFilter()
        self.aggregator = aggregator or ChecklistAggregator()
        self.guidelines = guidelines or GuidelineRegistry()
        self.on_fragment = on_fragment

    async def run(self, token: CancellationToken | None = None) -> ReviewRun:
        """
        Review the latest commit of the configured workspace.

        Returns:
            ReviewRun describing the outcome and written artifacts

        Raises:
            ConfigurationMissing: no usable workspace root
            ConfigurationError: workspace settings are malformed
            ExtractionFailure: git failed
        """
        token = token or CancellationToken()
        config = self.config.with_workspace_settings()
        root = config.workspace_root
        log = logger.bind(workspace=str(root))

        change_set = await self.extractor.fetch_change_set(root)
        run = ReviewRun(outcome=ReviewOutcome.NO_CHANGES, workspace=root, change_set=change_set)
        emitter = ReportEmitter(root, manifest_dir=config.manifest_dir, prefix=config.report_prefix)

        try:
            token.raise_if_cancelled()

            rules = (
                self.path_filter.normalize(config.exclude_paths, root)
                if config.filtering
                else []
            )
            run.filter_result = self.path_filter.filter(
                change_set.diff_text, rules, change_set.files
            )
            log.info(
                "Change set filtered",
                files=len(run.filter_result.all_files),
                excluded=len(run.filter_result.excluded_files),
                truncated=change_set.truncated,
            )

            try:
                run.manifest = emitter.write_manifest(run.filter_result)
            except PersistenceFailure as e:
                run.warnings.append(str(e))

            if change_set.is_empty:
                log.info("No changes in latest commit")
                return run

            if not run.filter_result.text.strip() and not config.delegate_retrieval:
                log.info("All changed files excluded")
                return run

            token.raise_if_cancelled()
            if config.use_checklists:
                run.checklists = self.aggregator.load(config.checklists, root)

            token.raise_if_cancelled()
            orchestrator = ConversationOrchestrator(
                self.engine,
                profile=config.profile,
                guidelines=self.guidelines,
                two_phase=config.two_phase,
                on_fragment=self.on_fragment,
                max_diff_chars=self.extractor.max_chars,
                max_checklist_chars=self.aggregator.max_chars,
            )
            request = ConversationRequest(
                diff_command=change_set.diff_command,
                name_command=change_set.name_command,
                exclusion_rules=rules,
                diff_text=None if config.delegate_retrieval else run.filter_result.text,
                truncated=change_set.truncated,
                checklists=run.checklists,
            )
            conversation = await orchestrator.run(request, token)

            run.outcome = conversation.outcome
            run.prepared_diff = conversation.prepared_diff
            run.review_text = conversation.review_text
            run.error = conversation.error
            if conversation.outcome != ReviewOutcome.COMPLETED:
                return run

            content = run.review_text
            if config.profile == ReportProfile.JSON:
                try:
                    content, answer = parse_answer(run.review_text)
                except AnswerSchemaViolation as e:
                    log.error("Invalid review answer", error=str(e))
                    run.outcome = ReviewOutcome.INVALID_ANSWER
                    run.error = str(e)
                    return run
                run.findings = answer.findings()

            token.raise_if_cancelled()
            try:
                run.report = emitter.write_report(content, config.profile)
            except PersistenceFailure as e:
                run.warnings.append(str(e))

            return run

        except ReviewCancelled:
            log.info("Review cancelled")
            run.outcome = ReviewOutcome.CANCELLED
            run.error = "Review cancelled"
            return run
