#!/usr/bin/env python3
"""Review the latest commit of a git workspace.

Usage:
    commit-review
    commit-review path/to/repo --exclude vendor --checklist docs/review.md
    python -m commit_review --profile html --one-phase
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

import structlog

from commit_review.config import ReviewerConfig
from commit_review.engine import CancellationToken, GroqEngine
from commit_review.errors import ConfigurationError, ConfigurationMissing, ReviewError
from commit_review.pipeline import ReviewPipeline
from commit_review.review.models import ConversationPhase, ReportProfile, ReviewOutcome, ReviewRun

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2
EXIT_CANCELLED = 130


def configure_logging(verbose: bool = False) -> None:
    """Send structured logs to stderr; stdout carries the review."""
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.INFO
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Review the latest git commit with an LLM")
    parser.add_argument("workspace", nargs="?", type=Path, help="Workspace root (default: cwd)")
    parser.add_argument(
        "--exclude", action="append", default=[], metavar="PATH",
        help="Exclude a file or directory (repeatable)",
    )
    parser.add_argument(
        "--checklist", action="append", default=[], metavar="REF",
        help="Checklist document to include (repeatable)",
    )
    parser.add_argument("--profile", choices=[p.value for p in ReportProfile], help="Answer format")
    parser.add_argument("--one-phase", action="store_true", help="Skip the preparation phase")
    parser.add_argument("--no-filter", action="store_true", help="Disable path exclusion")
    parser.add_argument("--no-checklists", action="store_true", help="Do not send checklists")
    parser.add_argument(
        "--delegate-retrieval", action="store_true",
        help="Let the engine run the diff command itself",
    )
    parser.add_argument("--manifest-dir", type=Path, help="Directory for file manifests")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def config_from_args(args: argparse.Namespace) -> ReviewerConfig:
    config = ReviewerConfig.from_env()
    config.workspace_root = args.workspace or config.workspace_root or Path.cwd()
    config.exclude_paths = list(args.exclude)
    config.checklists = list(args.checklist)
    if args.profile:
        config.profile = ReportProfile(args.profile)
    if args.one_phase:
        config.two_phase = False
    if args.no_filter:
        config.filtering = False
    if args.no_checklists:
        config.use_checklists = False
    if args.delegate_retrieval:
        config.delegate_retrieval = True
    if args.manifest_dir:
        config.manifest_dir = args.manifest_dir
    return config


def write_fragment(phase: ConversationPhase, fragment: str) -> None:
    """Stream review fragments to stdout as they arrive."""
    if phase == ConversationPhase.REVIEW:
        sys.stdout.write(fragment)
        sys.stdout.flush()


def report_outcome(run: ReviewRun) -> int:
    """Print the outcome message and map it to an exit code."""
    for warning in run.warnings:
        print(f"Warning: {warning}", file=sys.stderr)

    if run.outcome == ReviewOutcome.COMPLETED:
        print()
        if run.report:
            print(f"Report saved to {run.report.path}", file=sys.stderr)
        return EXIT_OK
    if run.outcome == ReviewOutcome.NO_CHANGES:
        if run.change_set is not None and run.change_set.is_empty:
            print("No differences found in the latest commit.", file=sys.stderr)
        else:
            print("No changes to review after filtering.", file=sys.stderr)
        return EXIT_OK
    if run.outcome == ReviewOutcome.NO_CONTENT:
        print("The preparation phase returned no content.", file=sys.stderr)
        return EXIT_FAILURE
    if run.outcome == ReviewOutcome.CANCELLED:
        print("Review cancelled.", file=sys.stderr)
        return EXIT_CANCELLED

    print(f"Review failed: {run.error}", file=sys.stderr)
    return EXIT_FAILURE


async def main_async(args: argparse.Namespace) -> int:
    try:
        config = config_from_args(args)
    except ConfigurationError as e:
        print(str(e), file=sys.stderr)
        return EXIT_CONFIG
    token = CancellationToken()

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel)
    except (NotImplementedError, RuntimeError):
        pass  # Not supported on this platform

    try:
        engine = GroqEngine(
            api_key=config.groq_api_key or "",
            model=config.llm_model,
            base_url=config.llm_base_url,
            timeout_seconds=config.request_timeout_seconds,
        )
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return EXIT_CONFIG

    pipeline = ReviewPipeline(config, engine, on_fragment=write_fragment)
    try:
        run = await pipeline.run(token)
    except (ConfigurationMissing, ConfigurationError) as e:
        print(str(e), file=sys.stderr)
        return EXIT_CONFIG
    except ReviewError as e:
        print(f"Could not get the git diff: {e}", file=sys.stderr)
        return EXIT_FAILURE

    logger.debug("Review finished", **run.to_dict())
    return report_outcome(run)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    return asyncio.run(main_async(args))


if __name__ == "__main__":
    sys.exit(main())
