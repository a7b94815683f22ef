"""Tests for the command-line entry point."""

from pathlib import Path

import pytest

from commit_review.cli import (
    EXIT_CANCELLED,
    EXIT_CONFIG,
    EXIT_FAILURE,
    EXIT_OK,
    build_parser,
    config_from_args,
    main_async,
    report_outcome,
)
from commit_review.review.models import ChangeSet, ReportProfile, ReviewOutcome, ReviewRun


class TestArguments:
    """Tests for argument parsing."""

    def test_flags_map_to_config(self, tmp_path: Path):
        args = build_parser().parse_args([
            str(tmp_path),
            "--exclude", "vendor",
            "--exclude", "dist",
            "--checklist", "docs/review.md",
            "--profile", "html",
            "--one-phase",
            "--no-checklists",
        ])

        config = config_from_args(args)

        assert config.workspace_root.resolve() == tmp_path.resolve()
        assert config.exclude_paths == ["vendor", "dist"]
        assert config.checklists == ["docs/review.md"]
        assert config.profile == ReportProfile.HTML
        assert config.two_phase is False
        assert config.use_checklists is False
        assert config.filtering is True

    def test_workspace_defaults_to_cwd(self, monkeypatch, tmp_path: Path):
        monkeypatch.delenv("COMMIT_REVIEW_WORKSPACE", raising=False)
        monkeypatch.chdir(tmp_path)

        config = config_from_args(build_parser().parse_args([]))

        assert config.workspace_root.resolve() == tmp_path.resolve()


class TestReportOutcome:
    """Tests for outcome messages and exit codes."""

    def test_completed(self, tmp_path: Path):
        assert report_outcome(ReviewRun(outcome=ReviewOutcome.COMPLETED, workspace=tmp_path)) == EXIT_OK

    def test_empty_change_set_message(self, tmp_path: Path, capsys):
        run = ReviewRun(outcome=ReviewOutcome.NO_CHANGES, workspace=tmp_path, change_set=ChangeSet())

        assert report_outcome(run) == EXIT_OK
        assert "No differences found" in capsys.readouterr().err

    def test_failure_shows_error(self, tmp_path: Path, capsys):
        run = ReviewRun(outcome=ReviewOutcome.FAILED, workspace=tmp_path, error="HTTP 500")

        assert report_outcome(run) == EXIT_FAILURE
        assert "HTTP 500" in capsys.readouterr().err

    def test_warnings_printed(self, tmp_path: Path, capsys):
        run = ReviewRun(
            outcome=ReviewOutcome.COMPLETED, workspace=tmp_path, warnings=["disk full"]
        )

        report_outcome(run)

        assert "Warning: disk full" in capsys.readouterr().err

    def test_cancelled(self, tmp_path: Path):
        run = ReviewRun(outcome=ReviewOutcome.CANCELLED, workspace=tmp_path)
        assert report_outcome(run) == EXIT_CANCELLED


class TestMain:
    """Tests for the async entry point."""

    @pytest.mark.asyncio
    async def test_invalid_env_exits_with_config_code(self, monkeypatch, tmp_path: Path, capsys):
        monkeypatch.setenv("COMMIT_REVIEW_TIMEOUT", "soon")

        code = await main_async(build_parser().parse_args([str(tmp_path)]))

        assert code == EXIT_CONFIG
        assert "COMMIT_REVIEW_TIMEOUT" in capsys.readouterr().err
