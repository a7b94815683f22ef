"""Pytest configuration and fixtures for commit review tests."""

import pytest


@pytest.fixture
def sample_settings() -> dict:
    """Sample workspace settings file contents."""
    return {
        "excludePaths": ["vendor", "./dist/", "docs\\generated"],
        "checklists": ["docs/review-checklist.md"],
    }


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: Integration tests requiring a git executable"
    )
    config.addinivalue_line(
        "markers",
        "e2e: End-to-end tests for full pipeline"
    )
