"""
Error taxonomy for the commit review pipeline.

Every failure terminates the current invocation. Nothing is retried.
"""


class ReviewError(Exception):
    """Base class for all review pipeline errors."""


class ConfigurationMissing(ReviewError):
    """No resolvable workspace root."""


class ConfigurationError(ReviewError):
    """Workspace settings exist but cannot be used."""


class ExtractionFailure(ReviewError):
    """The git command failed, could not run, or exceeded its output buffer."""


class EngineRequestFailure(ReviewError):
    """A request to the reasoning engine failed."""


class PersistenceFailure(ReviewError):
    """Writing a report or manifest artifact failed."""


class AnswerSchemaViolation(ReviewError):
    """The engine's answer does not match the canonical answer schema."""


class ReviewCancelled(ReviewError):
    """A cancellation signal was observed."""
