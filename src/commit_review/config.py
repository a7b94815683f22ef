"""Configuration management for commit review.

Process-wide settings come from environment variables; the exclusion list
and checklist references come from the workspace settings file.
"""

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path

from commit_review.errors import ConfigurationError, ConfigurationMissing
from commit_review.review.models import ReportProfile

WORKSPACE_SETTINGS_FILE = ".commit-review.json"


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ReviewerConfig:
    """Commit review configuration."""

    # Workspace
    workspace_root: Path | None = None
    exclude_paths: list[str] = field(default_factory=list)
    checklists: list[str] = field(default_factory=list)

    # Pipeline stages
    profile: ReportProfile = ReportProfile.JSON
    filtering: bool = True
    use_checklists: bool = True
    two_phase: bool = True
    delegate_retrieval: bool = False

    # Persistence
    report_prefix: str = "commit-review"
    manifest_dir: Path | None = None  # System temp dir when unset

    # LLM configuration
    llm_model: str = "llama-3.3-70b-versatile"
    llm_base_url: str = "https://api.groq.com/openai/v1"
    groq_api_key: str | None = None  # Set via env
    request_timeout_seconds: float = 120.0

    @classmethod
    def from_env(cls) -> "ReviewerConfig":
        """
        Create configuration from environment variables.

        Raises:
            ConfigurationError: a variable holds a value that cannot be parsed
        """
        workspace = os.getenv("COMMIT_REVIEW_WORKSPACE")
        manifest_dir = os.getenv("COMMIT_REVIEW_MANIFEST_DIR")

        try:
            profile = ReportProfile(os.getenv("COMMIT_REVIEW_PROFILE", "json").lower())
        except ValueError as e:
            raise ConfigurationError(f"Invalid COMMIT_REVIEW_PROFILE: {e}") from e
        try:
            timeout = float(os.getenv("COMMIT_REVIEW_TIMEOUT", "120"))
        except ValueError as e:
            raise ConfigurationError(f"Invalid COMMIT_REVIEW_TIMEOUT: {e}") from e

        return cls(
            workspace_root=Path(workspace) if workspace else None,
            profile=profile,
            filtering=_env_flag("COMMIT_REVIEW_FILTERING", True),
            use_checklists=_env_flag("COMMIT_REVIEW_CHECKLISTS", True),
            two_phase=_env_flag("COMMIT_REVIEW_TWO_PHASE", True),
            delegate_retrieval=_env_flag("COMMIT_REVIEW_DELEGATE_RETRIEVAL", False),
            report_prefix=os.getenv("COMMIT_REVIEW_PREFIX", "commit-review"),
            manifest_dir=Path(manifest_dir) if manifest_dir else None,
            llm_model=os.getenv("COMMIT_REVIEW_MODEL", "llama-3.3-70b-versatile"),
            llm_base_url=os.getenv("COMMIT_REVIEW_BASE_URL", "https://api.groq.com/openai/v1"),
            groq_api_key=os.getenv("GROQ_API_KEY"),
            request_timeout_seconds=timeout,
        )

    def resolve_workspace(self) -> Path:
        """
        Return the workspace root.

        Raises:
            ConfigurationMissing: no workspace configured or it is not a directory
        """
        if self.workspace_root is None:
            raise ConfigurationMissing("Open a git repository workspace before running a review.")
        root = Path(self.workspace_root).expanduser().resolve()
        if not root.is_dir():
            raise ConfigurationMissing(f"Workspace is not a directory: {root}")
        return root

    def with_workspace_settings(self) -> "ReviewerConfig":
        """
        Merge the workspace settings file into a copy of this config.

        Lists given programmatically are kept in front of the file's entries.
        """
        root = self.resolve_workspace()
        settings = load_workspace_settings(root)

        profile = self.profile
        if "profile" in settings:
            try:
                profile = ReportProfile(settings["profile"])
            except ValueError as e:
                raise ConfigurationError(f"Unknown profile in {WORKSPACE_SETTINGS_FILE}: {e}") from e

        return replace(
            self,
            workspace_root=root,
            exclude_paths=self.exclude_paths + settings.get("excludePaths", []),
            checklists=self.checklists + settings.get("checklists", []),
            profile=profile,
        )


def load_workspace_settings(workspace_root: Path) -> dict:
    """
    Read the workspace settings file.

    Returns:
        Parsed settings, empty when the file does not exist

    Raises:
        ConfigurationError: the file is not valid JSON or has the wrong shape
    """
    path = workspace_root / WORKSPACE_SETTINGS_FILE
    if not path.exists():
        return {}

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Could not read {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a JSON object")

    for key in ("excludePaths", "checklists"):
        value = data.get(key, [])
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigurationError(f"{key} in {path} must be a list of strings")

    return data
