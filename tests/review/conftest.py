"""
Shared fixtures for review pipeline tests.

Provides temporary git repositories and a scripted reasoning engine.
"""

import subprocess
from pathlib import Path
from typing import Any, Callable, Generator

import pytest


# =============================================================================
# GIT REPOSITORY FIXTURES
# =============================================================================

def git(repo_path: Path, *args: str) -> None:
    """Run a git command in ``repo_path``, failing the test on error."""
    subprocess.run(["git", *args], cwd=repo_path, check=True, capture_output=True)


def init_repo(repo_path: Path, files: dict[str, str]) -> None:
    """Initialize a repository and commit ``files`` as the first commit."""
    repo_path.mkdir(parents=True, exist_ok=True)
    git(repo_path, "init")
    git(repo_path, "config", "user.email", "test@test.com")
    git(repo_path, "config", "user.name", "Test User")
    git(repo_path, "config", "commit.gpgsign", "false")
    commit_files(repo_path, files, "Initial commit")


def commit_files(repo_path: Path, files: dict[str, str], message: str) -> None:
    """Write ``files`` and commit them."""
    for path, content in files.items():
        file_path = repo_path / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)
    git(repo_path, "add", ".")
    git(repo_path, "commit", "-m", message)


@pytest.fixture
def git_repo(tmp_path: Path) -> Generator[Path, None, None]:
    """
    Repository whose latest commit touches main.go and vendor/lib.go.

    Yields:
        Path to the repository
    """
    repo_path = tmp_path / "project"
    init_repo(
        repo_path,
        {
            "main.go": "package main\n\nfunc main() {}\n",
            "vendor/lib.go": "package lib\n",
            "README.md": "# Project\n",
        },
    )
    commit_files(
        repo_path,
        {
            "main.go": "package main\n\nfunc main() {\n\tprintln(\"hi\")\n}\n",
            "vendor/lib.go": "package lib\n\nfunc Helper() {}\n",
        },
        "Update main and vendored lib",
    )
    yield repo_path


@pytest.fixture
def empty_commit_repo(tmp_path: Path) -> Generator[Path, None, None]:
    """Repository whose latest commit is empty."""
    repo_path = tmp_path / "empty"
    init_repo(repo_path, {"main.go": "package main\n"})
    git(repo_path, "commit", "--allow-empty", "-m", "Empty commit")
    yield repo_path


@pytest.fixture
def single_commit_repo(tmp_path: Path) -> Generator[Path, None, None]:
    """Repository with no parent commit for HEAD."""
    repo_path = tmp_path / "single"
    init_repo(repo_path, {"main.go": "package main\n"})
    yield repo_path


@pytest.fixture
def unicode_repo(tmp_path: Path) -> Generator[Path, None, None]:
    """Repository whose latest commit adds a file under a non-ASCII directory."""
    repo_path = tmp_path / "unicode"
    init_repo(repo_path, {"main.go": "package main\n"})
    commit_files(
        repo_path,
        {"文档/说明.md": "# notes\n", "main.go": "package main\n\nfunc main() {}\n"},
        "Add docs",
    )
    yield repo_path


# =============================================================================
# SCRIPTED ENGINE
# =============================================================================

class ScriptedEngine:
    """
    Reasoning engine that replays scripted answers.

    Each answer is a list of fragments or an exception raised when the
    stream is consumed.
    """

    def __init__(self, answers: list[Any]):
        self.answers = list(answers)
        self.calls: list[tuple[list, Any]] = []
        self.closed_streams = 0

    @property
    def prompts(self) -> list[str]:
        return [messages[0].content for messages, _ in self.calls]

    async def stream(self, messages, options, token):
        self.calls.append((messages, options))
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        try:
            for fragment in answer:
                yield fragment
        finally:
            self.closed_streams += 1


@pytest.fixture
def make_engine() -> Callable[..., ScriptedEngine]:
    """Factory for scripted engines: ``make_engine(["a", "b"], EngineRequestFailure("down"))``."""
    def factory(*answers: Any) -> ScriptedEngine:
        return ScriptedEngine(list(answers))
    return factory


# =============================================================================
# SAMPLE DIFFS
# =============================================================================

@pytest.fixture
def sample_diff_vendor() -> str:
    """Diff touching a vendored file and a main file."""
    return """\
diff --git a/vendor/lib.go b/vendor/lib.go
index 1234567..abcdefg 100644
--- a/vendor/lib.go
+++ b/vendor/lib.go
@@ -1 +1,3 @@
 package lib
+
+func Helper() {}
diff --git a/main.go b/main.go
index 1234567..abcdefg 100644
--- a/main.go
+++ b/main.go
@@ -1,3 +1,5 @@
 package main

-func main() {}
+func main() {
+	println("hi")
+}
"""


VALID_JSON_ANSWER = """\
```json
{
  "comments": {
    "main.go": [
      { "line": "println(\\"hi\\")", "message": "[Minor] Use the log package instead of println" }
    ]
  }
}
```"""


@pytest.fixture
def valid_json_answer() -> str:
    """A fenced answer matching the review schema."""
    return VALID_JSON_ANSWER
