"""Pytest configuration and shared fixtures."""

import os
from collections.abc import Generator
from pathlib import Path

import pytest

from chambermerge.core.config import Settings, clear_settings_cache
from chambermerge.core.exceptions import GitError
from chambermerge.storage.state_store import JsonStateStore

# Set test environment
os.environ.setdefault("CHAMBERMERGE_DEBUG", "true")
os.environ.setdefault("CHAMBERMERGE_LOG_LEVEL", "DEBUG")


# =============================================================================
# SETTINGS AND STORAGE
# =============================================================================


@pytest.fixture
def settings(tmp_path: Path) -> Generator[Settings, None, None]:
    """Settings pointing every state file and log into a temp directory."""
    clear_settings_cache()

    yield Settings(state_dir=tmp_path / "state", log_dir=tmp_path / "logs")

    clear_settings_cache()


@pytest.fixture
def conflict_store(settings: Settings) -> JsonStateStore:
    return JsonStateStore(settings.conflict_state_file, "conflictSessions")


@pytest.fixture
def consolidation_store(settings: Settings) -> JsonStateStore:
    return JsonStateStore(settings.consolidation_state_file, "consolidations")


# =============================================================================
# FAKE GIT
# =============================================================================


class FakeGitClient:
    """
    In-memory stand-in for GitClient.

    Diffs are looked up by worktree path; file contents are read from disk
    like the real client does for the working tree side.
    """

    def __init__(
        self,
        diffs: dict[str, str] | None = None,
        fail_diff_for: set[str] | None = None,
        fail_commit: bool = False,
    ):
        self.diffs = diffs or {}
        self.fail_diff_for = fail_diff_for or set()
        self.fail_commit = fail_commit
        self.commits: list[tuple[str, str]] = []

    async def get_diff(self, directory, path=None, staged=False, context_lines=None) -> str:
        if str(directory) in self.fail_diff_for:
            raise GitError(["diff"], 128, "fatal: not a git repository")
        return self.diffs.get(str(directory), "")

    async def get_file_contents(self, directory, path) -> tuple[str, str]:
        target = Path(directory) / path
        modified = target.read_text() if target.is_file() else ""
        return "", modified

    async def commit(self, directory, message, add_all=True, files=None) -> dict:
        if self.fail_commit:
            raise GitError(["commit", "-m", message], 1, "nothing to commit")
        self.commits.append((str(directory), message))
        return {"success": True, "commit": "abc123def456"}


@pytest.fixture
def fake_git() -> FakeGitClient:
    return FakeGitClient()


# =============================================================================
# SAMPLE DIFFS
# =============================================================================


def make_diff(path: str, *hunks: str, header: str = "") -> str:
    """Build a single-file git diff from hunk texts."""
    lines = [f"diff --git a/{path} b/{path}"]
    if header:
        lines.append(header)
    lines.extend([f"--- a/{path}", f"+++ b/{path}"])
    text = "\n".join(lines)
    for hunk in hunks:
        text += "\n" + hunk.strip("\n")
    return text + "\n"


@pytest.fixture
def diff_a() -> str:
    """Agent A rewrites line 1 of f.js."""
    return make_diff("f.js", "@@ -1,2 +1,2 @@\n-a\n+x\n b")


@pytest.fixture
def diff_b() -> str:
    """Agent B rewrites line 1 of f.js with a different removed line."""
    return make_diff("f.js", "@@ -1,2 +1,2 @@\n-c\n+y\n b")


@pytest.fixture
def deleted_diff() -> str:
    """Agent deletes f.js."""
    return (
        "diff --git a/f.js b/f.js\n"
        "deleted file mode 100644\n"
        "--- a/f.js\n"
        "+++ /dev/null\n"
        "@@ -1,2 +0,0 @@\n"
        "-a\n"
        "-b\n"
    )


@pytest.fixture
def build_diff():
    """The make_diff helper as a fixture."""
    return make_diff


@pytest.fixture
def git_factory():
    """Build FakeGitClient instances with custom diffs or failures."""
    return FakeGitClient
