"""Unit tests for GitClient failures that happen before git runs."""

import pytest

from chambermerge.core.config import Settings
from chambermerge.core.exceptions import GitError
from chambermerge.git import GitClient


class TestGitClientStartup:
    """Bad working directories and binaries surface as GitError."""

    @pytest.mark.asyncio
    async def test_directory_is_a_file(self, settings, tmp_path):
        not_a_dir = tmp_path / "worktree.txt"
        not_a_dir.write_text("x\n")

        with pytest.raises(GitError, match="not a directory") as exc_info:
            await GitClient(settings).get_diff(not_a_dir)

        assert exc_info.value.returncode is None

    @pytest.mark.asyncio
    async def test_missing_directory(self, settings, tmp_path):
        with pytest.raises(GitError) as exc_info:
            await GitClient(settings).run(tmp_path / "gone", ["status"])

        assert "not a directory" in str(exc_info.value)
        assert "executable" not in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_missing_binary(self, tmp_path):
        settings = Settings(
            state_dir=tmp_path / "state",
            log_dir=tmp_path / "logs",
            git_binary=str(tmp_path / "no-such-git"),
        )

        with pytest.raises(GitError, match="could not run"):
            await GitClient(settings).run(tmp_path, ["status"])
