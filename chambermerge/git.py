"""
Git helper

Thin async wrapper around the ``git`` executable for the operations the
consolidation workflow needs: working-tree diffs, file contents before and
after a change, and committing merged results.
"""

import asyncio
from pathlib import Path

import anyio
from loguru import logger

from chambermerge.core.config import Settings, get_settings
from chambermerge.core.exceptions import GitError


class GitClient:
    """
    Runs git commands in a given directory.

    Usage:
        git = GitClient()
        diff = await git.get_diff("/path/to/worktree")
        await git.commit("/path/to/project", "Merge results")
    """

    def __init__(self, settings: Settings | None = None):
        settings = settings or get_settings()
        self.binary = settings.git_binary
        self.timeout = settings.git_timeout
        self.context_lines = settings.diff_context_lines

    async def run(
        self,
        directory: str | Path,
        args: list[str],
        ok_returncodes: tuple[int, ...] = (0,),
    ) -> str:
        """
        Run a git command and return its stdout.

        Raises:
            GitError: On a disallowed exit code, timeout, or when git cannot
                be started in ``directory``.
        """
        logger.debug(f"git {' '.join(args)} (cwd={directory})")
        if not await anyio.Path(directory).is_dir():
            raise GitError(args, None, f"not a directory: {directory}")

        try:
            process = await asyncio.create_subprocess_exec(
                self.binary,
                *args,
                cwd=str(directory),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise GitError(args, None, f"could not run {self.binary} in {directory}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except TimeoutError as e:
            process.kill()
            raise GitError(args, None, f"timed out after {self.timeout}s") from e

        if process.returncode not in ok_returncodes:
            raise GitError(args, process.returncode, stderr.decode("utf-8", errors="replace"))

        return stdout.decode("utf-8", errors="replace")

    async def get_diff(
        self,
        directory: str | Path,
        path: str | None = None,
        staged: bool = False,
        context_lines: int | None = None,
    ) -> str:
        """
        Get the unified diff of a working tree.

        An untracked ``path`` is diffed against /dev/null so new files show
        up as additions.
        """
        lines = self.context_lines if context_lines is None else context_lines
        args = ["diff", "--no-color", f"-U{max(0, lines)}"]
        if staged:
            args.append("--cached")
        if path:
            args.extend(["--", path])

        diff = await self.run(directory, args)
        if diff.strip() or staged or not path:
            return diff

        try:
            await self.run(directory, ["ls-files", "--error-unmatch", path])
            return diff
        except GitError:
            # exit code 1 means "files differ" for --no-index
            return await self.run(
                directory,
                ["diff", "--no-color", f"-U{max(0, lines)}", "--no-index", "--", "/dev/null", path],
                ok_returncodes=(0, 1),
            )

    async def get_file_contents(self, directory: str | Path, path: str) -> tuple[str, str]:
        """
        Get a file's content at HEAD and in the working tree.

        Returns:
            Tuple of (original, modified); a side that does not exist is "".
        """
        try:
            original = await self.run(directory, ["show", f"HEAD:{path}"])
        except GitError:
            original = ""

        target = anyio.Path(directory) / path
        try:
            modified = await target.read_text(encoding="utf-8")
        except (FileNotFoundError, IsADirectoryError, UnicodeDecodeError):
            modified = ""

        return original, modified

    async def commit(
        self,
        directory: str | Path,
        message: str,
        add_all: bool = True,
        files: list[str] | None = None,
    ) -> dict[str, str | bool]:
        """
        Stage changes and create a commit.

        Returns:
            Dictionary with ``success`` and the new ``commit`` hash.
        """
        if add_all:
            await self.run(directory, ["add", "."])
        elif files:
            await self.run(directory, ["add", "--", *files])

        await self.run(directory, ["commit", "-m", message])
        commit_hash = (await self.run(directory, ["rev-parse", "HEAD"])).strip()

        logger.info(f"Committed {commit_hash[:8]} in {directory}")
        return {"success": True, "commit": commit_hash}
