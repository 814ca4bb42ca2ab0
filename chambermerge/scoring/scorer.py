"""
Result Scorer

Ranks each agent's proposed change to a file with a weighted heuristic
score built from consistency with other agents, test signal, code quality
and edit efficiency.
"""

from collections.abc import Sequence
from pathlib import Path

import anyio
from loguru import logger

from chambermerge.diff.models import FileDiff
from chambermerge.diff.parser import count_changed_lines, parse_diff_hunks
from chambermerge.git import GitClient
from chambermerge.scoring.metrics import (
    DEFAULT_THRESHOLDS,
    ScoringThresholds,
    calculate_code_quality_metrics,
    calculate_code_quality_score,
    calculate_consistency_score,
    calculate_efficiency_score,
    calculate_test_coverage_info,
    combine_scores,
)
from chambermerge.scoring.models import ScoredResult, TestCoverageInfo


async def calculate_test_coverage(worktree_path: str | Path, file_path: str) -> TestCoverageInfo:
    """Read a worktree file and measure its test signal.

    Unreadable files count as carrying no tests.
    """
    target = anyio.Path(worktree_path) / file_path
    try:
        content = await target.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"No test coverage info for {target}: {e}")
        return TestCoverageInfo()

    return calculate_test_coverage_info(file_path, content)


class ResultScorer:
    """
    Scores agent results.

    Usage:
        scorer = ResultScorer(git_client)
        scored = await scorer.score_agent_result(worktree, "src/app.ts", diff, peers)
        scored.scores.total
    """

    def __init__(
        self,
        git: GitClient | None = None,
        thresholds: ScoringThresholds = DEFAULT_THRESHOLDS,
    ):
        self.git = git or GitClient()
        self.thresholds = thresholds

    async def score_agent_result(
        self,
        worktree_path: str | Path,
        file_path: str,
        diff: str,
        other_results: Sequence[FileDiff] = (),
    ) -> ScoredResult:
        """
        Score one agent's change to one file.

        Args:
            worktree_path: The agent's worktree.
            file_path: Path of the file relative to the worktree.
            diff: The agent's unified diff for the file.
            other_results: Other agents' per-file diffs; only those with the
                same path are compared.

        Returns:
            ScoredResult with metrics and scores in [0, 1].
        """
        hunks = parse_diff_hunks(diff)
        added, removed = count_changed_lines(hunks)

        _original, modified = await self.git.get_file_contents(worktree_path, file_path)
        metrics = calculate_code_quality_metrics(modified or "")
        test_coverage = await calculate_test_coverage(worktree_path, file_path)

        peer_hunks = [parse_diff_hunks(r.diff) for r in other_results if r.path == file_path]

        scores = combine_scores(
            consistency=calculate_consistency_score(hunks, peer_hunks, self.thresholds),
            test_coverage=test_coverage.test_line_ratio,
            code_quality=calculate_code_quality_score(metrics, self.thresholds),
            efficiency=calculate_efficiency_score(added, removed, metrics, self.thresholds),
        )

        logger.debug(f"Scored {file_path} in {worktree_path}: total={scores.total:.3f}")

        return ScoredResult(
            path=file_path,
            diff=diff,
            hunks=hunks,
            metrics=metrics,
            test_coverage=test_coverage,
            scores=scores,
        )
