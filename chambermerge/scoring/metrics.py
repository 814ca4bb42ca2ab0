"""
Heuristic Metrics

Text-level metrics and the scores derived from them. All thresholds are
tunable through ScoringThresholds; the weights combining the scores into a
total are fixed.
"""

import re
from dataclasses import dataclass

from chambermerge.diff.models import Hunk
from chambermerge.scoring.models import CodeQualityMetrics, ResultScores, TestCoverageInfo

COMMENT_RE = re.compile(r"^\s*(?://|#|/\*|\*)")
COMPLEXITY_RE = re.compile(r"\b(if|else|for|while|switch|case|catch|try|throw|return)\b")
TEST_PATTERNS = [
    re.compile(r"describe\s*\(", re.IGNORECASE),
    re.compile(r"test\s*\(", re.IGNORECASE),
    re.compile(r"it\s*\(", re.IGNORECASE),
    re.compile(r"expect\s*\(", re.IGNORECASE),
    re.compile(r"assert\s*\(", re.IGNORECASE),
]
TEST_FILE_RE = re.compile(r"\.(test|spec)\.(js|ts|jsx|tsx|py|rs|go|java)$")

SCORE_WEIGHTS = {
    "consistency": 0.3,
    "test_coverage": 0.25,
    "code_quality": 0.3,
    "efficiency": 0.15,
}


@dataclass(frozen=True)
class ScoringThresholds:
    """Tunable thresholds of the quality and efficiency heuristics."""

    max_line_length: int = 120
    max_line_length_penalty: float = 0.1
    avg_line_length: int = 80
    avg_line_length_penalty: float = 0.05
    max_complexity: int = 20
    complexity_penalty: float = 0.1
    min_lines_for_comments: int = 10
    missing_comments_penalty: float = 0.05

    large_change_ratio: float = 0.5
    large_change_penalty: float = 0.1
    huge_change_ratio: float = 1.0
    huge_change_penalty: float = 0.2
    small_change_ratio: float = 0.2
    net_deletion_bonus: float = 0.1

    hunk_proximity: int = 3


DEFAULT_THRESHOLDS = ScoringThresholds()


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def calculate_code_quality_metrics(content: str) -> CodeQualityMetrics:
    """Compute line-based metrics of file content."""
    lines = content.split("\n")

    total_length = 0
    max_length = 0
    blank_lines = 0
    complexity = 0
    has_comments = False

    for line in lines:
        total_length += len(line)
        max_length = max(max_length, len(line))

        if not line.strip():
            blank_lines += 1
        if COMMENT_RE.match(line):
            has_comments = True
        if COMPLEXITY_RE.search(line):
            complexity += 1

    return CodeQualityMetrics(
        line_count=len(lines),
        avg_line_length=int(total_length / len(lines) + 0.5),
        max_line_length=max_length,
        complexity=complexity,
        has_comments=has_comments,
        blank_lines=blank_lines,
    )


def calculate_test_coverage_info(file_path: str, content: str) -> TestCoverageInfo:
    """Count test-like calls in content and classify the file."""
    matches = sum(len(pattern.findall(content)) for pattern in TEST_PATTERNS)
    is_test_file = bool(TEST_FILE_RE.search(file_path))
    line_count = len(content.split("\n"))

    return TestCoverageInfo(
        is_test_file=is_test_file,
        test_count=matches,
        test_line_ratio=1.0 if is_test_file else matches / max(line_count, 1),
    )


def calculate_code_quality_score(
    metrics: CodeQualityMetrics,
    thresholds: ScoringThresholds = DEFAULT_THRESHOLDS,
) -> float:
    """Start at 1.0 and subtract fixed penalties."""
    score = 1.0

    if metrics.max_line_length > thresholds.max_line_length:
        score -= thresholds.max_line_length_penalty
    if metrics.avg_line_length > thresholds.avg_line_length:
        score -= thresholds.avg_line_length_penalty
    if metrics.complexity > thresholds.max_complexity:
        score -= thresholds.complexity_penalty
    if not metrics.has_comments and metrics.line_count > thresholds.min_lines_for_comments:
        score -= thresholds.missing_comments_penalty

    return clamp(score)


def calculate_efficiency_score(
    added_lines: int,
    removed_lines: int,
    metrics: CodeQualityMetrics,
    thresholds: ScoringThresholds = DEFAULT_THRESHOLDS,
) -> float:
    """Penalise edits that are large relative to the file, reward small net deletions."""
    net_change = added_lines - removed_lines
    change_ratio = abs(net_change) / metrics.line_count if metrics.line_count > 0 else 0.0

    score = 1.0

    if change_ratio > thresholds.large_change_ratio:
        score -= thresholds.large_change_penalty
    if change_ratio > thresholds.huge_change_ratio:
        score -= thresholds.huge_change_penalty
    if removed_lines > added_lines and change_ratio < thresholds.small_change_ratio:
        score += thresholds.net_deletion_bonus

    return clamp(score)


def hunks_agree(
    hunks: list[Hunk],
    other_hunks: list[Hunk],
    proximity: int = DEFAULT_THRESHOLDS.hunk_proximity,
) -> bool:
    """Whether any hunk starts within ``proximity`` lines of one in the other set."""
    return any(
        abs(h.old_start - o.old_start) <= proximity and abs(h.new_start - o.new_start) <= proximity
        for h in hunks
        for o in other_hunks
    )


def calculate_consistency_score(
    hunks: list[Hunk],
    peer_hunks: list[list[Hunk]],
    thresholds: ScoringThresholds = DEFAULT_THRESHOLDS,
) -> float:
    """
    Fraction of peers that changed the same region of the file.

    Args:
        hunks: This result's hunks.
        peer_hunks: Hunks of each other agent's result for the same file.
    """
    if not peer_hunks:
        return 0.0

    agreeing = sum(1 for other in peer_hunks if hunks_agree(hunks, other, thresholds.hunk_proximity))
    return clamp(agreeing / len(peer_hunks))


def combine_scores(
    consistency: float,
    test_coverage: float,
    code_quality: float,
    efficiency: float,
) -> ResultScores:
    """Clamp the partial scores and compute their weighted total."""
    consistency = clamp(consistency)
    test_coverage = clamp(test_coverage)
    code_quality = clamp(code_quality)
    efficiency = clamp(efficiency)

    total = (
        consistency * SCORE_WEIGHTS["consistency"]
        + test_coverage * SCORE_WEIGHTS["test_coverage"]
        + code_quality * SCORE_WEIGHTS["code_quality"]
        + efficiency * SCORE_WEIGHTS["efficiency"]
    )

    return ResultScores(
        consistency=consistency,
        test_coverage=test_coverage,
        code_quality=code_quality,
        efficiency=efficiency,
        total=clamp(total),
    )
