"""
Scoring Module

Heuristic ranking of agent-proposed file changes:
- Code quality metrics of the modified file
- Test signal of the file
- Consistency with other agents' hunks
- Edit efficiency
"""

from chambermerge.scoring.metrics import (
    SCORE_WEIGHTS,
    ScoringThresholds,
    calculate_code_quality_metrics,
    calculate_code_quality_score,
    calculate_consistency_score,
    calculate_efficiency_score,
    combine_scores,
)
from chambermerge.scoring.models import (
    CodeQualityMetrics,
    ResultScores,
    ScoredResult,
    TestCoverageInfo,
)
from chambermerge.scoring.scorer import ResultScorer, calculate_test_coverage

__all__ = [
    "SCORE_WEIGHTS",
    "CodeQualityMetrics",
    "ResultScorer",
    "ResultScores",
    "ScoredResult",
    "ScoringThresholds",
    "TestCoverageInfo",
    "calculate_code_quality_metrics",
    "calculate_code_quality_score",
    "calculate_consistency_score",
    "calculate_efficiency_score",
    "calculate_test_coverage",
    "combine_scores",
]
