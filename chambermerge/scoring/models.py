"""Score records attached to each agent's proposed file change."""

from pydantic import Field

from chambermerge.core.schema import CamelModel
from chambermerge.diff.models import Hunk


class CodeQualityMetrics(CamelModel):
    """Simple text metrics of the modified file."""

    line_count: int = 0
    avg_line_length: int = 0
    max_line_length: int = 0
    complexity: int = 0
    has_comments: bool = False
    blank_lines: int = 0


class TestCoverageInfo(CamelModel):
    """How test-like a file is."""

    __test__ = False  # not a pytest test class

    is_test_file: bool = False
    test_count: int = 0
    test_line_ratio: float = 0.0


class ResultScores(CamelModel):
    """Heuristic scores, each in [0, 1]."""

    consistency: float = Field(default=0.0, ge=0.0, le=1.0)
    test_coverage: float = Field(default=0.0, ge=0.0, le=1.0)
    code_quality: float = Field(default=0.0, ge=0.0, le=1.0)
    efficiency: float = Field(default=0.0, ge=0.0, le=1.0)
    total: float = Field(default=0.0, ge=0.0, le=1.0)


class ScoredResult(CamelModel):
    """One agent's proposed change to one file, with scores."""

    path: str
    diff: str
    hunks: list[Hunk] = Field(default_factory=list)
    metrics: CodeQualityMetrics = Field(default_factory=CodeQualityMetrics)
    test_coverage: TestCoverageInfo = Field(default_factory=TestCoverageInfo)
    scores: ResultScores = Field(default_factory=ResultScores)
    agent_id: str | None = None
    agent_name: str | None = None
