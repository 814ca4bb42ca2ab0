"""Consolidation of parallel agents' results into one project."""

from chambermerge.consolidation.consolidator import ResultConsolidator, build_commit_message
from chambermerge.consolidation.models import (
    AgentResult,
    Consolidation,
    ConsolidationResolution,
    ConsolidationStatus,
    MergeOperation,
    MergePlan,
    MergePreview,
    MergeResult,
    MergeStrategy,
)

__all__ = [
    "AgentResult",
    "Consolidation",
    "ConsolidationResolution",
    "ConsolidationStatus",
    "MergeOperation",
    "MergePlan",
    "MergePreview",
    "MergeResult",
    "MergeStrategy",
    "ResultConsolidator",
    "build_commit_message",
]
