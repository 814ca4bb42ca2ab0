"""Consolidation job records."""

from enum import Enum
from typing import Literal

from pydantic import Field

from chambermerge.conflict.models import FileConflict
from chambermerge.core.schema import CamelModel
from chambermerge.scoring.models import ScoredResult


class MergeStrategy(str, Enum):
    """How a consolidation intends to combine agent results."""

    AUTO = "auto"
    VOTING = "voting"
    MANUAL = "manual"
    UNION = "union"


class ConsolidationStatus(str, Enum):
    """Lifecycle of a consolidation job."""

    PENDING = "pending"
    ANALYZING = "analyzing"
    ANALYZED = "analyzed"
    READY = "ready"
    COMPLETED = "completed"


class AgentResult(CamelModel):
    """An agent whose worktree holds proposed changes."""

    id: str
    name: str | None = None
    worktree_path: str
    branch: str | None = None


class MergePreview(CamelModel):
    """Outcome of analysing every agent's changes."""

    consolidation_id: str
    total_files: int = 0
    auto_mergeable: int = 0
    conflicting_files: int = 0
    files: list[ScoredResult] = Field(default_factory=list)
    conflicts: list[FileConflict] = Field(default_factory=list)
    recommended_strategy: MergeStrategy = MergeStrategy.AUTO


class ConsolidationResolution(CamelModel):
    """A caller's decision about one file."""

    path: str
    action: str  # "merge" or "reject"; anything else is ignored
    source_agent: str | None = None
    source_branch: str | None = None


class FileToMerge(CamelModel):
    path: str
    source_agent: str | None = None
    source_branch: str | None = None


class FileToReject(CamelModel):
    path: str


class MergePlan(CamelModel):
    """Files to copy from agent worktrees and files to drop."""

    consolidation_id: str
    strategy: MergeStrategy
    resolutions: list[ConsolidationResolution] = Field(default_factory=list)
    files_to_merge: list[FileToMerge] = Field(default_factory=list)
    files_to_reject: list[FileToReject] = Field(default_factory=list)


class MergeOperation(CamelModel):
    """Outcome of merging one file. Operations are independent of each other."""

    path: str
    source_agent: str | None = None
    status: Literal["merged", "failed"]
    error: str | None = None


class MergeError(CamelModel):
    path: str | None = None
    error: str


class MergeResult(CamelModel):
    """Outcome of executing a merge plan."""

    merged: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    errors: list[MergeError] = Field(default_factory=list)
    operations: list[MergeOperation] = Field(default_factory=list)
    commit: str | None = None


class Consolidation(CamelModel):
    """A job merging several agents' results into one project."""

    id: str
    project_directory: str
    base_branch: str
    agent_ids: list[str]
    strategy: MergeStrategy = MergeStrategy.AUTO
    status: ConsolidationStatus = ConsolidationStatus.PENDING
    created_at: int
    started_at: int | None = None
    completed_at: int | None = None
    agent_results: list[AgentResult] = Field(default_factory=list)
    conflicts: list[FileConflict] = Field(default_factory=list)
    preview: MergePreview | None = None
    merge_plan: MergePlan | None = None
    merge_result: MergeResult | None = None
