"""
Result Consolidator

Drives a consolidation job through its lifecycle:

    pending -> analyzing -> analyzed -> ready -> completed

1. initiate_consolidation: register the job
2. analyze_results: collect, score and cross-check every agent's diffs
3. resolve_conflicts: turn the caller's per-file decisions into a merge plan
4. execute_merge: copy the chosen files into the project and commit

Merge execution treats every file as an independent operation: a failed
copy is recorded and the remaining files still merge. Nothing is rolled
back, and a failed commit is reported alongside the file results.
"""

from collections.abc import Sequence
from pathlib import Path
from typing import Any

import anyio
from loguru import logger
from pydantic import ValidationError

from chambermerge.conflict.overlap import detect_hunk_conflicts
from chambermerge.consolidation.models import (
    AgentResult,
    Consolidation,
    ConsolidationResolution,
    ConsolidationStatus,
    FileToMerge,
    FileToReject,
    MergeError,
    MergeOperation,
    MergePlan,
    MergePreview,
    MergeResult,
    MergeStrategy,
)
from chambermerge.core.config import Settings, get_settings
from chambermerge.core.exceptions import (
    ConsolidationNotFoundError,
    GitError,
    InvalidParametersError,
    InvalidStateError,
)
from chambermerge.core.schema import generate_id, now_ms
from chambermerge.diff.models import FileDiff
from chambermerge.diff.parser import split_file_diffs
from chambermerge.git import GitClient
from chambermerge.scoring.models import ScoredResult
from chambermerge.scoring.scorer import ResultScorer
from chambermerge.storage.state_store import JsonStateStore, RecordRepository

RESOLVABLE_STATUSES = (ConsolidationStatus.ANALYZED, ConsolidationStatus.READY)


def build_commit_message(consolidation: Consolidation) -> str:
    """Commit message recording the consolidation, its agents and strategy."""
    return (
        f"Merge agent results from consolidation {consolidation.id}\n\n"
        f"Agents involved: {', '.join(consolidation.agent_ids)}\n"
        f"Strategy: {MergeStrategy(consolidation.strategy).value}"
    )


class ResultConsolidator:
    """
    Consolidates the results of parallel agents into one project.

    Usage:
        consolidator = ResultConsolidator()
        job = await consolidator.initiate_consolidation("/repo", "main", ["a", "b"])
        preview = await consolidator.analyze_results(job.id, agent_results)
        plan = await consolidator.resolve_conflicts(job.id, resolutions)
        result = await consolidator.execute_merge(job.id, "main")
    """

    def __init__(
        self,
        settings: Settings | None = None,
        store: JsonStateStore | None = None,
        git: GitClient | None = None,
        scorer: ResultScorer | None = None,
    ):
        self.settings = settings or get_settings()
        self.store = store or JsonStateStore(
            self.settings.consolidation_state_file,
            "consolidations",
            ttl_ms=self.settings.state_cache_ttl_ms,
        )
        self.consolidations = RecordRepository(self.store, Consolidation)
        self.git = git or GitClient(self.settings)
        self.scorer = scorer or ResultScorer(self.git)

    async def _require(self, consolidation_id: str) -> Consolidation:
        consolidation = await self.consolidations.get(consolidation_id)
        if consolidation is None:
            raise ConsolidationNotFoundError(consolidation_id)
        return consolidation

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def initiate_consolidation(
        self,
        project_directory: str,
        base_branch: str,
        agent_ids: Sequence[str],
        strategy: MergeStrategy | str = MergeStrategy.AUTO,
    ) -> Consolidation:
        """
        Register a new consolidation in ``pending`` status.

        Raises:
            InvalidParametersError: If a required value is empty or the
                strategy is unknown.
        """
        if not project_directory or not base_branch or not agent_ids:
            raise InvalidParametersError("projectDirectory, baseBranch, and agentIds are required")

        try:
            strategy = MergeStrategy(strategy)
        except ValueError as e:
            raise InvalidParametersError(f"Unknown merge strategy: {strategy}") from e

        consolidation = Consolidation(
            id=generate_id("consolidation"),
            project_directory=str(project_directory),
            base_branch=base_branch,
            agent_ids=list(agent_ids),
            strategy=strategy,
            created_at=now_ms(),
        )
        await self.consolidations.add(consolidation)

        logger.info(f"Consolidation initiated: {consolidation.id}")
        return consolidation

    async def analyze_results(
        self,
        consolidation_id: str,
        agent_results: Sequence[AgentResult | dict[str, Any]],
    ) -> MergePreview:
        """
        Score and cross-check every agent's changes.

        The consolidation is persisted in ``analyzing`` before the work
        starts and in ``analyzed`` with its conflicts and preview after.

        Raises:
            InvalidParametersError: If an agent result is malformed. The
                consolidation is left untouched.
        """
        consolidation = await self._require(consolidation_id)

        try:
            parsed = [AgentResult.model_validate(r) for r in agent_results]
        except ValidationError as e:
            raise InvalidParametersError(f"Invalid agent results: {e}") from e

        consolidation.status = ConsolidationStatus.ANALYZING
        consolidation.started_at = now_ms()
        consolidation.agent_results = parsed
        await self.consolidations.save(consolidation)

        logger.info(
            f"Analyzing {len(consolidation.agent_results)} agent results "
            f"for consolidation {consolidation_id}"
        )
        preview = await self._build_preview(consolidation)

        consolidation.status = ConsolidationStatus.ANALYZED
        consolidation.conflicts = preview.conflicts
        consolidation.preview = preview
        await self.consolidations.save(consolidation)

        logger.info(
            f"Analysis complete: {preview.total_files} files, "
            f"{preview.conflicting_files} conflicting, "
            f"recommended strategy {MergeStrategy(preview.recommended_strategy).value}"
        )
        return preview

    async def generate_merge_preview(self, consolidation_id: str) -> MergePreview:
        """Recompute the preview from the agent results already stored."""
        consolidation = await self._require(consolidation_id)
        return await self._build_preview(consolidation)

    async def resolve_conflicts(
        self,
        consolidation_id: str,
        resolutions: Sequence[ConsolidationResolution | dict[str, Any]],
    ) -> MergePlan:
        """
        Build the merge plan from per-file decisions and mark the job ready.

        Raises:
            InvalidStateError: Unless the consolidation has been analyzed.
            InvalidParametersError: If a resolution is malformed.
        """
        consolidation = await self._require(consolidation_id)

        status = ConsolidationStatus(consolidation.status)
        if status not in RESOLVABLE_STATUSES:
            raise InvalidStateError(
                f"Consolidation not analyzed yet. Current status: {status.value}",
                status=status.value,
            )

        try:
            parsed = [ConsolidationResolution.model_validate(r) for r in resolutions]
        except ValidationError as e:
            raise InvalidParametersError(f"Invalid resolutions: {e}") from e
        plan = MergePlan(
            consolidation_id=consolidation_id,
            strategy=consolidation.strategy,
            resolutions=parsed,
        )

        for resolution in parsed:
            if resolution.action == "merge":
                plan.files_to_merge.append(
                    FileToMerge(
                        path=resolution.path,
                        source_agent=resolution.source_agent,
                        source_branch=resolution.source_branch,
                    )
                )
            elif resolution.action == "reject":
                plan.files_to_reject.append(FileToReject(path=resolution.path))
            else:
                logger.warning(f"Ignoring unknown resolution action '{resolution.action}'")

        consolidation.status = ConsolidationStatus.READY
        consolidation.merge_plan = plan
        await self.consolidations.save(consolidation)

        logger.info(
            f"Merge plan ready for {consolidation_id}: "
            f"{len(plan.files_to_merge)} to merge, {len(plan.files_to_reject)} rejected"
        )
        return plan

    async def execute_merge(self, consolidation_id: str, target_branch: str) -> MergeResult:
        """
        Copy every planned file into the project and commit.

        Each file is an independent operation with its own recorded outcome;
        failures do not stop the remaining files and nothing is rolled back.

        Raises:
            InvalidStateError: Unless the consolidation is ``ready``.
        """
        consolidation = await self._require(consolidation_id)

        status = ConsolidationStatus(consolidation.status)
        if status != ConsolidationStatus.READY or consolidation.merge_plan is None:
            raise InvalidStateError(
                f"Consolidation not ready for merge. Current status: {status.value}",
                status=status.value,
            )

        logger.info(f"Executing merge for {consolidation_id} into {target_branch}")
        worktrees = {r.id: r.worktree_path for r in consolidation.agent_results}
        result = MergeResult()

        for file_to_merge in consolidation.merge_plan.files_to_merge:
            operation = await self._merge_file(
                file_to_merge, worktrees, consolidation.project_directory
            )
            result.operations.append(operation)

            if operation.status == "merged":
                result.merged.append(operation.path)
            else:
                result.failed.append(operation.path)
                result.errors.append(MergeError(path=operation.path, error=operation.error or ""))

        try:
            commit = await self.git.commit(
                consolidation.project_directory,
                build_commit_message(consolidation),
                add_all=True,
            )
            result.commit = str(commit.get("commit") or "") or None
        except GitError as e:
            logger.error(f"Failed to commit merge for {consolidation_id}: {e}")
            result.errors.append(MergeError(error=str(e)))

        consolidation.status = ConsolidationStatus.COMPLETED
        consolidation.completed_at = now_ms()
        consolidation.merge_result = result
        await self.consolidations.save(consolidation)

        logger.info(
            f"Merge completed for consolidation {consolidation_id}: "
            f"{len(result.merged)} merged, {len(result.failed)} failed"
        )
        return result

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def get_consolidation(self, consolidation_id: str) -> Consolidation | None:
        return await self.consolidations.get(consolidation_id)

    async def get_all_consolidations(
        self,
        project_directory: str | None = None,
        status: ConsolidationStatus | str | None = None,
    ) -> list[Consolidation]:
        """List consolidations, optionally filtered by status and project."""
        consolidations = await self.consolidations.list_all()

        if status:
            status_value = getattr(status, "value", status)
            consolidations = [c for c in consolidations if c.status == status_value]
        if project_directory:
            consolidations = [
                c for c in consolidations if c.project_directory == str(project_directory)
            ]

        return consolidations

    async def delete_consolidation(self, consolidation_id: str) -> dict[str, bool]:
        await self.consolidations.delete(consolidation_id)
        logger.info(f"Consolidation deleted: {consolidation_id}")
        return {"success": True}

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    async def collect_agent_result_files(self, worktree_path: str) -> list[FileDiff]:
        """
        Collect the per-file diffs of an agent's worktree.

        Git failures are logged and yield no files for that agent.
        """
        try:
            diff = await self.git.get_diff(worktree_path)
        except GitError as e:
            logger.error(f"Failed to collect files from {worktree_path}: {e}")
            return []

        return split_file_diffs(diff, self.settings.excluded_path_prefixes)

    async def _build_preview(self, consolidation: Consolidation) -> MergePreview:
        files_by_agent: dict[str, list[FileDiff]] = {}
        for agent in consolidation.agent_results:
            files_by_agent[agent.id] = await self.collect_agent_result_files(agent.worktree_path)

        scored_results: list[ScoredResult] = []

        for agent in consolidation.agent_results:
            peers = [
                file_diff
                for other_id, files in files_by_agent.items()
                if other_id != agent.id
                for file_diff in files
            ]

            for file_diff in files_by_agent[agent.id]:
                scored = await self.scorer.score_agent_result(
                    agent.worktree_path,
                    file_diff.path,
                    file_diff.diff,
                    peers,
                )
                scored_results.append(
                    scored.model_copy(update={"agent_id": agent.id, "agent_name": agent.name})
                )

        conflicts = detect_hunk_conflicts(scored_results)
        conflicting_paths = {c.path for c in conflicts}
        auto_mergeable = [r for r in scored_results if r.path not in conflicting_paths]

        return MergePreview(
            consolidation_id=consolidation.id,
            total_files=len(scored_results),
            auto_mergeable=len(auto_mergeable),
            conflicting_files=len(conflicts),
            files=scored_results,
            conflicts=conflicts,
            recommended_strategy=MergeStrategy.AUTO if not conflicts else MergeStrategy.VOTING,
        )

    async def _merge_file(
        self,
        file_to_merge: FileToMerge,
        worktrees: dict[str, str],
        project_directory: str,
    ) -> MergeOperation:
        worktree = worktrees.get(file_to_merge.source_agent or "")
        if not worktree:
            error = f"Agent worktree not found for {file_to_merge.source_agent}"
            logger.warning(f"{file_to_merge.path}: {error}")
            return MergeOperation(
                path=file_to_merge.path,
                source_agent=file_to_merge.source_agent,
                status="failed",
                error=error,
            )

        source = anyio.Path(Path(worktree) / file_to_merge.path)
        target = anyio.Path(Path(project_directory) / file_to_merge.path)

        try:
            content = await source.read_bytes()
            await target.parent.mkdir(parents=True, exist_ok=True)
            await target.write_bytes(content)
        except OSError as e:
            logger.warning(f"Failed to merge {file_to_merge.path}: {e}")
            return MergeOperation(
                path=file_to_merge.path,
                source_agent=file_to_merge.source_agent,
                status="failed",
                error=str(e),
            )

        logger.debug(f"Merged {file_to_merge.path} from {file_to_merge.source_agent}")
        return MergeOperation(
            path=file_to_merge.path,
            source_agent=file_to_merge.source_agent,
            status="merged",
        )
