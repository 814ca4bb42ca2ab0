"""Hunk-level overlap detection used by the consolidation path."""

from collections.abc import Iterable

from loguru import logger

from chambermerge.conflict.models import FileConflict, HunkConflict, HunkOverlap, OverlapRange
from chambermerge.diff.models import Hunk
from chambermerge.scoring.models import ScoredResult


def check_hunk_overlap(h1: Hunk, h2: Hunk) -> HunkOverlap:
    """
    Compare the old-line ranges of two hunks.

    Returns:
        ``exact`` when both start and length match, ``partial`` when the
        ranges intersect otherwise, ``none`` when they are disjoint.
    """
    h1_end = h1.old_start + (h1.old_lines or 1) - 1
    h2_end = h2.old_start + (h2.old_lines or 1) - 1

    if h1.old_start == h2.old_start and h1.old_lines == h2.old_lines:
        return HunkOverlap(type="exact", details=OverlapRange(start=h1.old_start, end=h1_end))

    if h1.old_start <= h2_end and h2.old_start <= h1_end:
        return HunkOverlap(
            type="partial",
            details=OverlapRange(
                start=max(h1.old_start, h2.old_start),
                end=min(h1_end, h2_end),
            ),
        )

    return HunkOverlap(type="none")


def detect_hunk_conflicts(results: Iterable[ScoredResult]) -> list[FileConflict]:
    """
    Find overlapping hunks from different agents in the same file.

    Args:
        results: Scored per-file results of every agent.

    Returns:
        One FileConflict per path with at least one cross-agent overlap,
        in first-seen path order.
    """
    by_path: dict[str, list[tuple[str | None, Hunk]]] = {}
    agents_by_path: dict[str, set[str | None]] = {}

    for result in results:
        by_path.setdefault(result.path, []).extend(
            (result.agent_id, hunk) for hunk in result.hunks
        )
        agents_by_path.setdefault(result.path, set()).add(result.agent_id)

    conflicts: list[FileConflict] = []

    for path, hunks in by_path.items():
        if len(agents_by_path[path]) < 2:
            continue

        file_conflicts: list[HunkConflict] = []
        for i in range(len(hunks)):
            for j in range(i + 1, len(hunks)):
                agent_a, hunk_a = hunks[i]
                agent_b, hunk_b = hunks[j]

                if agent_a == agent_b:
                    continue

                overlap = check_hunk_overlap(hunk_a, hunk_b)
                if overlap.type != "none" and overlap.details is not None:
                    file_conflicts.append(
                        HunkConflict(
                            type=overlap.type,
                            agent_a=agent_a,
                            agent_b=agent_b,
                            hunk_a=hunk_a,
                            hunk_b=hunk_b,
                            overlap=overlap.details,
                        )
                    )

        if file_conflicts:
            logger.debug(f"{path}: {len(file_conflicts)} overlapping hunk pairs")
            conflicts.append(FileConflict(path=path, conflicts=file_conflicts))

    return conflicts
