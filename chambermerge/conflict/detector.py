"""
Conflict Detection System

Detects conflicts between diffs that different agents produced for the
same file:
- Same-line conflicts (both sides changed an old line differently)
- Delete/modify conflicts (one side deleted the file, the other edited it)
- Import/export conflicts (duplicate imports or exports added in one diff)
- Structural conflicts (both sides touch the same function/class/interface)
"""

import re
from collections.abc import Mapping

from loguru import logger

from chambermerge.conflict.models import (
    Conflict,
    ConflictGroup,
    DeleteModifyConflict,
    ExportConflict,
    ExportEntry,
    ImportConflict,
    ImportEntry,
    SameLineConflict,
    StructuralConflict,
    group_id,
)
from chambermerge.diff.models import Hunk, ParsedDiff
from chambermerge.diff.parser import parse_unified_diff

SCRIPT_FILE_RE = re.compile(r"\.(ts|tsx|js|jsx)$")
IMPORT_RE = re.compile(r"^[+\s]*import\s+.*from\s+['\"](.+?)['\"];?$")
EXPORT_RE = re.compile(
    r"^[+\s]*export\s+(default\s+)?(const|let|var|function|class|interface|type)\s+(\w+)"
)
DELETED_FILE_MARKERS = ("new file mode", "deleted file mode", "Binary files")
DEV_NULL_TARGET_RE = re.compile(r"^\+\+\+ /dev/null", re.MULTILINE)

STRUCTURE_PATTERNS: dict[str, re.Pattern[str]] = {
    "function": re.compile(r"^(?:export\s+)?(?:async\s+)?function\s+(\w+)"),
    "class": re.compile(r"^class\s+(\w+)"),
    "interface": re.compile(r"^(?:export\s+)?interface\s+(\w+)"),
}


def _same_file(parsed_a: ParsedDiff, parsed_b: ParsedDiff) -> bool:
    return parsed_a.file_path == parsed_b.file_path


def _old_line_content(hunk: Hunk, line_number: int) -> str | None:
    """Removed-line content a hunk records for an old-file line number."""
    index = line_number - hunk.old_start
    if 0 <= index < len(hunk.old_lines_content):
        return hunk.old_lines_content[index]
    return None


def detect_same_line_conflicts(diff_a: str, diff_b: str) -> list[SameLineConflict]:
    """
    Detect lines both diffs change with different content.

    For every pair of hunks whose old ranges overlap, each overlapping line
    where both sides record removed content that differs yields one conflict.
    """
    parsed_a = parse_unified_diff(diff_a)
    parsed_b = parse_unified_diff(diff_b)

    if not _same_file(parsed_a, parsed_b):
        return []

    conflicts: list[SameLineConflict] = []

    for hunk_a in parsed_a.hunks:
        for hunk_b in parsed_b.hunks:
            if not (hunk_a.old_start <= hunk_b.old_end and hunk_b.old_start <= hunk_a.old_end):
                continue

            overlap_start = max(hunk_a.old_start, hunk_b.old_start)
            overlap_end = min(hunk_a.old_end, hunk_b.old_end)

            for line_number in range(overlap_start, overlap_end + 1):
                content_a = _old_line_content(hunk_a, line_number)
                content_b = _old_line_content(hunk_b, line_number)

                if content_a and content_b and content_a != content_b:
                    conflicts.append(
                        SameLineConflict(
                            file_path=parsed_a.file_path,
                            line_number=line_number,
                            content_a=content_a,
                            content_b=content_b,
                        )
                    )

    return conflicts


def is_file_deleted(diff: str) -> bool:
    """Whether a diff replaces the whole file (deleted, created or binary)."""
    return any(marker in diff for marker in DELETED_FILE_MARKERS) or bool(
        DEV_NULL_TARGET_RE.search(diff)
    )


def detect_delete_modify_conflicts(diff_a: str, diff_b: str) -> list[DeleteModifyConflict]:
    """Detect one side deleting a file the other side modified."""
    parsed_a = parse_unified_diff(diff_a)
    parsed_b = parse_unified_diff(diff_b)

    if not _same_file(parsed_a, parsed_b):
        return []

    a_deleted = is_file_deleted(diff_a)
    b_deleted = is_file_deleted(diff_b)
    a_modified = not a_deleted and len(parsed_a.hunks) > 0
    b_modified = not b_deleted and len(parsed_b.hunks) > 0

    if (a_deleted and b_modified) or (b_deleted and a_modified):
        return [
            DeleteModifyConflict(
                file_path=parsed_a.file_path,
                action="deleted" if a_deleted else "modified",
                action_b="deleted" if b_deleted else "modified",
            )
        ]

    return []


def _added_lines(parsed: ParsedDiff) -> list[str]:
    return [
        line[1:]
        for hunk in parsed.hunks
        for line in hunk.new_lines_content
        if line.startswith("+")
    ]


def _is_script_file(parsed: ParsedDiff) -> bool:
    return bool(parsed.file_path and SCRIPT_FILE_RE.search(parsed.file_path))


def detect_import_conflicts(diff: str) -> list[ImportConflict]:
    """Detect the same module imported more than once by added lines."""
    parsed = parse_unified_diff(diff)
    if not _is_script_file(parsed):
        return []

    conflicts: list[ImportConflict] = []
    seen: dict[str, ImportEntry] = {}

    for content in _added_lines(parsed):
        match = IMPORT_RE.match(content)
        if not match:
            continue

        entry = ImportEntry(module=match.group(1), line=content.strip())
        if entry.module in seen:
            conflicts.append(
                ImportConflict(
                    file_path=parsed.file_path,
                    module=entry.module,
                    existing=seen[entry.module],
                    duplicate=entry,
                )
            )
        else:
            seen[entry.module] = entry

    return conflicts


def detect_export_conflicts(diff: str) -> list[ExportConflict]:
    """Detect the same top-level name exported more than once by added lines."""
    parsed = parse_unified_diff(diff)
    if not _is_script_file(parsed):
        return []

    conflicts: list[ExportConflict] = []
    seen: dict[str, ExportEntry] = {}

    for content in _added_lines(parsed):
        match = EXPORT_RE.match(content)
        if not match:
            continue

        entry = ExportEntry(name=match.group(3), line=content.strip())
        if entry.name in seen:
            conflicts.append(
                ExportConflict(
                    file_path=parsed.file_path,
                    name=entry.name,
                    existing=seen[entry.name],
                    duplicate=entry,
                )
            )
        else:
            seen[entry.name] = entry

    return conflicts


def detect_import_export_conflicts(diff: str) -> list[ImportConflict | ExportConflict]:
    """Import conflicts followed by export conflicts for a single diff."""
    return [*detect_import_conflicts(diff), *detect_export_conflicts(diff)]


def extract_structure(diff: str) -> dict[str, list[str]]:
    """
    Extract declaration names touched by a diff.

    Returns:
        Mapping of element kind (function, class, interface) to the names
        declared on added or removed lines, first occurrence order.
    """
    structure: dict[str, list[str]] = {kind: [] for kind in STRUCTURE_PATTERNS}

    for line in diff.split("\n"):
        if not (line.startswith("+") or line.startswith("-")):
            continue
        content = line[1:]
        for kind, pattern in STRUCTURE_PATTERNS.items():
            match = pattern.match(content)
            if match and match.group(1) not in structure[kind]:
                structure[kind].append(match.group(1))

    return structure


def detect_structural_conflicts(diff_a: str, diff_b: str) -> list[StructuralConflict]:
    """Detect declarations touched by both diffs."""
    parsed_a = parse_unified_diff(diff_a)
    parsed_b = parse_unified_diff(diff_b)

    if not _same_file(parsed_a, parsed_b):
        return []

    struct_a = extract_structure(diff_a)
    struct_b = extract_structure(diff_b)

    return [
        StructuralConflict(file_path=parsed_a.file_path, element=kind, name=name)
        for kind, names in struct_a.items()
        for name in names
        if name in struct_b[kind]
    ]


def group_conflicts(conflicts: list[Conflict]) -> list[ConflictGroup]:
    """Group conflicts by (file path, type), keeping insertion order."""
    groups: dict[str, ConflictGroup] = {}

    for conflict in conflicts:
        key = group_id(conflict.file_path, conflict.type)
        if key not in groups:
            groups[key] = ConflictGroup(type=conflict.type, file_path=conflict.file_path)
        groups[key].conflicts.append(conflict)

    return list(groups.values())


class ConflictDetector:
    """
    Runs every detector across all pairs of agents' diffs.

    Usage:
        detector = ConflictDetector()
        conflicts = detector.detect({"agent-a": diff_a, "agent-b": diff_b})
        groups = group_conflicts(conflicts)
    """

    def detect(
        self,
        diffs_by_agent: Mapping[str, str | None],
        session_id: str | None = None,
    ) -> list[Conflict]:
        """
        Detect conflicts between every unordered pair of agents.

        Args:
            diffs_by_agent: Agent id -> unified diff, in insertion order.
            session_id: Conflict session the results belong to.

        Returns:
            Flat list of conflicts tagged with both agents and the session.
        """
        entries = list(diffs_by_agent.items())
        logger.info(f"Detecting conflicts across {len(entries)} agent diffs")

        all_conflicts: list[Conflict] = []

        for i in range(len(entries)):
            for j in range(i + 1, len(entries)):
                agent_a, diff_a = entries[i]
                agent_b, diff_b = entries[j]

                if not diff_a or not diff_b:
                    continue

                pair_conflicts = self.detect_pair(diff_a, diff_b)
                logger.debug(f"{agent_a} vs {agent_b}: {len(pair_conflicts)} conflicts")

                for conflict in pair_conflicts:
                    all_conflicts.append(
                        conflict.model_copy(
                            update={
                                "agent_a": agent_a,
                                "agent_b": agent_b,
                                "session_id": session_id,
                            }
                        )
                    )

        logger.info(f"Conflict detection complete: {len(all_conflicts)} conflicts")
        return all_conflicts

    def detect_pair(self, diff_a: str, diff_b: str) -> list[Conflict]:
        """Run all detectors on one pair of diffs."""
        return [
            *detect_same_line_conflicts(diff_a, diff_b),
            *detect_delete_modify_conflicts(diff_a, diff_b),
            *detect_import_export_conflicts(diff_a),
            *detect_import_export_conflicts(diff_b),
            *detect_structural_conflicts(diff_a, diff_b),
        ]

    def detect_grouped(
        self,
        diffs_by_agent: Mapping[str, str | None],
        session_id: str | None = None,
    ) -> list[ConflictGroup]:
        """Detect and group conflicts by (file path, type)."""
        return group_conflicts(self.detect(diffs_by_agent, session_id))
