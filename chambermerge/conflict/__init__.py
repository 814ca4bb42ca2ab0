"""
Conflict Detection and Resolution Module

Provides conflict handling between parallel agents' diffs:
- Diff-level detectors: same-line, delete/modify, import/export, structural
- Hunk overlap checks used when consolidating results
- ConflictResolver: conflict sessions and applied resolutions
"""

from chambermerge.conflict.detector import (
    ConflictDetector,
    detect_delete_modify_conflicts,
    detect_export_conflicts,
    detect_import_conflicts,
    detect_import_export_conflicts,
    detect_same_line_conflicts,
    detect_structural_conflicts,
    group_conflicts,
)
from chambermerge.conflict.models import (
    Conflict,
    ConflictGroup,
    ConflictSession,
    ConflictSessionStatus,
    ConflictType,
    DeleteModifyConflict,
    ExportConflict,
    FileConflict,
    HunkConflict,
    HunkOverlap,
    ImportConflict,
    ResolutionAction,
    ResolutionRecord,
    SameLineConflict,
    StructuralConflict,
)
from chambermerge.conflict.overlap import check_hunk_overlap, detect_hunk_conflicts
from chambermerge.conflict.resolver import ConflictResolver, get_suggested_actions

__all__ = [
    # Models
    "Conflict",
    "ConflictGroup",
    "ConflictSession",
    "ConflictSessionStatus",
    "ConflictType",
    "DeleteModifyConflict",
    "ExportConflict",
    "FileConflict",
    "HunkConflict",
    "HunkOverlap",
    "ImportConflict",
    "ResolutionAction",
    "ResolutionRecord",
    "SameLineConflict",
    "StructuralConflict",
    # Detector
    "ConflictDetector",
    "detect_delete_modify_conflicts",
    "detect_export_conflicts",
    "detect_import_conflicts",
    "detect_import_export_conflicts",
    "detect_same_line_conflicts",
    "detect_structural_conflicts",
    "group_conflicts",
    # Overlap
    "check_hunk_overlap",
    "detect_hunk_conflicts",
    # Resolver
    "ConflictResolver",
    "get_suggested_actions",
]
