"""Conflict records shared by the detector, the session service and storage."""

from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import ConfigDict, Field

from chambermerge.core.schema import CamelModel
from chambermerge.diff.models import Hunk


class ConflictType(str, Enum):
    """Kinds of conflict between two agents' diffs of the same file."""

    SAME_LINE = "same-line"  # Both sides changed the same old line differently
    DELETE_MODIFY = "delete-modify"  # One side deleted, the other modified
    IMPORT_CONFLICT = "import-conflict"  # Same module imported twice
    EXPORT_CONFLICT = "export-conflict"  # Same top-level name exported twice
    STRUCTURAL = "structural"  # Both sides touch the same declaration


class ResolutionAction(str, Enum):
    """Actions a user can apply to a conflict group."""

    KEEP_THEIRS = "keep-theirs"
    KEEP_OURS = "keep-ours"
    MANUAL = "manual"
    UNION = "union"
    REJECT = "reject"


class ConflictSessionStatus(str, Enum):
    """Lifecycle of a conflict session."""

    ACTIVE = "active"
    DETECTED = "detected"
    RESOLVED = "resolved"


# ═══════════════════════════════════════════════════════════════
# CONFLICT VARIANTS
# ═══════════════════════════════════════════════════════════════


class _ConflictBase(CamelModel):
    file_path: str | None = None
    agent_a: str | None = None
    agent_b: str | None = None
    session_id: str | None = None


class SameLineConflict(_ConflictBase):
    type: Literal["same-line"] = "same-line"
    line_number: int
    content_a: str
    content_b: str


class DeleteModifyConflict(_ConflictBase):
    type: Literal["delete-modify"] = "delete-modify"
    action: Literal["deleted", "modified"]
    action_b: Literal["deleted", "modified"]


class ImportEntry(CamelModel):
    module: str
    line: str


class ExportEntry(CamelModel):
    name: str
    line: str


class ImportConflict(_ConflictBase):
    type: Literal["import-conflict"] = "import-conflict"
    module: str
    existing: ImportEntry
    duplicate: ImportEntry


class ExportConflict(_ConflictBase):
    type: Literal["export-conflict"] = "export-conflict"
    name: str
    existing: ExportEntry
    duplicate: ExportEntry


class StructuralConflict(_ConflictBase):
    type: Literal["structural"] = "structural"
    element: Literal["function", "class", "interface"]
    name: str


Conflict = Annotated[
    SameLineConflict
    | DeleteModifyConflict
    | ImportConflict
    | ExportConflict
    | StructuralConflict,
    Field(discriminator="type"),
]


class ConflictGroup(CamelModel):
    """All conflicts of one kind in one file."""

    type: ConflictType
    file_path: str | None = None
    conflicts: list[Conflict] = Field(default_factory=list)

    @property
    def id(self) -> str:
        """Identifier resolutions refer to."""
        return group_id(self.file_path, self.type)


def group_id(file_path: str | None, conflict_type: str) -> str:
    """Build the ``<file>-<type>`` key of a conflict group."""
    return f"{file_path or 'unknown'}-{ConflictType(conflict_type).value}"


# ═══════════════════════════════════════════════════════════════
# HUNK-LEVEL CONFLICTS
# ═══════════════════════════════════════════════════════════════


class OverlapRange(CamelModel):
    start: int
    end: int


class HunkOverlap(CamelModel):
    """Result of comparing the old-line ranges of two hunks."""

    type: Literal["exact", "partial", "none"]
    details: OverlapRange | None = None


class HunkConflict(CamelModel):
    """Two agents' overlapping hunks in the same file."""

    type: Literal["exact", "partial"]
    agent_a: str | None = None
    agent_b: str | None = None
    hunk_a: Hunk
    hunk_b: Hunk
    overlap: OverlapRange


class FileConflict(CamelModel):
    """Hunk conflicts found in one file."""

    path: str
    conflicts: list[HunkConflict] = Field(default_factory=list)


# ═══════════════════════════════════════════════════════════════
# SESSIONS
# ═══════════════════════════════════════════════════════════════


class ResolutionRecord(CamelModel):
    """A resolution applied to a conflict group.

    Extra caller-supplied fields (edited content, chosen agent, ...) are kept.
    """

    model_config = ConfigDict(extra="allow")

    conflict_id: str | None = None
    action: str | None = None
    applied_at: int


class ConflictSession(CamelModel):
    """A conflict detection and resolution session."""

    id: str
    consolidation_id: str | None = None
    project_directory: str | None = None
    created_at: int
    status: ConflictSessionStatus = ConflictSessionStatus.ACTIVE
    agent_results: list[dict[str, Any]] = Field(default_factory=list)
    conflicts: list[ConflictGroup] = Field(default_factory=list)
    resolutions: list[ResolutionRecord] = Field(default_factory=list)

    def is_fully_resolved(self) -> bool:
        """True once every conflict group has at least one resolution."""
        resolved = {r.conflict_id for r in self.resolutions}
        return all(group.id in resolved for group in self.conflicts)
