"""Structured representations of unified diffs."""

from pydantic import ConfigDict, Field

from chambermerge.core.schema import CamelModel


class Hunk(CamelModel):
    """A contiguous change region inside one file's diff."""

    model_config = ConfigDict(frozen=True)

    old_start: int
    old_lines: int = 1
    new_start: int
    new_lines: int = 1
    old_lines_content: list[str] = Field(default_factory=list)
    new_lines_content: list[str] = Field(default_factory=list)
    lines: list[str] = Field(default_factory=list)  # raw body, header first

    @property
    def old_end(self) -> int:
        """Last old-file line covered by the hunk."""
        return self.old_start + self.old_lines - 1


class ParsedDiff(CamelModel):
    """The structured diff of one file from one agent."""

    file_path: str | None = None
    hunks: list[Hunk] = Field(default_factory=list)
    malformed_headers: list[str] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """True when every ``@@`` header parsed."""
        return not self.malformed_headers


class FileDiff(CamelModel):
    """One file's section of a multi-file git diff."""

    path: str
    diff: str
