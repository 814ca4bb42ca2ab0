"""Unified diff parsing."""

from chambermerge.diff.models import FileDiff, Hunk, ParsedDiff
from chambermerge.diff.parser import (
    count_changed_lines,
    parse_diff_hunks,
    parse_unified_diff,
    split_file_diffs,
)

__all__ = [
    "FileDiff",
    "Hunk",
    "ParsedDiff",
    "count_changed_lines",
    "parse_diff_hunks",
    "parse_unified_diff",
    "split_file_diffs",
]
