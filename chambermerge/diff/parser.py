"""
Unified Diff Parser

Turns git-style unified diffs into structured hunks:
- File path extraction from ``diff --git`` headers
- Hunk headers ``@@ -a,b +c,d @@`` with git's omitted-count convention
- Removed/added line content per hunk
- Splitting multi-file diffs into per-file sections
"""

import re
from collections.abc import Iterable

from loguru import logger

from chambermerge.core.exceptions import DiffParseError
from chambermerge.diff.models import FileDiff, Hunk, ParsedDiff

HUNK_HEADER_RE = re.compile(r"@@ -(\d+),?(\d+)? \+(\d+),?(\d+)? @@")
FILE_HEADER_RE = re.compile(r"diff --git a/(.+?) b/(.+)")
FILE_SPLIT_RE = re.compile(r"^diff --git a/(.+?) b/(.+?)$", re.MULTILINE)


def _parse_hunk_header(line: str) -> tuple[int, int, int, int] | None:
    match = HUNK_HEADER_RE.match(line)
    if not match:
        return None
    old_start, old_lines, new_start, new_lines = match.groups()
    # an omitted count means 1; an explicit ",0" is kept
    return (
        int(old_start),
        int(old_lines) if old_lines is not None else 1,
        int(new_start),
        int(new_lines) if new_lines is not None else 1,
    )


def _collect_hunk_body(lines: list[str], start: int) -> list[str]:
    """Lines following a hunk header, up to the next hunk or file header."""
    body = []
    for line in lines[start:]:
        if line.startswith("@@") or line.startswith("diff"):
            break
        body.append(line)
    return body


def parse_unified_diff(diff: str, strict: bool = False) -> ParsedDiff:
    """
    Parse a unified diff into a ParsedDiff.

    Args:
        diff: Unified diff text for a single file.
        strict: Raise DiffParseError on malformed input instead of
            skipping it.

    Returns:
        ParsedDiff with the file path and hunks found.

    Raises:
        DiffParseError: In strict mode, when a ``@@`` header does not match
            the hunk pattern or the diff has hunks but no file path.

    Example:
        >>> parsed = parse_unified_diff("diff --git a/f.js b/f.js\\n@@ -1,2 +1,2 @@\\n-a\\n+b\\n")
        >>> parsed.file_path, parsed.hunks[0].old_lines
        ('f.js', 2)
    """
    lines = diff.split("\n")
    parsed = ParsedDiff()

    for index, line in enumerate(lines):
        if line.startswith("diff --git"):
            match = FILE_HEADER_RE.match(line)
            if match and parsed.file_path is None:
                parsed.file_path = match.group(1)
        elif line.startswith("@@"):
            header = _parse_hunk_header(line)
            if header is None:
                if strict:
                    raise DiffParseError(f"Malformed hunk header: {line!r}", line=line)
                logger.debug(f"Skipping malformed hunk header: {line!r}")
                parsed.malformed_headers.append(line)
                continue

            body = _collect_hunk_body(lines, index + 1)
            old_start, old_lines, new_start, new_lines = header
            parsed.hunks.append(
                Hunk(
                    old_start=old_start,
                    old_lines=old_lines,
                    new_start=new_start,
                    new_lines=new_lines,
                    old_lines_content=[
                        b for b in body if b.startswith("-") and not b.startswith("---")
                    ],
                    new_lines_content=[
                        b for b in body if b.startswith("+") and not b.startswith("+++")
                    ],
                    lines=[line, *body],
                )
            )

    if strict and parsed.hunks and parsed.file_path is None:
        raise DiffParseError("Diff has hunks but no 'diff --git' file header")

    return parsed


def parse_diff_hunks(diff: str) -> list[Hunk]:
    """Parse only the hunks of a diff."""
    return parse_unified_diff(diff).hunks


def count_changed_lines(hunks: Iterable[Hunk]) -> tuple[int, int]:
    """
    Count added and removed lines across hunks.

    Returns:
        Tuple of (added, removed).
    """
    added = 0
    removed = 0
    for hunk in hunks:
        for line in hunk.lines:
            if line.startswith("+") and not line.startswith("++"):
                added += 1
            if line.startswith("-") and not line.startswith("--"):
                removed += 1
    return added, removed


def split_file_diffs(
    diff: str,
    excluded_prefixes: Iterable[str] = (".opencode",),
) -> list[FileDiff]:
    """
    Split a multi-file git diff into per-file diffs.

    Each section is re-prefixed with its own ``diff --git`` header so it can
    be parsed on its own. Paths starting with an excluded prefix are dropped.
    """
    if not diff or not diff.strip():
        return []

    excluded = tuple(excluded_prefixes)
    matches = list(FILE_SPLIT_RE.finditer(diff))
    files: list[FileDiff] = []

    for i, match in enumerate(matches):
        file_path = match.group(1)
        body_end = matches[i + 1].start() if i + 1 < len(matches) else len(diff)
        body = diff[match.end() : body_end]

        if not file_path or (excluded and file_path.startswith(excluded)):
            continue

        files.append(
            FileDiff(
                path=file_path,
                diff=f"diff --git a/{file_path} b/{file_path}{body}",
            )
        )

    return files
