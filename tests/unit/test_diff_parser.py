"""
Unit tests for the unified diff parser.

Covers:
- File path and hunk header extraction
- Omitted and explicit-zero hunk counts
- Lenient vs strict handling of malformed input
- Changed line counting
- Splitting multi-file diffs
"""

import pytest

from chambermerge.core.exceptions import DiffParseError
from chambermerge.diff.models import Hunk
from chambermerge.diff.parser import (
    count_changed_lines,
    parse_diff_hunks,
    parse_unified_diff,
    split_file_diffs,
)

# =============================================================================
# PARSING
# =============================================================================


class TestParseUnifiedDiff:
    """Tests for parse_unified_diff."""

    def test_minimal_diff(self):
        """A one-hunk diff yields the path and the removed/added lines."""
        parsed = parse_unified_diff("diff --git a/f.js b/f.js\n@@ -1,2 +1,2 @@\n-a\n+b\n")

        assert parsed.file_path == "f.js"
        assert len(parsed.hunks) == 1

        hunk = parsed.hunks[0]
        assert (hunk.old_start, hunk.old_lines, hunk.new_start, hunk.new_lines) == (1, 2, 1, 2)
        assert hunk.old_lines_content == ["-a"]
        assert hunk.new_lines_content == ["+b"]
        assert hunk.lines[0] == "@@ -1,2 +1,2 @@"

    def test_empty_diff(self):
        parsed = parse_unified_diff("")

        assert parsed.file_path is None
        assert parsed.hunks == []

    def test_omitted_counts_default_to_one(self):
        parsed = parse_unified_diff("diff --git a/x.py b/x.py\n@@ -5 +5 @@\n-old\n+new\n")

        hunk = parsed.hunks[0]
        assert hunk.old_lines == 1
        assert hunk.new_lines == 1

    def test_explicit_zero_count_is_kept(self):
        """A `,0` count marks a pure insertion and stays 0; it is not bumped to 1."""
        parsed = parse_unified_diff(
            "diff --git a/new.py b/new.py\n@@ -0,0 +1,2 @@\n+one\n+two\n"
        )

        hunk = parsed.hunks[0]
        assert hunk.old_start == 0
        assert hunk.old_lines == 0
        assert hunk.new_lines == 2
        assert hunk.old_lines_content == []

    def test_section_heading_after_header(self):
        parsed = parse_unified_diff(
            "diff --git a/app.ts b/app.ts\n@@ -10,3 +10,4 @@ function main() {\n ctx\n+added\n"
        )

        assert parsed.hunks[0].old_start == 10
        assert parsed.hunks[0].new_lines == 4

    def test_multiple_hunks(self, build_diff):
        diff = build_diff(
            "m.py",
            "@@ -1,2 +1,2 @@\n-a\n+b\n c",
            "@@ -20,1 +20,2 @@\n-x\n+y\n+z",
        )

        hunks = parse_diff_hunks(diff)

        assert [h.old_start for h in hunks] == [1, 20]
        assert hunks[1].new_lines_content == ["+y", "+z"]

    def test_file_headers_not_counted_as_content(self, build_diff):
        diff = build_diff("m.py", "@@ -1,1 +1,1 @@\n-a\n+b")

        hunk = parse_unified_diff(diff).hunks[0]

        assert "--- a/m.py" not in hunk.old_lines_content
        assert "+++ b/m.py" not in hunk.new_lines_content

    def test_first_file_header_wins(self):
        diff = (
            "diff --git a/one.py b/one.py\n@@ -1 +1 @@\n-a\n+b\n"
            "diff --git a/two.py b/two.py\n@@ -1 +1 @@\n-c\n+d\n"
        )

        parsed = parse_unified_diff(diff)

        assert parsed.file_path == "one.py"
        assert len(parsed.hunks) == 2

    def test_hunk_body_stops_at_next_file(self):
        diff = (
            "diff --git a/one.py b/one.py\n@@ -1 +1 @@\n-a\n+b\n"
            "diff --git a/two.py b/two.py\n"
        )

        hunk = parse_unified_diff(diff).hunks[0]

        assert not any(line.startswith("diff") for line in hunk.lines)


class TestMalformedInput:
    """Lenient and strict handling of bad hunk headers."""

    BAD = "diff --git a/f.js b/f.js\n@@ nonsense @@\n-a\n+b\n@@ -3,1 +3,1 @@\n-c\n+d\n"

    def test_lenient_skips_bad_header(self):
        parsed = parse_unified_diff(self.BAD)

        assert len(parsed.hunks) == 1
        assert parsed.hunks[0].old_start == 3
        assert parsed.malformed_headers == ["@@ nonsense @@"]
        assert not parsed.is_valid

    def test_strict_raises_on_bad_header(self):
        with pytest.raises(DiffParseError) as exc_info:
            parse_unified_diff(self.BAD, strict=True)

        assert exc_info.value.line == "@@ nonsense @@"

    def test_strict_raises_without_file_header(self):
        with pytest.raises(DiffParseError):
            parse_unified_diff("@@ -1 +1 @@\n-a\n+b\n", strict=True)

    def test_strict_accepts_valid_diff(self):
        parsed = parse_unified_diff("diff --git a/f.js b/f.js\n@@ -1 +1 @@\n-a\n+b\n", strict=True)

        assert parsed.is_valid
        assert parsed.file_path == "f.js"


# =============================================================================
# LINE COUNTING
# =============================================================================


class TestCountChangedLines:
    """Tests for count_changed_lines."""

    def test_counts_added_and_removed(self):
        hunks = parse_diff_hunks("diff --git a/f b/f\n@@ -1,3 +1,4 @@\n-a\n+b\n+c\n ctx\n-d\n+e\n")

        assert count_changed_lines(hunks) == (3, 2)

    def test_double_markers_not_counted(self):
        hunk = Hunk(old_start=1, new_start=1, lines=["@@ -1 +1 @@", "--- a/f", "+++ b/f", "-x", "+y"])

        assert count_changed_lines([hunk]) == (1, 1)

    def test_no_hunks(self):
        assert count_changed_lines([]) == (0, 0)


# =============================================================================
# SPLITTING
# =============================================================================


class TestSplitFileDiffs:
    """Tests for split_file_diffs."""

    MULTI = (
        "diff --git a/src/a.ts b/src/a.ts\n"
        "index 111..222 100644\n"
        "--- a/src/a.ts\n"
        "+++ b/src/a.ts\n"
        "@@ -1 +1 @@\n"
        "-a\n"
        "+b\n"
        "diff --git a/.opencode/state.json b/.opencode/state.json\n"
        "@@ -1 +1 @@\n"
        "-{}\n"
        "+{\"x\": 1}\n"
        "diff --git a/src/b.ts b/src/b.ts\n"
        "@@ -4,2 +4,2 @@\n"
        "-c\n"
        "+d\n"
    )

    def test_splits_per_file(self):
        files = split_file_diffs(self.MULTI)

        assert [f.path for f in files] == ["src/a.ts", "src/b.ts"]

    def test_sections_parse_on_their_own(self):
        files = split_file_diffs(self.MULTI)

        for file_diff in files:
            parsed = parse_unified_diff(file_diff.diff)
            assert parsed.file_path == file_diff.path
            assert len(parsed.hunks) == 1

        assert parse_diff_hunks(files[1].diff)[0].old_start == 4

    def test_custom_exclusions(self):
        files = split_file_diffs(self.MULTI, excluded_prefixes=("src/a",))

        assert [f.path for f in files] == [".opencode/state.json", "src/b.ts"]

    def test_no_exclusions(self):
        files = split_file_diffs(self.MULTI, excluded_prefixes=())

        assert len(files) == 3

    @pytest.mark.parametrize("diff", ["", "   \n", "not a diff"])
    def test_empty_or_unrecognised(self, diff):
        assert split_file_diffs(diff) == []
