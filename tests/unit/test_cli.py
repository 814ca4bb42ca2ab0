"""Unit tests for the Typer CLI."""

import json
import re

import pytest
from typer.testing import CliRunner

from chambermerge import __version__
from chambermerge.cli.main import app
from chambermerge.core.config import clear_settings_cache

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_state(monkeypatch, tmp_path):
    """Point the CLI's settings at a temp directory."""
    monkeypatch.setenv("CHAMBERMERGE_STATE_DIR", str(tmp_path / "state"))
    monkeypatch.setenv("CHAMBERMERGE_LOG_DIR", str(tmp_path / "logs"))
    clear_settings_cache()
    yield tmp_path
    clear_settings_cache()


def _created_id(output: str, prefix: str) -> str:
    match = re.search(rf"{prefix}-\d+-[0-9a-z]{{8}}", output)
    assert match, output
    return match.group(0)


class TestCLI:
    """Tests for top-level options."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help(self):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "consolidate" in result.output
        assert "conflicts" in result.output


class TestConflictCommands:
    """Tests for the conflicts sub-commands."""

    def test_create_detect_resolve(self, isolated_state, diff_a, diff_b):
        (isolated_state / "a.diff").write_text(diff_a)
        (isolated_state / "b.diff").write_text(diff_b)

        created = runner.invoke(app, ["conflicts", "create", "--consolidation", "c1"])
        assert created.exit_code == 0
        session_id = _created_id(created.output, "conflict")

        detected = runner.invoke(
            app,
            [
                "conflicts",
                "detect",
                session_id,
                f"a={isolated_state / 'a.diff'}",
                f"b={isolated_state / 'b.diff'}",
            ],
        )
        assert detected.exit_code == 0

        resolved = runner.invoke(
            app, ["conflicts", "resolve", session_id, "f.js-same-line", "--action", "keep-ours"]
        )
        assert resolved.exit_code == 0

        shown = runner.invoke(app, ["conflicts", "show", session_id])
        assert shown.exit_code == 0
        data = json.loads(shown.output)
        assert data["status"] == "resolved"
        assert data["consolidationId"] == "c1"
        assert data["resolutions"][0]["conflictId"] == "f.js-same-line"

    def test_detect_unknown_session(self, isolated_state, diff_a):
        (isolated_state / "a.diff").write_text(diff_a)

        result = runner.invoke(
            app, ["conflicts", "detect", "missing", f"a={isolated_state / 'a.diff'}"]
        )

        assert result.exit_code == 1
        assert "Conflict session not found" in result.output

    def test_detect_bad_argument(self):
        result = runner.invoke(app, ["conflicts", "detect", "s1", "no-equals-sign"])

        assert result.exit_code == 1
        assert "Expected AGENT=PATH" in result.output

    def test_show_missing(self):
        result = runner.invoke(app, ["conflicts", "show", "missing"])

        assert result.exit_code == 1


class TestConsolidateCommands:
    """Tests for the consolidate sub-commands."""

    def test_start_and_show(self, isolated_state):
        started = runner.invoke(
            app, ["consolidate", "start", str(isolated_state), "-a", "agent-1", "-a", "agent-2"]
        )
        assert started.exit_code == 0
        consolidation_id = _created_id(started.output, "consolidation")

        shown = runner.invoke(app, ["consolidate", "show", consolidation_id])
        assert shown.exit_code == 0
        data = json.loads(shown.output)
        assert data["agentIds"] == ["agent-1", "agent-2"]
        assert data["status"] == "pending"

    def test_unknown_strategy(self, isolated_state):
        result = runner.invoke(
            app, ["consolidate", "start", str(isolated_state), "-a", "x", "-s", "coin-flip"]
        )

        assert result.exit_code == 1
        assert "Unknown merge strategy" in result.output

    def test_merge_before_ready(self, isolated_state):
        started = runner.invoke(app, ["consolidate", "start", str(isolated_state), "-a", "x"])
        consolidation_id = _created_id(started.output, "consolidation")

        result = runner.invoke(app, ["consolidate", "merge", consolidation_id])

        assert result.exit_code == 1
        assert "not ready for merge" in result.output

    def test_analyze_malformed_results(self, isolated_state):
        started = runner.invoke(app, ["consolidate", "start", str(isolated_state), "-a", "a"])
        consolidation_id = _created_id(started.output, "consolidation")
        results = isolated_state / "r.json"
        results.write_text(json.dumps([{"id": "a"}]))

        result = runner.invoke(app, ["consolidate", "analyze", consolidation_id, "-r", str(results)])

        assert result.exit_code == 1
        assert "Invalid agent results" in result.output

        shown = runner.invoke(app, ["consolidate", "show", consolidation_id])
        assert json.loads(shown.output)["status"] == "pending"

    def test_list_unknown_status(self, isolated_state):
        runner.invoke(app, ["consolidate", "start", str(isolated_state), "-a", "a"])

        result = runner.invoke(app, ["consolidate", "list", "--status", "bogus"])

        assert result.exit_code == 0
        assert "consolidation-" not in result.output
