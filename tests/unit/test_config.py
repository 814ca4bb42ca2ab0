"""Unit tests for settings, logging setup and shared record helpers."""

import re
from pathlib import Path

import pytest
from loguru import logger

from chambermerge.core.config import Settings, clear_settings_cache, get_settings
from chambermerge.core.exceptions import (
    ChamberMergeError,
    ConflictSessionNotFoundError,
    GitError,
    NotFoundError,
)
from chambermerge.core.log import configure_logging
from chambermerge.core.schema import generate_id


class TestSettings:
    """Tests for Settings and the cached accessor."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("CHAMBERMERGE_DEBUG", raising=False)
        monkeypatch.delenv("CHAMBERMERGE_LOG_LEVEL", raising=False)

        settings = Settings(_env_file=None)

        assert settings.state_cache_ttl_ms == 5000
        assert settings.state_dir == Path.home() / ".config" / "openchamber"
        assert settings.excluded_path_prefixes == [".opencode"]
        assert settings.git_binary == "git"
        assert settings.log_level == "INFO"

    def test_state_files(self, tmp_path):
        settings = Settings(state_dir=tmp_path)

        assert settings.conflict_state_file == tmp_path / "conflict-state.json"
        assert settings.consolidation_state_file == tmp_path / "consolidation-state.json"

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CHAMBERMERGE_STATE_DIR", str(tmp_path))
        monkeypatch.setenv("CHAMBERMERGE_STATE_CACHE_TTL_MS", "100")
        monkeypatch.setenv("CHAMBERMERGE_GIT_TIMEOUT", "5")

        settings = Settings()

        assert settings.state_dir == tmp_path
        assert settings.state_cache_ttl_ms == 100
        assert settings.git_timeout == 5.0

    def test_get_settings_is_cached(self):
        clear_settings_cache()
        try:
            assert get_settings() is get_settings()
        finally:
            clear_settings_cache()

    def test_invalid_values_rejected(self):
        with pytest.raises(ValueError):
            Settings(state_cache_ttl_ms=-1)


class TestLogging:
    """Tests for configure_logging."""

    def test_writes_to_log_dir(self, settings):
        configure_logging(settings, console=False)
        logger.info("hello from the test")
        logger.remove()

        log_files = list(settings.log_dir.glob("chambermerge_*.log"))
        assert len(log_files) == 1
        assert "hello from the test" in log_files[0].read_text()


class TestHelpers:
    """Tests for ids and the exception hierarchy."""

    def test_generate_id(self):
        record_id = generate_id("conflict")

        assert re.fullmatch(r"conflict-\d+-[0-9a-z]{8}", record_id)
        assert generate_id("conflict") != record_id

    def test_exception_hierarchy(self):
        error = ConflictSessionNotFoundError("s1")

        assert isinstance(error, NotFoundError)
        assert isinstance(error, ChamberMergeError)
        assert error.session_id == "s1"

    def test_git_error_message(self):
        error = GitError(["commit", "-m", "x"], 1, "nothing to commit\n")

        assert str(error) == "git commit -m x failed (1): nothing to commit"
        assert error.returncode == 1
