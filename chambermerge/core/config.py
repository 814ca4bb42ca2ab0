"""Configuration management using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_state_dir() -> Path:
    return Path.home() / ".config" / "openchamber"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CHAMBERMERGE_",
        case_sensitive=False,
        extra="ignore",
    )

    # State persistence
    state_dir: Path = Field(
        default_factory=_default_state_dir,
        description="Directory holding the JSON state files",
    )
    state_cache_ttl_ms: int = Field(
        default=5000,
        ge=0,
        description="How long a state file stays cached in memory (ms)",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: Path = Field(
        default=Path("logs"),
        description="Directory for rotating log files",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # Git
    git_binary: str = Field(
        default="git",
        description="Git executable used for diffs and commits",
    )
    git_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Timeout for a single git command in seconds",
    )
    diff_context_lines: int = Field(
        default=3,
        ge=0,
        description="Context lines requested from git diff",
    )
    excluded_path_prefixes: list[str] = Field(
        default_factory=lambda: [".opencode"],
        description="Paths never collected from agent worktrees",
    )

    @property
    def conflict_state_file(self) -> Path:
        """Path of the conflict session state file."""
        return self.state_dir / "conflict-state.json"

    @property
    def consolidation_state_file(self) -> Path:
        """Path of the consolidation state file."""
        return self.state_dir / "consolidation-state.json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings instance loaded from environment.

    Example:
        >>> settings = get_settings()
        >>> settings.state_cache_ttl_ms
        5000
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
