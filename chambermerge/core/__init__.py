"""Core module - configuration, logging and exceptions."""

from chambermerge.core.config import Settings, clear_settings_cache, get_settings
from chambermerge.core.exceptions import (
    ChamberMergeError,
    ConflictSessionNotFoundError,
    ConsolidationNotFoundError,
    DiffParseError,
    GitError,
    InvalidParametersError,
    InvalidStateError,
    NotFoundError,
)
from chambermerge.core.log import configure_logging

__all__ = [
    "ChamberMergeError",
    "ConflictSessionNotFoundError",
    "ConsolidationNotFoundError",
    "DiffParseError",
    "GitError",
    "InvalidParametersError",
    "InvalidStateError",
    "NotFoundError",
    "Settings",
    "clear_settings_cache",
    "configure_logging",
    "get_settings",
]
