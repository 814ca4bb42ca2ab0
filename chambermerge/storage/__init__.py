"""Persistent session state."""

from chambermerge.storage.state_store import (
    STATE_CACHE_TTL,
    JsonStateStore,
    RecordRepository,
    StateCache,
)

__all__ = ["STATE_CACHE_TTL", "JsonStateStore", "RecordRepository", "StateCache"]
