"""
JSON file state store

Each store keeps one JSON document of the form ``{<root_key>: [...]}`` on
disk and caches it in memory for a short TTL. Every write goes to disk and
refreshes the cache. There is no locking: concurrent writers race and the
last whole-document write wins.
"""

import json
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generic, TypeVar

import anyio
from loguru import logger
from pydantic import BaseModel

from chambermerge.core.schema import now_ms

STATE_CACHE_TTL = 5000  # ms

RecordT = TypeVar("RecordT", bound=BaseModel)


@dataclass
class StateCache:
    """In-memory copy of a state document and when it was loaded."""

    data: dict[str, Any] | None = None
    timestamp: int = 0

    def is_fresh(self, now: int, ttl_ms: int) -> bool:
        return self.data is not None and (now - self.timestamp) < ttl_ms

    def store(self, data: dict[str, Any], now: int) -> None:
        self.data = data
        self.timestamp = now

    def clear(self) -> None:
        self.data = None
        self.timestamp = 0


class JsonStateStore:
    """
    A JSON document on disk with a TTL cache in front of it.

    Usage:
        store = JsonStateStore(path, "consolidations")
        state = await store.read()
        state["consolidations"].append({...})
        await store.write(state)
    """

    def __init__(
        self,
        path: str | Path,
        root_key: str,
        ttl_ms: int = STATE_CACHE_TTL,
        clock: Callable[[], int] = now_ms,
        cache: StateCache | None = None,
    ):
        self.path = Path(path)
        self.root_key = root_key
        self.ttl_ms = ttl_ms
        self.clock = clock
        self.cache = cache if cache is not None else StateCache()

    def _initial_state(self) -> dict[str, Any]:
        return {self.root_key: []}

    async def read(self) -> dict[str, Any]:
        """
        Load the state document.

        Returns the cached copy while it is younger than the TTL. A missing
        file is "not yet created" and yields an empty document.
        """
        now = self.clock()
        if self.cache.is_fresh(now, self.ttl_ms):
            return self.cache.data  # type: ignore[return-value]

        target = anyio.Path(self.path)
        await target.parent.mkdir(parents=True, exist_ok=True)

        try:
            raw = await target.read_text(encoding="utf-8")
        except FileNotFoundError:
            state = self._initial_state()
            self.cache.store(state, now)
            return state

        state = json.loads(raw)
        state.setdefault(self.root_key, [])
        self.cache.store(state, now)
        return state

    async def write(self, state: dict[str, Any]) -> None:
        """Write the whole document to disk and refresh the cache."""
        target = anyio.Path(self.path)
        try:
            await target.parent.mkdir(parents=True, exist_ok=True)
            await target.write_text(json.dumps(state, indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to write state to {self.path}: {e}")
            raise
        self.cache.store(state, self.clock())


class RecordRepository(Generic[RecordT]):
    """
    Typed access to the records under a store's root key.

    Records are validated into pydantic models on read and dumped with
    camelCase aliases on write.
    """

    def __init__(self, store: JsonStateStore, model: type[RecordT]):
        self.store = store
        self.model = model

    @property
    def key(self) -> str:
        return self.store.root_key

    async def list_all(self) -> list[RecordT]:
        state = await self.store.read()
        return [self.model.model_validate(item) for item in state[self.key]]

    async def get(self, record_id: str) -> RecordT | None:
        state = await self.store.read()
        for item in state[self.key]:
            if item.get("id") == record_id:
                return self.model.model_validate(item)
        return None

    async def add(self, record: RecordT) -> RecordT:
        state = await self.store.read()
        state[self.key].append(record.model_dump(mode="json", by_alias=True))
        await self.store.write(state)
        return record

    async def save(self, record: RecordT) -> RecordT:
        """Replace the stored record with the same id, appending if absent."""
        state = await self.store.read()
        payload = record.model_dump(mode="json", by_alias=True)
        items = state[self.key]

        for index, item in enumerate(items):
            if item.get("id") == payload["id"]:
                items[index] = payload
                break
        else:
            items.append(payload)

        await self.store.write(state)
        return record

    async def delete(self, record_id: str) -> None:
        state = await self.store.read()
        state[self.key] = [item for item in state[self.key] if item.get("id") != record_id]
        await self.store.write(state)
