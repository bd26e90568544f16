"""Append-only cache of resolved cross-catalog identities."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import CacheWriteFailure

if TYPE_CHECKING:
    from collections.abc import Iterable

    from animesync.domain.model import NativeId, RelationEntry
    from animesync.domain.ports import RelationStore

log = getLogger(__name__)


class RelationCache:
    """Known relations, looked up oldest-first and persisted on every append.

    Conflicting or duplicated rows already present in the store are kept as
    they are; the oldest row for an id wins. Appends are serialized by a lock
    because the store rewrites its whole file each time.
    """

    def __init__(self, store: RelationStore, entries: Iterable[RelationEntry] = ()) -> None:
        self._store = store
        self._entries: list[RelationEntry] = []
        self._keys: set[tuple[NativeId, NativeId]] = set()
        self._by_source: dict[NativeId, NativeId] = {}
        self._by_target: dict[NativeId, NativeId] = {}
        self._lock = asyncio.Lock()
        self._failed_appends = 0
        for entry in entries:
            self._remember(entry)

    @classmethod
    def load(cls, store: RelationStore) -> RelationCache:
        """Build the cache from whatever ``store`` holds; parse errors propagate."""

        entries = store.load()
        log.debug("Loaded %s known relations", len(entries))
        return cls(store, entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[RelationEntry, ...]:
        return tuple(self._entries)

    def target_for(self, source_id: NativeId) -> NativeId | None:
        return self._by_source.get(source_id)

    def source_for(self, target_id: NativeId) -> NativeId | None:
        return self._by_target.get(target_id)

    async def append(self, entry: RelationEntry) -> bool:
        """Record ``entry`` and write the full list through the store.

        Returns ``False`` for a pair that is already known. A write that fails
        twice (the original attempt and one retry) is logged and the entry stays
        in memory so the next append persists it; a second consecutive append
        that cannot be written raises ``CacheWriteFailure``.
        """

        async with self._lock:
            if entry.key in self._keys:
                return False
            self._remember(entry)
            if self._save_with_retry():
                self._failed_appends = 0
                return True
            self._failed_appends += 1
            if self._failed_appends >= 2:
                raise CacheWriteFailure(
                    f"Could not persist relations after {self._failed_appends} appends "
                    f"(last: {entry.source_id} -> {entry.target_id})"
                )
            log.error(
                "Relation %s -> %s kept in memory only; will retry with the next append",
                entry.source_id,
                entry.target_id,
            )
            return True

    def _remember(self, entry: RelationEntry) -> None:
        self._entries.append(entry)
        self._keys.add(entry.key)
        self._by_source.setdefault(entry.source_id, entry.target_id)
        self._by_target.setdefault(entry.target_id, entry.source_id)

    def _save_with_retry(self) -> bool:
        for attempt in (1, 2):
            try:
                self._store.save(self._entries)
            except OSError as exc:
                log.warning("Writing relation cache failed (attempt %s): %s", attempt, exc)
                continue
            return True
        return False
