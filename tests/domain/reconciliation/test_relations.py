from __future__ import annotations

import asyncio

import pytest

from animesync.domain.model import RelationEntry
from animesync.domain.reconciliation import CacheWriteFailure, RelationCache
from tests.helpers.fakes import FakeRelationStore


def test_load_keeps_oldest_row_for_conflicting_ids() -> None:
    store = FakeRelationStore(
        [RelationEntry("1", "10", "first"), RelationEntry("1", "11", "second")]
    )

    cache = RelationCache.load(store)

    assert cache.target_for("1") == "10"
    assert cache.source_for("11") == "1"
    assert len(cache) == 2


def test_append_persists_full_list() -> None:
    store = FakeRelationStore([RelationEntry("1", "10")])
    cache = RelationCache.load(store)

    added = asyncio.run(cache.append(RelationEntry("2", "20", "Title")))

    assert added
    assert store.last_saved == [RelationEntry("1", "10"), RelationEntry("2", "20", "Title")]
    assert cache.target_for("2") == "20"


def test_duplicate_append_is_a_no_op() -> None:
    store = FakeRelationStore([RelationEntry("1", "10")])
    cache = RelationCache.load(store)

    added = asyncio.run(cache.append(RelationEntry("1", "10", "other title")))

    assert not added
    assert store.saved == []
    assert len(cache) == 1


def test_single_failed_save_is_retried_once() -> None:
    store = FakeRelationStore(fail_saves=1)
    cache = RelationCache(store)

    asyncio.run(cache.append(RelationEntry("1", "10")))

    assert store.attempts == 2
    assert store.last_saved == [RelationEntry("1", "10")]


def test_failed_append_stays_in_memory_until_next_append() -> None:
    store = FakeRelationStore(fail_saves=2)
    cache = RelationCache(store)

    asyncio.run(cache.append(RelationEntry("1", "10")))
    assert store.saved == []
    assert cache.target_for("1") == "10"

    asyncio.run(cache.append(RelationEntry("2", "20")))
    assert store.last_saved == [RelationEntry("1", "10"), RelationEntry("2", "20")]


def test_two_consecutive_failed_appends_raise() -> None:
    store = FakeRelationStore(fail_saves=4)
    cache = RelationCache(store)

    asyncio.run(cache.append(RelationEntry("1", "10")))
    with pytest.raises(CacheWriteFailure):
        asyncio.run(cache.append(RelationEntry("2", "20")))


def test_concurrent_appends_each_write_once() -> None:
    store = FakeRelationStore()
    cache = RelationCache(store)

    async def append_all() -> list[bool]:
        return await asyncio.gather(
            *(cache.append(RelationEntry(str(i), str(i * 10))) for i in range(20)),
            cache.append(RelationEntry("0", "0")),
        )

    results = asyncio.run(append_all())

    assert results.count(True) == 20
    assert len(store.saved) == 20
    assert len(store.last_saved) == 20
